"""
Purpose
-------
Define the immutable records that carry the speech corpus through the
pipeline: a single speech (`Document`), an ordered collection of speeches
(`Corpus`), and the subset selection applied when loading (`CorpusFilter`).

Key behaviors
-------------
- `Corpus` always stores its documents in canonical
  `(group, year, session, doc_id)` order, so results computed from a corpus
  never depend on the order in which files were discovered.
- Filtering and grouping return new `Corpus` objects; nothing is mutated.

Conventions
-----------
- All dataclasses are frozen; `Corpus.documents` is a tuple.
- Group identifiers are compared verbatim (no case folding).

Downstream usage
----------------
Produced by `speech_corpus.speech_corpus_loader`, consumed by
`tfidf.term_counting` and `glove.text_normalization`.
"""

from dataclasses import dataclass, field
from typing import Iterable, Iterator, Tuple


@dataclass(frozen=True)
class Document:
    """
    Purpose
    -------
    One speech delivered by one country in one General Debate session.

    Attributes
    ----------
    doc_id : str
        Logical identifier derived from the filename (extension and trailing
        counter removed), e.g. "USA_56_2001".
    group : str
        Country code of the speaker.
    session : int
        General Debate session number.
    year : int
        Calendar year of the session.
    text : str
        Raw speech text.
    """

    doc_id: str
    group: str
    session: int
    year: int
    text: str

    def sort_key(self) -> Tuple[str, int, int, str]:
        return (self.group, self.year, self.session, self.doc_id)


@dataclass(frozen=True)
class CorpusFilter:
    """
    Purpose
    -------
    Selection criteria applied to the raw corpus.

    Attributes
    ----------
    groups : frozenset[str]
        Country codes to keep.
    min_year : int
        Inclusive lower bound on `Document.year`.
    max_year : int | None
        Inclusive upper bound on `Document.year`; None means unbounded.

    Notes
    -----
    - Accepts any iterable of groups and freezes it.
    """

    groups: frozenset[str]
    min_year: int
    max_year: int | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "groups", frozenset(self.groups))
        if self.max_year is not None and self.max_year < self.min_year:
            raise ValueError(
                f"max_year {self.max_year} is earlier than min_year {self.min_year}"
            )

    def keeps_group(self, group: str) -> bool:
        return group in self.groups

    def keeps_year(self, year: int) -> bool:
        if year < self.min_year:
            return False
        return self.max_year is None or year <= self.max_year

    def keeps(self, document: Document) -> bool:
        return self.keeps_group(document.group) and self.keeps_year(document.year)


@dataclass(frozen=True)
class Corpus:
    """
    Purpose
    -------
    Ordered, immutable collection of speeches owned by one analysis run.

    Attributes
    ----------
    documents : tuple[Document, ...]
        Documents in canonical `(group, year, session, doc_id)` order.
    """

    documents: Tuple[Document, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "documents", tuple(sorted(self.documents, key=Document.sort_key))
        )

    @classmethod
    def from_documents(cls, documents: Iterable[Document]) -> "Corpus":
        return cls(tuple(documents))

    def __iter__(self) -> Iterator[Document]:
        return iter(self.documents)

    def __len__(self) -> int:
        return len(self.documents)

    @property
    def groups(self) -> Tuple[str, ...]:
        """Distinct groups in canonical order."""
        return tuple(dict.fromkeys(document.group for document in self.documents))
