"""
Purpose
-------
Normalize raw speech text into the cleaned token streams that feed the
co-occurrence builder.

Key behaviors
-------------
- Fold compatibility forms (NFKD) and drop combining marks, lowercase,
  replace every character that is not a letter or digit with a space, and
  collapse runs of whitespace into one space.
- Concatenate the normalized documents of each group into one token stream.

Conventions
-----------
- Underscores count as punctuation here, unlike in the TF-IDF tokenizer.
- Diacritics are folded away ("Côte" becomes "cote", "İstanbul" becomes
  "istanbul") so a mark can never split a word in two.
- Documents of a group are spliced in corpus order without a boundary
  marker, so a co-occurrence window can span the end of one speech and the
  start of the next. This mirrors how the analysis has always been run.
- `normalize_text` is pure and idempotent.

Downstream usage
----------------
`build_group_token_streams(corpus)` →
`glove.cooccurrence.build_group_cooccurrence`.
"""

import re
import unicodedata
from typing import Dict, List

from speech_corpus.speech_corpus_types import Corpus

NON_ALPHANUMERIC_PATTERN: re.Pattern[str] = re.compile(r"[\W_]+")


def normalize_text(text: str) -> str:
    """
    Lowercase `text` and reduce it to alphanumeric words separated by single spaces.

    Examples
    --------
    >>> normalize_text("  Peace-keeping, in 2001!  ")
    'peace keeping in 2001'
    """
    decomposed: str = unicodedata.normalize("NFKD", text)
    unmarked: str = "".join(
        ch for ch in decomposed if not unicodedata.category(ch).startswith("M")
    )
    return NON_ALPHANUMERIC_PATTERN.sub(" ", unmarked.lower()).strip()


def build_group_token_streams(corpus: Corpus) -> Dict[str, List[str]]:
    """
    Build one cleaned token stream per group.

    Parameters
    ----------
    corpus : Corpus
        Filtered corpus.

    Returns
    -------
    dict[str, list[str]]
        `group → tokens` of all the group's documents, concatenated in corpus
        order.
    """
    streams: Dict[str, List[str]] = {group: [] for group in corpus.groups}
    for document in corpus:
        streams[document.group].extend(normalize_text(document.text).split())
    return streams
