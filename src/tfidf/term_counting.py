"""
Purpose
-------
Tokenize speeches into lowercase words and aggregate raw per-(group, word)
counts together with per-group token totals.

Key behaviors
-------------
- Segment text with an NLTK `RegexpTokenizer` after lowercasing.
- Aggregate counts into `collections.Counter` objects keyed by
  `(group, word)` and by `group`.
- Remember the order in which words were first encountered while scanning
  the corpus, which downstream ranking uses to break ties.

Conventions
-----------
- Documents are scanned in the corpus' canonical order, so counts and the
  encounter order are a pure function of the corpus contents.
- For every group, the sum of its word counts equals its token total.

Downstream usage
----------------
Feed the returned `TermCounts` to `tfidf.tfidf_scoring.score_tfidf`, or to
`top_term_counts` for a quick most-frequent-words table.
"""

from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, List, Tuple

import pandas as pd
from nltk.tokenize import RegexpTokenizer

from speech_corpus.speech_corpus_types import Corpus
from tfidf.tfidf_config import TOP_COUNT_NUM, WORD_TOKEN_PATTERN

WORD_TOKENIZER: RegexpTokenizer = RegexpTokenizer(WORD_TOKEN_PATTERN)


@dataclass
class TermCounts:
    """
    Purpose
    -------
    Aggregated raw term statistics for a corpus, per group.

    Attributes
    ----------
    group_term_counter : Counter[tuple[str, str]]
        `(group, word) → raw count`.
    group_total_counter : Counter[str]
        `group → total number of tokens`.
    word_order : dict[str, int]
        `word → position of its first encounter` across the whole corpus.
    groups : list[str]
        Groups in the order they were encountered; includes groups whose
        documents produced no tokens.
    """

    group_term_counter: Counter[Tuple[str, str]] = field(default_factory=Counter)
    group_total_counter: Counter[str] = field(default_factory=Counter)
    word_order: Dict[str, int] = field(default_factory=dict)
    groups: List[str] = field(default_factory=list)

    def words_of(self, group: str) -> Dict[str, int]:
        """Word counts of one group, in first-encounter order."""
        counts = {
            word: count for (g, word), count in self.group_term_counter.items() if g == group
        }
        return dict(sorted(counts.items(), key=lambda item: self.word_order[item[0]]))


def tokenize_words(text: str) -> List[str]:
    """
    Split `text` into lowercase word tokens.

    Examples
    --------
    >>> tokenize_words("The Assembly's work, in 2001!")
    ["the", "assembly's", "work", "in", "2001"]
    """
    return WORD_TOKENIZER.tokenize(text.lower())


def count_terms(corpus: Corpus) -> TermCounts:
    """
    Count word occurrences per group.

    Parameters
    ----------
    corpus : Corpus
        Filtered corpus.

    Returns
    -------
    TermCounts
        Raw counts, totals, and first-encounter word order.

    Notes
    -----
    - Deterministic: identical corpora yield identical counts and order.
    """

    term_counts = TermCounts()
    for document in corpus:
        if document.group not in term_counts.group_total_counter:
            term_counts.groups.append(document.group)
            term_counts.group_total_counter[document.group] += 0
        tokens: List[str] = tokenize_words(document.text)
        for token in tokens:
            term_counts.word_order.setdefault(token, len(term_counts.word_order))
        term_counts.group_term_counter.update((document.group, token) for token in tokens)
        term_counts.group_total_counter[document.group] += len(tokens)
    return term_counts


def top_term_counts(term_counts: TermCounts, top_k: int = TOP_COUNT_NUM) -> pd.DataFrame:
    """
    Most frequent raw words per group.

    Parameters
    ----------
    term_counts : TermCounts
        Output of `count_terms`.
    top_k : int
        Rows kept per group.

    Returns
    -------
    pandas.DataFrame
        Columns ['group', 'rank', 'word', 'count', 'share'] where `share` is
        the word's fraction of the group's tokens. Ties keep first-encounter
        order.
    """

    records = []
    for group in term_counts.groups:
        total: int = term_counts.group_total_counter[group]
        ranked = sorted(term_counts.words_of(group).items(), key=lambda item: -item[1])
        for rank, (word, count) in enumerate(ranked[:top_k], start=1):
            records.append(
                {
                    "group": group,
                    "rank": rank,
                    "word": word,
                    "count": count,
                    "share": count / total if total else 0.0,
                }
            )
    return pd.DataFrame.from_records(records, columns=["group", "rank", "word", "count", "share"])
