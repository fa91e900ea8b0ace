"""
Purpose
-------
Turn raw per-group term counts into TF-IDF weights, treating each country
group's full corpus as one synthetic document, and rank the most
distinctive words per group.

Key behaviors
-------------
- Document frequency of a word is the number of groups in which it occurs
  at least once.
- tf = count / total tokens of the group; idf = ln(n_groups / df);
  tf_idf = tf × idf.
- Rank per group by descending tf_idf with a stable tie-break on the
  word's first-encounter order, then keep the top K.

Conventions
-----------
- A word used by every group has idf = 0 and therefore tf_idf = 0; such
  words always rank after every distinctive word of the group.
- With a single loaded group every idf is ln(1/1) = 0.
- A group without tokens gets no records (its tf is undefined) but still
  counts towards n_groups, since it was loaded; it has no words, so it
  never changes a document frequency. `groups_without_tokens` reports it.
- Natural logarithm throughout.

Downstream usage
----------------
Call `score_tfidf(count_terms(corpus))` and hand the result to
`tfidf_records_to_frame` for display or export.
"""

import math
from collections import Counter
from dataclasses import asdict, dataclass
from typing import List

import pandas as pd

from tfidf.term_counting import TermCounts
from tfidf.tfidf_config import DEFAULT_TOP_K

TFIDF_COLUMNS: List[str] = [
    "group",
    "word",
    "term_count",
    "term_frequency",
    "inverse_document_frequency",
    "tf_idf",
]


@dataclass(frozen=True)
class TfIdfRecord:
    """
    Purpose
    -------
    TF-IDF statistics of one word within one group.

    Attributes
    ----------
    group : str
        Country group.
    word : str
        Lowercase token.
    term_count : int
        Raw occurrences of the word in the group.
    term_frequency : float
        `term_count / total tokens of the group`.
    inverse_document_frequency : float
        `ln(n_groups / groups containing the word)`; never negative.
    tf_idf : float
        `term_frequency × inverse_document_frequency`.
    """

    group: str
    word: str
    term_count: int
    term_frequency: float
    inverse_document_frequency: float
    tf_idf: float


def compute_document_frequency(term_counts: TermCounts) -> Counter[str]:
    """Number of groups in which each word occurs at least once."""
    document_frequency: Counter[str] = Counter()
    for (_, word), count in term_counts.group_term_counter.items():
        if count > 0:
            document_frequency[word] += 1
    return document_frequency


def groups_without_tokens(term_counts: TermCounts) -> List[str]:
    """Loaded groups whose text produced no token, in `term_counts.groups` order."""
    return [g for g in term_counts.groups if term_counts.group_total_counter[g] == 0]


def score_tfidf(term_counts: TermCounts, top_k: int | None = DEFAULT_TOP_K) -> List[TfIdfRecord]:
    """
    Compute and rank TF-IDF records per group.

    Parameters
    ----------
    term_counts : TermCounts
        Output of `tfidf.term_counting.count_terms`.
    top_k : int | None, default DEFAULT_TOP_K
        Records kept per group; None keeps all words.

    Returns
    -------
    list[TfIdfRecord]
        Groups in `term_counts.groups` order; within a group, descending
        tf_idf with ties in first-encounter word order. Groups without
        tokens contribute no records.

    Notes
    -----
    - The ranking depends only on the counts and the corpus' canonical
      encounter order, so reloading the same files in another order gives
      the same result.
    """

    n_groups: int = len(term_counts.groups)
    document_frequency: Counter[str] = compute_document_frequency(term_counts)
    records: List[TfIdfRecord] = []
    for group in term_counts.groups:
        total_tokens: int = term_counts.group_total_counter[group]
        if total_tokens == 0:
            continue
        group_records: List[TfIdfRecord] = []
        for word, count in term_counts.words_of(group).items():
            term_frequency = count / total_tokens
            idf = math.log(n_groups / document_frequency[word])
            group_records.append(
                TfIdfRecord(
                    group=group,
                    word=word,
                    term_count=count,
                    term_frequency=term_frequency,
                    inverse_document_frequency=idf,
                    tf_idf=term_frequency * idf,
                )
            )
        # sorted() is stable and words_of() yields first-encounter order
        group_records.sort(key=lambda record: -record.tf_idf)
        records.extend(group_records if top_k is None else group_records[:top_k])
    return records


def tfidf_records_to_frame(records: List[TfIdfRecord]) -> pd.DataFrame:
    """
    Convert TF-IDF records to a DataFrame with a per-group 1-based `rank`.

    Returns
    -------
    pandas.DataFrame
        Columns TFIDF_COLUMNS plus 'rank', in input order.
    """

    tfidf_df = pd.DataFrame.from_records([asdict(r) for r in records], columns=TFIDF_COLUMNS)
    tfidf_df["rank"] = tfidf_df.groupby("group", sort=False).cumcount() + 1
    return tfidf_df
