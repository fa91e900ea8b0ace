"""
Purpose
-------
Answer nearest-neighbour questions against a trained `WordVectorTable`:
which words of a group's vocabulary sit closest, by cosine similarity, to a
given query word.

Key behaviors
-------------
- `cosine_similarity` for two vectors, refusing zero-norm input.
- `most_similar` ranks the whole vocabulary against one query word.
- `query_many` runs several queries and records per-query failures instead
  of aborting.

Conventions
-----------
- Ranking is by descending similarity; ties keep vocabulary id order.
- The query word is part of its own ranking by default, with similarity
  exactly 1.0.
- Rows with a zero norm cannot be compared; they are dropped from the
  ranking and reported with a warning.
- Ranks are invariant to positive rescaling of the vectors.

Downstream usage
----------------
Called per group by `notebooks_utils.speech_analysis_utils`; the notebook
renders `neighbors_to_frame` output side by side across groups.
"""

from dataclasses import asdict, dataclass
from typing import Iterable, List, Optional, Tuple

import numpy as np
import pandas as pd

from glove.glove_config import TOP_N
from glove.glove_training import WordVectorTable
from infra.logging.infra_logger import InfraLogger
from speech_corpus.speech_corpus_errors import NumericDegeneracyError, VocabularyMissError

NEIGHBOR_COLUMNS: List[str] = ["group", "query_word", "rank", "word", "similarity"]


@dataclass(frozen=True)
class NeighborRecord:
    group: str
    query_word: str
    rank: int
    word: str
    similarity: float


@dataclass(frozen=True)
class QueryFailure:
    """A query that could not be answered, with the exception type and message."""

    group: str
    query_word: str
    error_type: str
    message: str


def cosine_similarity(v1: np.ndarray, v2: np.ndarray) -> float:
    """
    Cosine of the angle between two vectors.

    Raises
    ------
    NumericDegeneracyError
        If either vector has zero norm.
    """
    norm_product = float(np.linalg.norm(v1) * np.linalg.norm(v2))
    if norm_product == 0.0:
        raise NumericDegeneracyError("Cosine similarity is undefined for a zero-norm vector")
    return float(np.dot(v1, v2) / norm_product)


def most_similar(
    table: WordVectorTable,
    query_word: str,
    top_n: int = TOP_N,
    include_query: bool = True,
    logger: Optional[InfraLogger] = None,
) -> List[Tuple[str, float]]:
    """
    Rank the vocabulary by cosine similarity to `query_word`.

    Parameters
    ----------
    table : WordVectorTable
        Trained vectors of one group.
    query_word : str
        Word to look up; must be in `table.vocabulary`.
    top_n : int, default TOP_N
        Maximum number of `(word, similarity)` pairs returned.
    include_query : bool, default True
        Keep the query word itself (similarity 1.0) in the ranking.
    logger : InfraLogger, optional
        Receives a warning when zero-norm rows are dropped.

    Returns
    -------
    list[tuple[str, float]]
        At most `top_n` pairs, descending similarity.

    Raises
    ------
    VocabularyMissError
        If `query_word` is not in the vocabulary.
    NumericDegeneracyError
        If the query word's vector has zero norm.
    """

    query_vector: np.ndarray = table.vector(query_word)
    query_id: int = table.vocabulary.index[query_word]
    norms: np.ndarray = np.linalg.norm(table.vectors, axis=1)
    if norms[query_id] == 0.0:
        raise NumericDegeneracyError(
            f"Vector of '{query_word}' in group {table.group} has zero norm"
        )

    valid: np.ndarray = norms > 0.0
    n_degenerate = int((~valid).sum())
    if n_degenerate and logger is not None:
        logger.warning(
            event="most_similar",
            msg=f"Dropped {n_degenerate} zero-norm vectors from the ranking",
            context={"group": table.group, "query_word": query_word},
        )

    similarities = np.full(len(norms), -np.inf)
    similarities[valid] = (table.vectors[valid] @ query_vector) / (
        norms[valid] * norms[query_id]
    )
    similarities[query_id] = 1.0
    if not include_query:
        valid[query_id] = False

    ranked_ids = [i for i in np.argsort(-similarities, kind="stable") if valid[i]]
    return [(table.vocabulary.words[i], float(similarities[i])) for i in ranked_ids[:top_n]]


def query_many(
    table: WordVectorTable,
    query_words: Iterable[str],
    top_n: int = TOP_N,
    include_query: bool = True,
    logger: Optional[InfraLogger] = None,
) -> Tuple[List[NeighborRecord], List[QueryFailure]]:
    """
    Run `most_similar` for every query word of one group.

    Returns
    -------
    tuple[list[NeighborRecord], list[QueryFailure]]
        Ranked neighbours of the answerable queries, and one failure per
        query that raised `VocabularyMissError` or `NumericDegeneracyError`.
    """

    records: List[NeighborRecord] = []
    failures: List[QueryFailure] = []
    for query_word in query_words:
        try:
            neighbors = most_similar(table, query_word, top_n, include_query, logger)
        except (VocabularyMissError, NumericDegeneracyError) as e:
            if logger is not None:
                logger.warning(
                    event="query_many",
                    msg=str(e),
                    context={"group": table.group, "query_word": query_word},
                )
            failures.append(
                QueryFailure(
                    group=table.group,
                    query_word=query_word,
                    error_type=type(e).__name__,
                    message=str(e),
                )
            )
            continue
        records.extend(
            NeighborRecord(table.group, query_word, rank, word, similarity)
            for rank, (word, similarity) in enumerate(neighbors, start=1)
        )
    return records, failures


def neighbors_to_frame(records: List[NeighborRecord]) -> pd.DataFrame:
    return pd.DataFrame.from_records([asdict(r) for r in records], columns=NEIGHBOR_COLUMNS)
