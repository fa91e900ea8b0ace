"""
Purpose
-------
Build the pruned vocabulary and the symmetric term-term co-occurrence
matrix of one group's token stream, the input of GloVe training.

Key behaviors
-------------
- Count token frequencies and keep words occurring at least
  `min_term_count` times, with dense ids assigned in first-encounter order.
- Scan the stream with a symmetric window; every pair of in-vocabulary
  tokens at distance 1..window_size adds 1 to both (i, j) and (j, i).
- Return the counts as a `scipy.sparse.csr_matrix`.

Conventions
-----------
- Windows are measured on original token positions: pruned words still
  occupy a position and therefore shorten the reach of a window.
- Pairs of the same word (same vocabulary id) are never counted, so the
  diagonal is zero.
- Counts are uniform per occurrence; there is no distance decay.

Downstream usage
----------------
`build_group_cooccurrence(tokens, parameters, logger)` →
`glove.glove_training.train_glove`.
"""

from collections import Counter
from dataclasses import dataclass
from typing import Dict, List, Sequence, Tuple

import numpy as np
import scipy.sparse as sp

from glove.glove_config import GloveParameters
from infra.logging.infra_logger import InfraLogger
from speech_corpus.speech_corpus_errors import EmptyVocabularyError


@dataclass(frozen=True)
class Vocabulary:
    """
    Purpose
    -------
    Pruned vocabulary of one group with a stable word → id mapping.

    Attributes
    ----------
    words : tuple[str, ...]
        Words by id; ids are dense `0..len(words) - 1`.
    counts : tuple[int, ...]
        Occurrences of each word in the token stream, aligned with `words`.
    index : dict[str, int]
        `word → id`.
    """

    words: Tuple[str, ...]
    counts: Tuple[int, ...]
    index: Dict[str, int]

    @classmethod
    def from_counts(cls, word_counts: Sequence[Tuple[str, int]]) -> "Vocabulary":
        words = tuple(word for word, _ in word_counts)
        if len(set(words)) != len(words):
            raise ValueError("Vocabulary words must be unique")
        return cls(
            words=words,
            counts=tuple(count for _, count in word_counts),
            index={word: i for i, word in enumerate(words)},
        )

    def __len__(self) -> int:
        return len(self.words)

    def __contains__(self, word: object) -> bool:
        return word in self.index


@dataclass(frozen=True)
class CooccurrenceResult:
    """
    Vocabulary and co-occurrence matrix of one group.

    Attributes
    ----------
    group : str
        Country group the stream belongs to.
    vocabulary : Vocabulary
        Pruned vocabulary indexing the matrix.
    matrix : scipy.sparse.csr_matrix
        Symmetric `len(vocabulary) × len(vocabulary)` counts.
    """

    group: str
    vocabulary: Vocabulary
    matrix: sp.csr_matrix


def build_vocabulary(tokens: Sequence[str], min_term_count: int) -> Vocabulary:
    """
    Keep the words of `tokens` occurring at least `min_term_count` times.

    Parameters
    ----------
    tokens : Sequence[str]
        Cleaned token stream of one group.
    min_term_count : int
        Pruning threshold (inclusive).

    Returns
    -------
    Vocabulary
        Surviving words with ids in first-encounter order.
    """
    token_counter: Counter[str] = Counter(tokens)
    return Vocabulary.from_counts(
        [(word, count) for word, count in token_counter.items() if count >= min_term_count]
    )


def build_cooccurrence_matrix(
    tokens: Sequence[str], vocabulary: Vocabulary, window_size: int
) -> sp.csr_matrix:
    """
    Count symmetric windowed co-occurrences of vocabulary words.

    Parameters
    ----------
    tokens : Sequence[str]
        Cleaned token stream of one group.
    vocabulary : Vocabulary
        Pruned vocabulary; out-of-vocabulary tokens are skipped but keep
        their positions.
    window_size : int
        Maximal distance, in positions, between co-occurring tokens.

    Returns
    -------
    scipy.sparse.csr_matrix
        float64 counts with `matrix[i, j] == matrix[j, i]` and a zero diagonal.

    Notes
    -----
    - Each offset 1..window_size is processed as one vectorised pass over
      the id array; duplicate (i, j) entries are summed on CSR conversion.
    """

    size: int = len(vocabulary)
    token_ids: np.ndarray = np.fromiter(
        (vocabulary.index.get(token, -1) for token in tokens), dtype=np.int64, count=len(tokens)
    )
    rows: List[np.ndarray] = []
    cols: List[np.ndarray] = []
    for offset in range(1, min(window_size, len(token_ids) - 1) + 1):
        left: np.ndarray = token_ids[:-offset]
        right: np.ndarray = token_ids[offset:]
        pair_mask: np.ndarray = (left >= 0) & (right >= 0) & (left != right)
        rows.extend([left[pair_mask], right[pair_mask]])
        cols.extend([right[pair_mask], left[pair_mask]])

    if not rows:
        return sp.csr_matrix((size, size), dtype=np.float64)
    row_ids = np.concatenate(rows)
    col_ids = np.concatenate(cols)
    matrix = sp.coo_matrix(
        (np.ones(len(row_ids), dtype=np.float64), (row_ids, col_ids)), shape=(size, size)
    ).tocsr()
    matrix.sum_duplicates()
    return matrix


def summarize_vocabulary(tokens: Sequence[str], vocabulary: Vocabulary) -> Dict[str, float]:
    """
    Before/after pruning diagnostics for one token stream.

    Returns
    -------
    dict[str, float]
        Keys 'token_count', 'vocab_size_before', 'vocab_size_after',
        'tokens_removed' and 'fraction_removed'.
    """
    vocab_size_before: int = len(set(tokens))
    vocab_size_after: int = len(vocabulary)
    removed: int = vocab_size_before - vocab_size_after
    return {
        "token_count": len(tokens),
        "vocab_size_before": vocab_size_before,
        "vocab_size_after": vocab_size_after,
        "tokens_removed": removed,
        "fraction_removed": removed / vocab_size_before if vocab_size_before else 0.0,
    }


def build_group_cooccurrence(
    group: str,
    tokens: Sequence[str],
    parameters: GloveParameters,
    logger: InfraLogger,
) -> CooccurrenceResult:
    """
    Prune the vocabulary of one group and build its co-occurrence matrix.

    Parameters
    ----------
    group : str
        Country group the stream belongs to.
    tokens : Sequence[str]
        Cleaned token stream from `glove.text_normalization`.
    parameters : GloveParameters
        Supplies `min_term_count` and `window_size`.
    logger : InfraLogger
        Receives the vocabulary summary and matrix density.

    Returns
    -------
    CooccurrenceResult

    Raises
    ------
    EmptyVocabularyError
        If no word reaches `min_term_count`.
    """

    vocabulary: Vocabulary = build_vocabulary(tokens, parameters.min_term_count)
    logger.info(
        event="build_vocabulary",
        msg=f"Vocabulary summary (min term count = {parameters.min_term_count})",
        context=summarize_vocabulary(tokens, vocabulary),
    )
    if not len(vocabulary):
        raise EmptyVocabularyError(
            f"No word of group {group} occurs at least {parameters.min_term_count} times "
            f"({len(tokens)} tokens)"
        )
    matrix: sp.csr_matrix = build_cooccurrence_matrix(tokens, vocabulary, parameters.window_size)
    logger.info(
        event="build_cooccurrence_matrix",
        msg=f"Built {matrix.shape[0]}x{matrix.shape[1]} co-occurrence matrix",
        context={"non_zero_cells": int(matrix.nnz), "window_size": parameters.window_size},
    )
    return CooccurrenceResult(group=group, vocabulary=vocabulary, matrix=matrix)
