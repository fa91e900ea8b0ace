"""
Purpose
-------
Validate vocabulary pruning and windowed co-occurrence counting.

Key behaviors
-------------
- Vocabulary ids are dense, follow first-encounter order, and only words
  reaching `min_term_count` survive.
- The co-occurrence matrix is symmetric with a zero diagonal and counts
  each pair occurrence within the window once per direction.
- Pruned words keep their token positions.
- An empty vocabulary raises `EmptyVocabularyError`.

Conventions
-----------
- Matrices are compared densely via `.toarray()`; they are tiny here.

Downstream usage
----------------
Run with `pytest -q tests/test_glove`.
"""

from typing import List

import numpy as np
import pytest

from glove.cooccurrence import (
    build_cooccurrence_matrix,
    build_group_cooccurrence,
    build_vocabulary,
    summarize_vocabulary,
)
from glove.glove_config import GloveParameters
from speech_corpus.speech_corpus_errors import EmptyVocabularyError
from tests.test_speech_corpus.speech_corpus_testing_utils import DummyInfraLogger, as_logger


def test_build_vocabulary_prunes_and_orders() -> None:
    tokens: List[str] = ["war", "peace", "peace", "trade", "war", "peace"]
    vocabulary = build_vocabulary(tokens, min_term_count=2)

    assert vocabulary.words == ("war", "peace")
    assert vocabulary.counts == (2, 3)
    assert vocabulary.index == {"war": 0, "peace": 1}
    assert "trade" not in vocabulary
    assert len(vocabulary) == 2


def test_window_one_scenario() -> None:
    """
    Tokens "a b c b a" with window 1: (a, b) and (b, c) are each seen twice.
    """
    tokens: List[str] = "a b c b a".split()
    vocabulary = build_vocabulary(tokens, min_term_count=1)
    dense = build_cooccurrence_matrix(tokens, vocabulary, window_size=1).toarray()
    a, b, c = (vocabulary.index[w] for w in "abc")

    assert dense[a, b] == dense[b, a] == 2.0
    assert dense[b, c] == dense[c, b] == 2.0
    assert dense[a, c] == 0.0
    assert np.all(np.diag(dense) == 0.0)


def test_window_two_adds_distance_two_pairs() -> None:
    tokens: List[str] = "a b c b a".split()
    vocabulary = build_vocabulary(tokens, min_term_count=1)
    dense = build_cooccurrence_matrix(tokens, vocabulary, window_size=2).toarray()
    a, b, c = (vocabulary.index[w] for w in "abc")

    assert dense[a, c] == 2.0
    assert dense[a, b] == 2.0
    # b at positions 1 and 3 is a same-word pair
    assert dense[b, b] == 0.0


def test_pruned_tokens_keep_their_positions() -> None:
    tokens: List[str] = ["a", "x", "b", "a", "b"]
    vocabulary = build_vocabulary(tokens, min_term_count=2)
    a, b = vocabulary.index["a"], vocabulary.index["b"]

    window_one = build_cooccurrence_matrix(tokens, vocabulary, window_size=1).toarray()
    window_two = build_cooccurrence_matrix(tokens, vocabulary, window_size=2).toarray()
    assert window_one[a, b] == 2.0
    assert window_two[a, b] == 3.0


def test_matrix_is_symmetric_on_random_stream() -> None:
    rng = np.random.default_rng(7)
    tokens: List[str] = [f"w{i}" for i in rng.integers(0, 30, size=2000)]
    vocabulary = build_vocabulary(tokens, min_term_count=5)
    matrix = build_cooccurrence_matrix(tokens, vocabulary, window_size=10)

    assert matrix.shape == (len(vocabulary), len(vocabulary))
    assert (matrix - matrix.T).nnz == 0
    assert np.all(matrix.diagonal() == 0.0)
    assert matrix.min() >= 0.0


def test_short_streams_give_empty_matrix() -> None:
    vocabulary = build_vocabulary(["solo"], min_term_count=1)
    matrix = build_cooccurrence_matrix(["solo"], vocabulary, window_size=10)
    assert matrix.shape == (1, 1)
    assert matrix.nnz == 0


def test_summarize_vocabulary() -> None:
    tokens: List[str] = ["a", "a", "b", "c"]
    summary = summarize_vocabulary(tokens, build_vocabulary(tokens, min_term_count=2))
    assert summary["token_count"] == 4
    assert summary["vocab_size_before"] == 3
    assert summary["vocab_size_after"] == 1
    assert summary["fraction_removed"] == pytest.approx(2 / 3)


def test_build_group_cooccurrence() -> None:
    dummy_logger = DummyInfraLogger()
    tokens: List[str] = "peace and security and peace and security".split()
    result = build_group_cooccurrence(
        "USA", tokens, GloveParameters(min_term_count=2, window_size=2), as_logger(dummy_logger)
    )

    assert result.group == "USA"
    assert result.vocabulary.words == ("peace", "and", "security")
    assert result.matrix.shape == (3, 3)
    assert dummy_logger.events("INFO") == ["build_vocabulary", "build_cooccurrence_matrix"]


def test_build_group_cooccurrence_empty_vocabulary() -> None:
    with pytest.raises(EmptyVocabularyError, match="USA"):
        build_group_cooccurrence(
            "USA",
            ["rare", "words", "only"],
            GloveParameters(min_term_count=5),
            as_logger(DummyInfraLogger()),
        )
