"""
Purpose
-------
Validate GloVe training on small synthetic co-occurrence matrices.

Key behaviors
-------------
- Two well separated word clusters end up with higher cosine similarity
  inside a cluster than across clusters.
- Training is reproducible for a fixed seed.
- Training stops early on the tolerance criterion or through the
  `should_stop` hook, and records its loss history.
- The returned vector table is read-only and rejects unknown words.

Conventions
-----------
- Matrices are built directly instead of from text, so the expected
  structure is explicit: within-cluster cells hold 50, cross-cluster cells
  hold 1.
- A tolerance of -inf disables the convergence criterion.

Downstream usage
----------------
Run with `pytest -q tests/test_glove`.
"""

from dataclasses import replace
from typing import List, Tuple

import numpy as np
import pytest
import scipy.sparse as sp

from glove.cooccurrence import Vocabulary
from glove.glove_config import GloveParameters
from glove.glove_training import WordVectorTable, glove_weights, train_glove
from glove.word_similarity import cosine_similarity
from speech_corpus.speech_corpus_errors import VocabularyMissError
from tests.test_speech_corpus.speech_corpus_testing_utils import DummyInfraLogger, as_logger

PEACE_CLUSTER: List[str] = ["peace", "security", "stability", "ceasefire"]
TRADE_CLUSTER: List[str] = ["trade", "market", "economy", "tariff"]
WITHIN_COUNT: float = 50.0
ACROSS_COUNT: float = 1.0

TRAINING_PARAMETERS = GloveParameters(
    min_term_count=1,
    vector_dim=8,
    max_iterations=400,
    convergence_tolerance=float("-inf"),
    batch_size=16,
)


@pytest.fixture
def clustered_input() -> Tuple[sp.csr_matrix, Vocabulary]:
    """
    Build a two-cluster co-occurrence matrix and its vocabulary.

    Returns
    -------
    tuple[scipy.sparse.csr_matrix, Vocabulary]
        Symmetric 8×8 counts with a zero diagonal.
    """
    words: List[str] = PEACE_CLUSTER + TRADE_CLUSTER
    vocabulary = Vocabulary.from_counts([(word, 100) for word in words])
    size: int = len(words)
    dense = np.full((size, size), ACROSS_COUNT)
    half: int = len(PEACE_CLUSTER)
    dense[:half, :half] = WITHIN_COUNT
    dense[half:, half:] = WITHIN_COUNT
    np.fill_diagonal(dense, 0.0)
    return sp.csr_matrix(dense), vocabulary


def test_glove_weights() -> None:
    weights = glove_weights(np.array([5.0, 10.0, 20.0]), x_max=10.0, alpha=0.75)
    assert weights == pytest.approx([0.5**0.75, 1.0, 1.0])


def test_train_glove_recovers_clusters(
    clustered_input: Tuple[sp.csr_matrix, Vocabulary],
) -> None:
    """
    Verify that every word is closer to its own cluster than to the other.

    Notes
    -----
    - The matrix cannot be fitted by biases alone because within- and
      cross-cluster cells have different counts, so the vectors must
      separate the clusters.
    """
    matrix, vocabulary = clustered_input
    table: WordVectorTable = train_glove(
        matrix,
        vocabulary,
        TRAINING_PARAMETERS,
        np.random.default_rng(42),
        as_logger(DummyInfraLogger()),
        group="USA",
    )

    assert table.vectors.shape == (8, 8)
    assert table.loss_history[-1] < table.loss_history[0]
    for cluster, other in [(PEACE_CLUSTER, TRADE_CLUSTER), (TRADE_CLUSTER, PEACE_CLUSTER)]:
        for word in cluster:
            worst_within = min(
                cosine_similarity(table.vector(word), table.vector(w))
                for w in cluster
                if w != word
            )
            best_across = max(
                cosine_similarity(table.vector(word), table.vector(w)) for w in other
            )
            assert worst_within > best_across


def test_train_glove_is_reproducible(
    clustered_input: Tuple[sp.csr_matrix, Vocabulary],
) -> None:
    matrix, vocabulary = clustered_input
    parameters = replace(TRAINING_PARAMETERS, max_iterations=20)
    logger = as_logger(DummyInfraLogger())

    first = train_glove(matrix, vocabulary, parameters, np.random.default_rng(3), logger)
    second = train_glove(matrix, vocabulary, parameters, np.random.default_rng(3), logger)
    other = train_glove(matrix, vocabulary, parameters, np.random.default_rng(4), logger)

    assert np.array_equal(first.vectors, second.vectors)
    assert first.loss_history == second.loss_history
    assert not np.array_equal(first.vectors, other.vectors)


def test_train_glove_stops_on_tolerance(
    clustered_input: Tuple[sp.csr_matrix, Vocabulary],
) -> None:
    matrix, vocabulary = clustered_input
    parameters = replace(TRAINING_PARAMETERS, max_iterations=100, convergence_tolerance=0.5)
    table = train_glove(
        matrix, vocabulary, parameters, np.random.default_rng(0), as_logger(DummyInfraLogger())
    )

    assert table.converged
    assert table.epochs_run < 100
    assert len(table.loss_history) == table.epochs_run


def test_train_glove_stop_hook(
    clustered_input: Tuple[sp.csr_matrix, Vocabulary],
) -> None:
    matrix, vocabulary = clustered_input
    seen_epochs: List[int] = []

    def stop_after_three(epoch: int, loss: float) -> bool:
        seen_epochs.append(epoch)
        return epoch >= 3

    dummy_logger = DummyInfraLogger()
    table = train_glove(
        matrix,
        vocabulary,
        TRAINING_PARAMETERS,
        np.random.default_rng(0),
        as_logger(dummy_logger),
        should_stop=stop_after_three,
    )

    assert seen_epochs == [1, 2, 3]
    assert table.epochs_run == 3
    assert not table.converged
    assert dummy_logger.events("DEBUG") == ["train_glove_epoch"] * 3


def test_train_glove_without_cooccurrences_keeps_initial_vectors() -> None:
    vocabulary = Vocabulary.from_counts([("solo", 10)])
    dummy_logger = DummyInfraLogger()
    table = train_glove(
        sp.csr_matrix((1, 1)),
        vocabulary,
        TRAINING_PARAMETERS,
        np.random.default_rng(0),
        as_logger(dummy_logger),
    )
    assert table.epochs_run == 0
    assert table.vectors.shape == (1, 8)
    assert "train_glove" in dummy_logger.events("WARNING")


def test_train_glove_shape_mismatch(clustered_input: Tuple[sp.csr_matrix, Vocabulary]) -> None:
    matrix, _ = clustered_input
    with pytest.raises(ValueError):
        train_glove(
            matrix,
            Vocabulary.from_counts([("peace", 5)]),
            TRAINING_PARAMETERS,
            np.random.default_rng(0),
            as_logger(DummyInfraLogger()),
        )


def test_word_vector_table_is_read_only() -> None:
    source_vectors = np.ones((2, 3))
    table = WordVectorTable(
        group="USA",
        vocabulary=Vocabulary.from_counts([("peace", 5), ("war", 5)]),
        vectors=source_vectors,
    )
    with pytest.raises(ValueError):
        table.vectors[0, 0] = 2.0
    source_vectors[0, 0] = 3.0
    assert source_vectors.flags.writeable
    assert table.vectors[0, 0] == 1.0
    with pytest.raises(VocabularyMissError) as exc_info:
        table.vector("trade")
    assert exc_info.value.group == "USA"
    assert isinstance(exc_info.value, KeyError)


def test_glove_parameters_validation() -> None:
    with pytest.raises(ValueError):
        GloveParameters(window_size=0)
    with pytest.raises(ValueError):
        GloveParameters(x_max=0.0)
