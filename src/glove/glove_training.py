"""
Purpose
-------
Fit GloVe word vectors to one group's co-occurrence matrix with AdaGrad and
package them, together with training diagnostics, as a read-only
`WordVectorTable`.

Key behaviors
-------------
- Minimize the weighted least-squares objective
  Σ f(X_ij) (w_i · c_j + b_i + b̃_j − ln X_ij)² over the non-zero cells,
  with f(x) = min(1, (x / x_max) ** alpha).
- Visit the cells in a fresh random order every epoch, in vectorised
  mini-batches of `batch_size` cells.
- Stop after `max_iterations` epochs, when the relative improvement of the
  epoch loss falls below `convergence_tolerance`, or when an optional
  `should_stop(epoch, loss)` hook returns True.
- Publish `main + context` vectors as the final embedding.

Conventions
-----------
- All randomness (initialisation and shuffling) comes from the injected
  `numpy.random.Generator`; the same seed and inputs give bit-identical
  vectors.
- Parameters start uniform in [-0.5, 0.5) / vector_dim; AdaGrad squared
  gradient accumulators start at 1.
- The reported epoch loss is half the weighted squared error, summed over
  the batches of that epoch.

Downstream usage
----------------
`train_glove(result.matrix, result.vocabulary, parameters, rng, logger)` →
`glove.word_similarity.most_similar`.
"""

from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple

import numpy as np
import scipy.sparse as sp

from glove.cooccurrence import Vocabulary
from glove.glove_config import GloveParameters
from infra.logging.infra_logger import InfraLogger
from speech_corpus.speech_corpus_errors import VocabularyMissError

StopHook = Callable[[int, float], bool]


@dataclass(frozen=True)
class WordVectorTable:
    """
    Purpose
    -------
    Trained embedding of one group's vocabulary.

    Attributes
    ----------
    group : str
        Country group the vectors were trained on.
    vocabulary : Vocabulary
        Row `i` of `vectors` belongs to `vocabulary.words[i]`.
    vectors : numpy.ndarray
        Read-only `(len(vocabulary), vector_dim)` float64 array.
    epochs_run : int
        Epochs actually executed.
    loss_history : tuple[float, ...]
        Loss after each epoch.
    converged : bool
        True when training stopped on the tolerance criterion.

    Notes
    -----
    - The table never changes after construction. `__post_init__` stores a
      read-only float64 copy, so the caller's array stays writable.
    """

    group: str
    vocabulary: Vocabulary
    vectors: np.ndarray
    epochs_run: int = 0
    loss_history: Tuple[float, ...] = ()
    converged: bool = False

    def __post_init__(self) -> None:
        if self.vectors.shape[0] != len(self.vocabulary):
            raise ValueError(
                f"{self.vectors.shape[0]} vectors for a vocabulary of {len(self.vocabulary)} words"
            )
        vectors = np.array(self.vectors, dtype=np.float64, copy=True)
        vectors.setflags(write=False)
        object.__setattr__(self, "vectors", vectors)

    def vector(self, word: str) -> np.ndarray:
        """Vector of `word`; raises VocabularyMissError when it was pruned or never seen."""
        if word not in self.vocabulary:
            raise VocabularyMissError(word, self.group)
        return self.vectors[self.vocabulary.index[word]]


def glove_weights(counts: np.ndarray, x_max: float, alpha: float) -> np.ndarray:
    """GloVe weighting f(x) = min(1, (x / x_max) ** alpha), elementwise."""
    return np.minimum(1.0, (counts / x_max) ** alpha)


def _adagrad_step(
    params: np.ndarray,
    grad_sq: np.ndarray,
    ids: np.ndarray,
    grads: np.ndarray,
    learning_rate: float,
) -> None:
    """Apply one AdaGrad update in place; repeated ids accumulate."""
    np.add.at(params, ids, -learning_rate * grads / np.sqrt(grad_sq[ids]))
    np.add.at(grad_sq, ids, grads**2)


def train_glove(
    cooccurrence: sp.spmatrix,
    vocabulary: Vocabulary,
    parameters: GloveParameters,
    rng: np.random.Generator,
    logger: InfraLogger,
    should_stop: Optional[StopHook] = None,
    group: str = "",
) -> WordVectorTable:
    """
    Train GloVe vectors on a co-occurrence matrix.

    Parameters
    ----------
    cooccurrence : scipy.sparse.spmatrix
        Square non-negative counts indexed by vocabulary id.
    vocabulary : Vocabulary
        Vocabulary the matrix is indexed by.
    parameters : GloveParameters
        Dimensionality, weighting, and optimisation settings.
    rng : numpy.random.Generator
        Source of initialisation and shuffling randomness.
    logger : InfraLogger
        Receives one DEBUG entry per epoch and one INFO summary.
    should_stop : Callable[[int, float], bool], optional
        Called after each epoch with `(epoch, loss)`; returning True ends
        training early.
    group : str, default ""
        Group name stored on the returned table.

    Returns
    -------
    WordVectorTable
        Vectors `main + context` and training diagnostics.

    Raises
    ------
    ValueError
        If the matrix shape does not match the vocabulary.

    Notes
    -----
    - A matrix without non-zero cells (e.g. a one-word vocabulary) leaves
      the initial vectors untouched and is reported with a warning.
    """

    size: int = len(vocabulary)
    if cooccurrence.shape != (size, size):
        raise ValueError(
            f"Co-occurrence shape {cooccurrence.shape} does not match vocabulary size {size}"
        )
    dim: int = parameters.vector_dim

    main = (rng.random((size, dim)) - 0.5) / dim
    context = (rng.random((size, dim)) - 0.5) / dim
    main_bias = (rng.random(size) - 0.5) / dim
    context_bias = (rng.random(size) - 0.5) / dim
    grad_sq_main = np.ones((size, dim))
    grad_sq_context = np.ones((size, dim))
    grad_sq_main_bias = np.ones(size)
    grad_sq_context_bias = np.ones(size)

    cells = sp.coo_matrix(cooccurrence)
    positive = cells.data > 0
    row_ids: np.ndarray = cells.row[positive].astype(np.int64)
    col_ids: np.ndarray = cells.col[positive].astype(np.int64)
    counts: np.ndarray = cells.data[positive].astype(np.float64)
    log_counts: np.ndarray = np.log(counts)
    weights: np.ndarray = glove_weights(counts, parameters.x_max, parameters.alpha)
    n_cells: int = len(counts)

    loss_history: List[float] = []
    converged: bool = False
    if n_cells == 0:
        logger.warning(
            event="train_glove",
            msg="Co-occurrence matrix has no non-zero cells; vectors keep their initial values",
            context={"vocab_size": size},
        )
    n_epochs: int = parameters.max_iterations if n_cells else 0
    for epoch in range(1, n_epochs + 1):
        epoch_loss: float = 0.0
        order: np.ndarray = rng.permutation(n_cells)
        for start in range(0, n_cells, parameters.batch_size):
            batch = order[start : start + parameters.batch_size]
            i = row_ids[batch]
            j = col_ids[batch]
            diff = (
                np.einsum("ij,ij->i", main[i], context[j])
                + main_bias[i]
                + context_bias[j]
                - log_counts[batch]
            )
            weighted_diff = weights[batch] * diff
            epoch_loss += 0.5 * float(np.dot(weighted_diff, diff))

            grad_main = weighted_diff[:, None] * context[j]
            grad_context = weighted_diff[:, None] * main[i]
            _adagrad_step(main, grad_sq_main, i, grad_main, parameters.learning_rate)
            _adagrad_step(context, grad_sq_context, j, grad_context, parameters.learning_rate)
            _adagrad_step(main_bias, grad_sq_main_bias, i, weighted_diff, parameters.learning_rate)
            _adagrad_step(
                context_bias, grad_sq_context_bias, j, weighted_diff, parameters.learning_rate
            )

        previous_loss: float | None = loss_history[-1] if loss_history else None
        loss_history.append(epoch_loss)
        logger.debug(
            event="train_glove_epoch",
            msg=f"Epoch {epoch} loss {epoch_loss:.6f}",
            context={"epoch": epoch, "loss": epoch_loss},
        )
        if not np.isfinite(epoch_loss):
            logger.warning(
                event="train_glove",
                msg="Loss is no longer finite; stopping early",
                context={"epoch": epoch, "learning_rate": parameters.learning_rate},
            )
            break
        if previous_loss is not None:
            if previous_loss == 0.0 or (
                (previous_loss - epoch_loss) / previous_loss < parameters.convergence_tolerance
            ):
                converged = True
                break
        if should_stop is not None and should_stop(epoch, epoch_loss):
            logger.info(
                event="train_glove",
                msg=f"Stop hook ended training after epoch {epoch}",
                context={"epoch": epoch},
            )
            break

    logger.info(
        event="train_glove",
        msg=f"Trained {size} vectors of dimension {dim}",
        context={
            "epochs_run": len(loss_history),
            "final_loss": loss_history[-1] if loss_history else None,
            "converged": converged,
            "non_zero_cells": n_cells,
        },
    )
    return WordVectorTable(
        group=group,
        vocabulary=vocabulary,
        vectors=main + context,
        epochs_run=len(loss_history),
        loss_history=tuple(loss_history),
        converged=converged,
    )
