"""
Purpose
-------
Centralize configuration for the embedding branch: vocabulary pruning,
co-occurrence windowing, GloVe optimisation, and nearest-neighbour queries.

Key behaviors
-------------
- Expose the defaults used for the speech corpus as module constants.
- Bundle them into frozen dataclasses (`GloveParameters`,
  `QueryParameters`) that are passed explicitly to every operation.

Conventions
-----------
- `MIN_TERM_COUNT` prunes on raw occurrences within one group's token stream.
- `WINDOW_SIZE` is symmetric: tokens up to that many positions on either
  side co-occur, each pair occurrence adding weight 1.
- `X_MAX` and `WEIGHTING_ALPHA` define the GloVe weight
  f(x) = min(1, (x / X_MAX) ** WEIGHTING_ALPHA).
- Training stops after `MAX_ITERATIONS` epochs or once the relative
  improvement of the weighted loss falls below `CONVERGENCE_TOLERANCE`.
- `DEFAULT_SEED` makes notebook runs reproducible; tests pass their own
  `numpy.random.Generator`.

Downstream usage
----------------
Import the dataclasses from notebooks and from
`notebooks_utils.speech_analysis_utils`; override individual fields with
`dataclasses.replace` rather than editing the constants.
"""

from dataclasses import dataclass, field
from typing import Tuple

MIN_TERM_COUNT: int = 5

WINDOW_SIZE: int = 10

VECTOR_DIM: int = 50

X_MAX: float = 10.0

WEIGHTING_ALPHA: float = 0.75

MAX_ITERATIONS: int = 100

CONVERGENCE_TOLERANCE: float = 1e-5

LEARNING_RATE: float = 0.15

BATCH_SIZE: int = 4096

DEFAULT_SEED: int = 42

TOP_N: int = 10

DEFAULT_QUERY_WORDS: Tuple[str, ...] = ("terrorism", "security", "peace", "development")


@dataclass(frozen=True)
class GloveParameters:
    """
    Parameters of vocabulary pruning, co-occurrence counting and training.

    Attributes
    ----------
    min_term_count : int
        Minimum occurrences for a word to enter the vocabulary.
    window_size : int
        Symmetric co-occurrence window, in token positions.
    vector_dim : int
        Embedding dimensionality.
    x_max : float
        Count at which the GloVe weight saturates at 1.
    alpha : float
        Exponent of the GloVe weighting function.
    max_iterations : int
        Upper bound on training epochs.
    convergence_tolerance : float
        Relative loss improvement under which training stops.
    learning_rate : float
        AdaGrad base learning rate.
    batch_size : int
        Co-occurrence cells per vectorised AdaGrad step.
    """

    min_term_count: int = MIN_TERM_COUNT
    window_size: int = WINDOW_SIZE
    vector_dim: int = VECTOR_DIM
    x_max: float = X_MAX
    alpha: float = WEIGHTING_ALPHA
    max_iterations: int = MAX_ITERATIONS
    convergence_tolerance: float = CONVERGENCE_TOLERANCE
    learning_rate: float = LEARNING_RATE
    batch_size: int = BATCH_SIZE

    def __post_init__(self) -> None:
        if self.min_term_count < 1:
            raise ValueError("min_term_count must be at least 1")
        if self.window_size < 1:
            raise ValueError("window_size must be at least 1")
        if self.vector_dim < 1:
            raise ValueError("vector_dim must be at least 1")
        if self.x_max <= 0:
            raise ValueError("x_max must be positive")
        if self.max_iterations < 1:
            raise ValueError("max_iterations must be at least 1")
        if self.batch_size < 1:
            raise ValueError("batch_size must be at least 1")


@dataclass(frozen=True)
class QueryParameters:
    """
    Nearest-neighbour query settings.

    Attributes
    ----------
    query_words : tuple[str, ...]
        Words to look up in every group's vector table.
    top_n : int
        Neighbours returned per query.
    include_query : bool
        Whether the query word itself (similarity 1.0) is part of the ranking.
    """

    query_words: Tuple[str, ...] = field(default=DEFAULT_QUERY_WORDS)
    top_n: int = TOP_N
    include_query: bool = True
