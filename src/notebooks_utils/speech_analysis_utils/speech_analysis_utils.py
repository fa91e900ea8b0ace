"""
Purpose
-------
Wire the corpus loader, the TF-IDF branch and the per-group embedding
branch into one analysis run whose results are pandas DataFrames ready for
the speech-analysis notebook or for CSV export.

Key behaviors
-------------
- TF-IDF branch: count terms over the whole filtered corpus and rank the
  most distinctive words of every group.
- Embedding branch, once per group: normalize text, build the pruned
  vocabulary and co-occurrence matrix, train GloVe vectors, and run the
  configured nearest-neighbour queries.
- Isolate failures: a group that cannot be loaded, pruned, or trained, and
  a query word that cannot be answered, become rows of a failure table; the
  other groups and queries still run.
- Optionally fan the embedding branch out over a `ProcessPoolExecutor`.

Conventions
-----------
- Every group trains with its own `numpy.random.default_rng(seed)`, so the
  vectors of a group do not depend on which other groups were loaded, nor
  on whether the run was sequential or parallel.
- Worker processes receive only their own group's sub-corpus and
  re-initialize their own logger with the parent's run_id and run_meta.
- Failure rows carry `(group, stage, query_word, error_type, message)`;
  `stage` is one of "load", "tfidf", "embedding", "query".

Downstream usage
----------------
Notebooks call `run_speech_analysis` and display the returned frames;
`speech_analysis_orchestrator` additionally calls `export_analysis`.
"""

from concurrent.futures import Future, ProcessPoolExecutor
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import numpy as np
import pandas as pd

from glove.cooccurrence import CooccurrenceResult, build_group_cooccurrence
from glove.glove_config import DEFAULT_SEED, GloveParameters, QueryParameters
from glove.glove_training import WordVectorTable, train_glove
from glove.text_normalization import build_group_token_streams
from glove.word_similarity import NeighborRecord, neighbors_to_frame, query_many
from infra.logging.infra_logger import InfraLogger, initialize_logger
from notebooks_utils.speech_analysis_utils.speech_analysis_config import (
    CORPUS_SUMMARY_FILENAME,
    DEFAULT_WORKER_COUNT,
    FAILURES_FILENAME,
    NEIGHBORS_FILENAME,
    TFIDF_FILENAME,
)
from speech_corpus.speech_corpus_errors import EmptyCorpusError
from speech_corpus.speech_corpus_loader import (
    load_speeches,
    missing_groups,
    split_by_group,
    summarize_corpus,
)
from speech_corpus.speech_corpus_types import Corpus, CorpusFilter
from tfidf.term_counting import count_terms
from tfidf.tfidf_config import TfIdfParameters
from tfidf.tfidf_scoring import groups_without_tokens, score_tfidf, tfidf_records_to_frame

FAILURE_COLUMNS: List[str] = ["group", "stage", "query_word", "error_type", "message"]


@dataclass(frozen=True)
class AnalysisFailure:
    """One group or query the run could not complete."""

    group: str
    stage: str
    error_type: str
    message: str
    query_word: Optional[str] = None


@dataclass
class GroupEmbeddingResult:
    """
    Purpose
    -------
    Output of the embedding branch for one group.

    Attributes
    ----------
    group : str
        Country group.
    table : WordVectorTable
        Trained vectors and training diagnostics.
    neighbors : list[NeighborRecord]
        Ranked neighbours of every answerable query word.
    failures : list[AnalysisFailure]
        One "query" failure per query word that could not be answered.
    """

    group: str
    table: WordVectorTable
    neighbors: List[NeighborRecord] = field(default_factory=list)
    failures: List[AnalysisFailure] = field(default_factory=list)


@dataclass
class SpeechAnalysisResult:
    """
    Purpose
    -------
    Everything one analysis run produces, as notebook-ready tables.

    Attributes
    ----------
    corpus_summary : pandas.DataFrame
        Output of `summarize_corpus`.
    tfidf : pandas.DataFrame
        Ranked TF-IDF records with a per-group `rank`.
    neighbors : pandas.DataFrame
        Columns NEIGHBOR_COLUMNS.
    failures : pandas.DataFrame
        Columns FAILURE_COLUMNS; empty when everything succeeded.
    tables : dict[str, WordVectorTable]
        Trained vectors per group, for ad-hoc queries in the notebook.
    """

    corpus_summary: pd.DataFrame
    tfidf: pd.DataFrame
    neighbors: pd.DataFrame
    failures: pd.DataFrame
    tables: Dict[str, WordVectorTable] = field(default_factory=dict)


def run_tfidf_branch(
    corpus: Corpus, tfidf_parameters: TfIdfParameters, logger: InfraLogger
) -> Tuple[pd.DataFrame, List[AnalysisFailure]]:
    """
    Rank the most distinctive words of every group in `corpus`.

    Returns
    -------
    tuple[pandas.DataFrame, list[AnalysisFailure]]
        Ranked records of the groups that have tokens, and one "tfidf"
        failure per group whose text produced no token.
    """

    term_counts = count_terms(corpus)
    logger.info(
        event="run_tfidf_branch",
        msg=f"Counted {len(term_counts.word_order)} distinct words",
        context={
            "groups": term_counts.groups,
            "total_tokens": dict(term_counts.group_total_counter),
        },
    )
    failures: List[AnalysisFailure] = []
    for group in groups_without_tokens(term_counts):
        message = f"Group {group} has no tokens; term frequency is undefined"
        logger.error(event="run_tfidf_branch", msg=message)
        failures.append(
            AnalysisFailure(
                group=group,
                stage="tfidf",
                error_type=EmptyCorpusError.__name__,
                message=message,
            )
        )
    tfidf_df = tfidf_records_to_frame(score_tfidf(term_counts, tfidf_parameters.top_k))
    return tfidf_df, failures


def analyze_group_embeddings(
    group: str,
    group_corpus: Corpus,
    glove_parameters: GloveParameters,
    query_parameters: QueryParameters,
    seed: int,
    logger: InfraLogger,
) -> GroupEmbeddingResult:
    """
    Run normalization, co-occurrence, training and queries for one group.

    Parameters
    ----------
    group : str
        Country group; `group_corpus` must only hold its documents.
    group_corpus : Corpus
        The group's slice of the filtered corpus.
    glove_parameters : GloveParameters
        Pruning, windowing and training settings.
    query_parameters : QueryParameters
        Query words and ranking settings.
    seed : int
        Seed of the group's `numpy.random.Generator`.
    logger : InfraLogger
        Logger already bound to the group.

    Returns
    -------
    GroupEmbeddingResult

    Raises
    ------
    EmptyVocabularyError
        If no word of the group survives pruning.
    """

    tokens: List[str] = build_group_token_streams(group_corpus).get(group, [])
    cooccurrence: CooccurrenceResult = build_group_cooccurrence(
        group, tokens, glove_parameters, logger
    )
    table: WordVectorTable = train_glove(
        cooccurrence.matrix,
        cooccurrence.vocabulary,
        glove_parameters,
        np.random.default_rng(seed),
        logger,
        group=group,
    )
    neighbors, query_failures = query_many(
        table,
        query_parameters.query_words,
        top_n=query_parameters.top_n,
        include_query=query_parameters.include_query,
        logger=logger,
    )
    return GroupEmbeddingResult(
        group=group,
        table=table,
        neighbors=neighbors,
        failures=[
            AnalysisFailure(
                group=f.group,
                stage="query",
                error_type=f.error_type,
                message=f.message,
                query_word=f.query_word,
            )
            for f in query_failures
        ],
    )


def run_group_safely(
    group: str,
    group_corpus: Corpus,
    glove_parameters: GloveParameters,
    query_parameters: QueryParameters,
    seed: int,
    logger: InfraLogger,
) -> Tuple[Optional[GroupEmbeddingResult], Optional[AnalysisFailure]]:
    """
    Run `analyze_group_embeddings` and turn any exception into a failure record.

    Returns
    -------
    tuple[GroupEmbeddingResult | None, AnalysisFailure | None]
        Exactly one of the two is None.
    """

    try:
        return (
            analyze_group_embeddings(
                group, group_corpus, glove_parameters, query_parameters, seed, logger
            ),
            None,
        )
    except Exception as e:  # pylint: disable=W0718
        logger.error(
            event="run_group_safely",
            msg=f"Embedding branch failed for group {group}: {type(e).__name__}: {e}",
        )
        return None, AnalysisFailure(
            group=group, stage="embedding", error_type=type(e).__name__, message=str(e)
        )


def run_group_worker(
    group: str,
    group_corpus: Corpus,
    glove_parameters: GloveParameters,
    query_parameters: QueryParameters,
    seed: int,
    logger_level: str,
    run_id: str,
    run_meta: Optional[dict] = None,
) -> Tuple[Optional[GroupEmbeddingResult], Optional[AnalysisFailure]]:
    """
    Process-pool entry point: re-initialize logging with the parent's run_id
    and run_meta plus the group, then run one group.
    """

    logger: InfraLogger = initialize_logger(
        component_name="speech_analysis_group",
        level=logger_level,
        run_id=run_id,
        run_meta={**(run_meta or {}), "group": group},
    )
    return run_group_safely(
        group, group_corpus, glove_parameters, query_parameters, seed, logger
    )


def run_embedding_branch(
    corpus: Corpus,
    glove_parameters: GloveParameters,
    query_parameters: QueryParameters,
    logger: InfraLogger,
    seed: int = DEFAULT_SEED,
    max_workers: int = DEFAULT_WORKER_COUNT,
) -> Tuple[Dict[str, GroupEmbeddingResult], List[AnalysisFailure]]:
    """
    Run the embedding branch for every group of `corpus`.

    Parameters
    ----------
    corpus : Corpus
        Filtered corpus; every group in it is analyzed independently.
    glove_parameters : GloveParameters
        Pruning, windowing and training settings.
    query_parameters : QueryParameters
        Query words and ranking settings.
    logger : InfraLogger
        Run-level logger; groups log through `logger.bind(group=...)`.
    seed : int, default DEFAULT_SEED
        Seed shared by every group's generator.
    max_workers : int, default DEFAULT_WORKER_COUNT
        Values above 1 run groups in a `ProcessPoolExecutor`.

    Returns
    -------
    tuple[dict[str, GroupEmbeddingResult], list[AnalysisFailure]]
        Successful groups in canonical order, and the failures of the
        branch (whole groups and individual queries).

    Notes
    -----
    - Results are identical for sequential and parallel runs.
    """

    group_corpora: Dict[str, Corpus] = split_by_group(corpus)
    outcomes: List[Tuple[Optional[GroupEmbeddingResult], Optional[AnalysisFailure]]] = []
    if max_workers > 1 and len(group_corpora) > 1:
        logger.info(
            event="run_embedding_branch",
            msg=f"Running {len(group_corpora)} groups on {max_workers} worker processes",
        )
        with ProcessPoolExecutor(max_workers=max_workers) as executor:
            futures: List[Future] = [
                executor.submit(
                    run_group_worker,
                    group,
                    group_corpus,
                    glove_parameters,
                    query_parameters,
                    seed,
                    logger.level,
                    logger.run_id,
                    logger.run_meta,
                )
                for group, group_corpus in group_corpora.items()
            ]
            outcomes = [future.result() for future in futures]
    else:
        for group, group_corpus in group_corpora.items():
            logger.info(
                event="run_embedding_branch",
                msg=f"Training embeddings for group {group} ({len(group_corpus)} speeches)",
            )
            outcomes.append(
                run_group_safely(
                    group,
                    group_corpus,
                    glove_parameters,
                    query_parameters,
                    seed,
                    logger.bind(group=group),
                )
            )

    results: Dict[str, GroupEmbeddingResult] = {}
    failures: List[AnalysisFailure] = []
    for result, failure in outcomes:
        if failure is not None:
            failures.append(failure)
            continue
        # arrays unpickled from worker processes come back writable
        result.table.vectors.setflags(write=False)
        results[result.group] = result
        failures.extend(result.failures)
    return results, failures


def failures_to_frame(failures: List[AnalysisFailure]) -> pd.DataFrame:
    return pd.DataFrame.from_records([asdict(f) for f in failures], columns=FAILURE_COLUMNS)


def run_speech_analysis(
    speeches_dir: str | Path,
    corpus_filter: CorpusFilter,
    logger: InfraLogger,
    tfidf_parameters: TfIdfParameters = TfIdfParameters(),
    glove_parameters: GloveParameters = GloveParameters(),
    query_parameters: QueryParameters = QueryParameters(),
    seed: int = DEFAULT_SEED,
    max_workers: int = DEFAULT_WORKER_COUNT,
) -> SpeechAnalysisResult:
    """
    Load the corpus and run both analysis branches.

    Parameters
    ----------
    speeches_dir : str | pathlib.Path
        Corpus root directory.
    corpus_filter : CorpusFilter
        Groups and years to analyze.
    logger : InfraLogger
        Run-level logger.
    tfidf_parameters, glove_parameters, query_parameters
        Branch settings; defaults come from the config modules.
    seed : int, default DEFAULT_SEED
        Seed of every group's generator.
    max_workers : int, default DEFAULT_WORKER_COUNT
        Worker processes for the embedding branch.

    Returns
    -------
    SpeechAnalysisResult

    Raises
    ------
    LoadError
        If the corpus cannot be read or the filter selects nothing at all;
        without a corpus neither branch can run.

    Notes
    -----
    - Requested groups without documents are reported as "load" failures.
    - Loaded groups without any token are reported as "tfidf" failures; the
      other groups keep their TF-IDF rows.
    """

    corpus: Corpus = load_speeches(speeches_dir, corpus_filter, logger)
    failures: List[AnalysisFailure] = []
    for group in missing_groups(corpus, corpus_filter):
        logger.error(
            event="run_speech_analysis",
            msg=f"No speeches of group {group} passed the filter",
        )
        failures.append(
            AnalysisFailure(
                group=group,
                stage="load",
                error_type=EmptyCorpusError.__name__,
                message=(
                    f"No speeches of group {group} in years "
                    f"[{corpus_filter.min_year}, {corpus_filter.max_year or 'open'}]"
                ),
            )
        )

    tfidf_df, tfidf_failures = run_tfidf_branch(corpus, tfidf_parameters, logger)
    failures.extend(tfidf_failures)

    group_results, embedding_failures = run_embedding_branch(
        corpus, glove_parameters, query_parameters, logger, seed, max_workers
    )
    failures.extend(embedding_failures)

    neighbors: List[NeighborRecord] = [
        record for result in group_results.values() for record in result.neighbors
    ]
    logger.info(
        event="run_speech_analysis",
        msg="Speech analysis finished",
        context={
            "trained_groups": list(group_results),
            "neighbor_rows": len(neighbors),
            "failures": len(failures),
        },
    )
    return SpeechAnalysisResult(
        corpus_summary=summarize_corpus(corpus),
        tfidf=tfidf_df,
        neighbors=neighbors_to_frame(neighbors),
        failures=failures_to_frame(failures),
        tables={group: result.table for group, result in group_results.items()},
    )


def export_analysis(
    result: SpeechAnalysisResult, output_dir: str | Path, logger: InfraLogger
) -> Dict[str, Path]:
    """
    Write the tables of `result` as CSV files into `output_dir`.

    Returns
    -------
    dict[str, pathlib.Path]
        Table name → written path.

    Raises
    ------
    OSError
        If the directory cannot be created or a file cannot be written.
    """

    out_dir = Path(output_dir)
    out_dir.mkdir(parents=True, exist_ok=True)
    paths: Dict[str, Path] = {
        "corpus_summary": out_dir / CORPUS_SUMMARY_FILENAME,
        "tfidf": out_dir / TFIDF_FILENAME,
        "neighbors": out_dir / NEIGHBORS_FILENAME,
        "failures": out_dir / FAILURES_FILENAME,
    }
    for name, path in paths.items():
        table: pd.DataFrame = getattr(result, name)
        logger.info(
            event="export_analysis",
            msg=f"Writing {len(table)} rows to {path}",
        )
        table.to_csv(path, index=False)
    return paths
