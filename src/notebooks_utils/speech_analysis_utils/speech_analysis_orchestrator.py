"""
Purpose
-------
Run the full speech analysis (TF-IDF ranking and per-group GloVe
neighbours) from the command line and write its tables as CSV files.

Key behaviors
-------------
- Parse CLI arguments (speeches directory, optional first year, optional
  log level) and initialize structured logging for the run.
- Run `run_speech_analysis` for the default country groups and export the
  resulting tables to `ANALYSIS_OUTPUT_DIR`.

Conventions
-----------
- Environment variables are hydrated from a `.env` file via
  `python-dotenv`; SPEECHES_DIR and ANALYSIS_OUTPUT_DIR are re-read
  afterwards so values from `.env` take effect.
- Per-group and per-query failures do not stop the run; they end up in
  `failures.csv`. Only a corpus that cannot be loaded at all aborts.

Downstream usage
----------------
Invoke as a script, e.g.
`python -m notebooks_utils.speech_analysis_utils.speech_analysis_orchestrator [SPEECHES_DIR] [MIN_YEAR] [LOG_LEVEL]`.
Notebooks should call `run_speech_analysis` directly instead of `main`.
"""

import os
import sys

from dotenv import load_dotenv

from glove.glove_config import DEFAULT_SEED
from infra.logging.infra_logger import InfraLogger, initialize_logger
from notebooks_utils.speech_analysis_utils.speech_analysis_config import (
    ANALYSIS_OUTPUT_DIR,
    DEFAULT_WORKER_COUNT,
)
from notebooks_utils.speech_analysis_utils.speech_analysis_utils import (
    export_analysis,
    run_speech_analysis,
)
from speech_corpus.speech_corpus_config import DEFAULT_GROUPS, DEFAULT_MIN_YEAR, SPEECHES_DIR
from speech_corpus.speech_corpus_types import CorpusFilter


def main() -> None:
    """
    Entry point for one analysis run.

    Raises
    ------
    ValueError
        If the `min_year` CLI argument is not an integer.
    LoadError
        If the corpus cannot be read or no speech passes the filter.

    Notes
    -----
    - Intended to be called only from the `__main__` guard.
    """

    load_dotenv()
    speeches_dir, min_year, logger_level = extract_cli_args()
    corpus_filter = CorpusFilter(groups=frozenset(DEFAULT_GROUPS), min_year=min_year)
    logger: InfraLogger = initialize_logger(
        component_name="speech_analysis",
        level=logger_level,
        run_meta={"groups": sorted(corpus_filter.groups), "min_year": min_year},
    )
    logger.info(
        event="main",
        msg=f"Starting speech analysis of {speeches_dir}",
        context={"seed": DEFAULT_SEED},
    )
    result = run_speech_analysis(
        speeches_dir, corpus_filter, logger, max_workers=DEFAULT_WORKER_COUNT
    )
    export_analysis(result, os.environ.get("ANALYSIS_OUTPUT_DIR", ANALYSIS_OUTPUT_DIR), logger)


def extract_cli_args() -> tuple[str, int, str]:
    """
    Parse CLI arguments into the speeches directory, first year and logger level.

    Returns
    -------
    tuple[str, int, str]
        `(speeches_dir, min_year, logger_level)`; `speeches_dir` defaults to
        the SPEECHES_DIR environment variable, `min_year` to DEFAULT_MIN_YEAR
        and `logger_level` to "INFO".

    Raises
    ------
    ValueError
        If `min_year` is not an integer.
    """

    speeches_dir: str = os.environ.get("SPEECHES_DIR", SPEECHES_DIR)
    if len(sys.argv) >= 2:
        speeches_dir = sys.argv[1]
    min_year: int = DEFAULT_MIN_YEAR
    logger_level: str = "INFO"
    if len(sys.argv) >= 3:
        min_year = int(sys.argv[2])
    if len(sys.argv) >= 4:
        logger_level = sys.argv[3]
    return speeches_dir, min_year, logger_level


if __name__ == "__main__":
    main()
