"""
Purpose
-------
Centralize configuration for the end-to-end speech analysis run: where
results are written, how many worker processes the embedding branch may
use, and the names of the exported tables.

Key behaviors
-------------
- Resolve the output directory from the `ANALYSIS_OUTPUT_DIR` environment
  variable, falling back to `local_data/analysis_results/`.
- Derive `MAXIMAL_WORKER_COUNT` from the host CPU count.

Conventions
-----------
- `CPU_COUNT` falls back to 4 when `os.cpu_count()` returns None.
- Worker processes are only started when a caller asks for more than one
  worker; the notebook default is a sequential run.
- Output tables are CSV files with a header row and no index column.

Downstream usage
----------------
Imported by `speech_analysis_utils` and `speech_analysis_orchestrator`.
"""

import os

ANALYSIS_OUTPUT_DIR: str = os.environ.get(
    "ANALYSIS_OUTPUT_DIR", os.path.join("local_data", "analysis_results")
)

CPU_COUNT: int = os.cpu_count() or 4

MAXIMAL_WORKER_COUNT: int = max(1, min(CPU_COUNT - 1, 8))

DEFAULT_WORKER_COUNT: int = 1

CORPUS_SUMMARY_FILENAME: str = "corpus_summary.csv"

TFIDF_FILENAME: str = "tfidf.csv"

NEIGHBORS_FILENAME: str = "neighbors.csv"

FAILURES_FILENAME: str = "failures.csv"
