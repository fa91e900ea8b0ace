"""
Purpose
-------
Validate the command-line wiring of the speech analysis orchestrator.

Key behaviors
-------------
- `extract_cli_args` reads the speeches directory, first year and log
  level from `sys.argv`, with environment and config defaults.
- `main` builds the default corpus filter, runs the analysis, and exports
  to the configured output directory.

Conventions
-----------
- `run_speech_analysis`, `export_analysis`, `load_dotenv` and
  `initialize_logger` are patched at the orchestrator module; no corpus is
  read.

Downstream usage
----------------
Run with `pytest -q tests/test_notebooks_utils`.
"""

from unittest.mock import MagicMock

import pytest
from pytest_mock import MockerFixture

from notebooks_utils.speech_analysis_utils import speech_analysis_orchestrator as orchestrator
from speech_corpus.speech_corpus_config import DEFAULT_GROUPS, DEFAULT_MIN_YEAR

MODULE: str = "notebooks_utils.speech_analysis_utils.speech_analysis_orchestrator"


def test_extract_cli_args_full(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr("sys.argv", ["prog", "/data/speeches", "2005", "DEBUG"])
    assert orchestrator.extract_cli_args() == ("/data/speeches", 2005, "DEBUG")


def test_extract_cli_args_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr("sys.argv", ["prog"])
    monkeypatch.setenv("SPEECHES_DIR", "/env/speeches")
    assert orchestrator.extract_cli_args() == ("/env/speeches", DEFAULT_MIN_YEAR, "INFO")


def test_extract_cli_args_bad_year(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr("sys.argv", ["prog", "/data/speeches", "two thousand"])
    with pytest.raises(ValueError):
        orchestrator.extract_cli_args()


def test_main_runs_and_exports(mocker: MockerFixture, monkeypatch: pytest.MonkeyPatch) -> None:
    """
    Check that `main` hands the parsed arguments to the analysis and writes
    results to ANALYSIS_OUTPUT_DIR.
    """
    monkeypatch.setattr("sys.argv", ["prog", "/data/speeches", "2010"])
    monkeypatch.setenv("ANALYSIS_OUTPUT_DIR", "/tmp/analysis_out")
    mocker.patch(f"{MODULE}.load_dotenv")
    mock_logger: MagicMock = MagicMock()
    mock_initialize_logger: MagicMock = mocker.patch(
        f"{MODULE}.initialize_logger", return_value=mock_logger
    )
    mock_run: MagicMock = mocker.patch(f"{MODULE}.run_speech_analysis")
    mock_export: MagicMock = mocker.patch(f"{MODULE}.export_analysis")

    orchestrator.main()

    assert mock_initialize_logger.call_args.kwargs["level"] == "INFO"
    speeches_dir, corpus_filter, logger = mock_run.call_args.args
    assert speeches_dir == "/data/speeches"
    assert corpus_filter.groups == frozenset(DEFAULT_GROUPS)
    assert corpus_filter.min_year == 2010
    assert logger is mock_logger
    mock_export.assert_called_once_with(mock_run.return_value, "/tmp/analysis_out", mock_logger)
