"""
Purpose
-------
Shared helpers for the speech-analysis tests: a recording stand-in for
`InfraLogger`, a writer for on-disk speech fixtures, and a `Document`
factory.

Key behaviors
-------------
- `DummyInfraLogger` accepts every logging call and keeps `(level, event,
  msg, context)` tuples so tests can assert on warnings and errors.
- `write_speech` lays out `<group>_<session>_<year>.txt` files under a
  temporary corpus root.

Conventions
-----------
- Helpers are test-only and perform I/O only below pytest's `tmp_path`.
- `as_logger` casts the dummy for type-checker compatibility.

Downstream usage
----------------
`from tests.test_speech_corpus.speech_corpus_testing_utils import
DummyInfraLogger, as_logger, make_document, write_speech`
"""

from pathlib import Path
from typing import Any, List, Tuple, cast

from infra.logging.infra_logger import InfraLogger
from speech_corpus.speech_corpus_types import Document

LoggedCall = Tuple[str, str, Any, Any]


class DummyInfraLogger:
    """
    Purpose
    -------
    Minimal stand-in for `InfraLogger` that records calls instead of writing.

    Attributes
    ----------
    calls : list[tuple[str, str, Any, Any]]
        `(level, event, msg, context)` per call, in call order.
    level : str
        Threshold reported to callers that forward it to worker processes.
    run_id : str
        Run identifier reported to the same callers.
    run_meta : dict
        Run metadata forwarded to worker processes.
    """

    def __init__(self) -> None:
        self.calls: List[LoggedCall] = []
        self.level = "INFO"
        self.run_id = "test_run_id"
        self.run_meta: dict = {}

    def _record(self, level: str, event: str, msg: Any = None, context: Any = None) -> None:
        self.calls.append((level, event, msg, context))

    def debug(self, event: str, msg: Any = None, context: Any = None) -> None:
        self._record("DEBUG", event, msg, context)

    def info(self, event: str, msg: Any = None, context: Any = None) -> None:
        self._record("INFO", event, msg, context)

    def warning(self, event: str, msg: Any = None, context: Any = None) -> None:
        self._record("WARNING", event, msg, context)

    def error(self, event: str, msg: Any = None, context: Any = None) -> None:
        self._record("ERROR", event, msg, context)

    def bind(self, component_name: str | None = None, **run_meta: Any) -> "DummyInfraLogger":
        return self

    def events(self, level: str) -> List[str]:
        """Event names logged at `level`."""
        return [event for lvl, event, _, _ in self.calls if lvl == level]


def as_logger(dummy_logger: DummyInfraLogger) -> InfraLogger:
    return cast(InfraLogger, dummy_logger)


def write_speech(root: Path, filename: str, text: str, subdir: str | None = None) -> Path:
    """
    Write one speech file below `root` (optionally inside `subdir`).

    Returns
    -------
    pathlib.Path
        Path of the written file.
    """
    directory: Path = root / subdir if subdir else root
    directory.mkdir(parents=True, exist_ok=True)
    path: Path = directory / filename
    path.write_text(text, encoding="utf-8")
    return path


def make_document(
    group: str, year: int, text: str, session: int | None = None, doc_id: str | None = None
) -> Document:
    session = session if session is not None else year - 1945
    return Document(
        doc_id=doc_id or f"{group}_{session}_{year}",
        group=group,
        session=session,
        year=year,
        text=text,
    )
