"""
Purpose
-------
Provide a structured, configurable logger for the speech-analysis pipeline.
Centralizes log levels, formats, destinations, and run metadata so that every
stage (corpus loading, TF-IDF scoring, GloVe training, similarity queries)
emits entries with the same shape.

Key behaviors
-------------
- Emits one structured log entry per call (`emit`).
- Supports log level thresholding (DEBUG, INFO, WARNING, ERROR).
- Serializes entries as JSON (default) or human-readable text.
- Derives child loggers carrying extra run metadata (`bind`), e.g. the
  country group a per-group pipeline is working on.
- Handles invalid environment variables by falling back to defaults.
- Ensures logging never interrupts the analysis.

Conventions
-----------
- Default log level is INFO; an explicit `level` passed to
  `initialize_logger` wins over the LOG_LEVEL environment variable.
- Default format is JSON; text output is line-based with key=value context.
- Default destination is STDERR; file destinations are opened in append mode.
- Timestamps are UTC ISO-8601 with a trailing "Z".

Downstream usage
----------------
Call `initialize_logger` once per process (the orchestrator and each
per-group worker) and pass the returned logger into the analysis functions.
Use `logger.debug`, `logger.info`, `logger.warning`, or `logger.error` with a
snake_case event name.
"""

import datetime as dt
import json
import os
import sys
from typing import Any, TypedDict

LOG_LEVELS: set[str] = {"DEBUG", "INFO", "WARNING", "ERROR"}
LEVEL_MAPPING: dict[str, int] = {"DEBUG": 10, "INFO": 20, "WARNING": 30, "ERROR": 40}
LOG_FORMATS: set[str] = {"json", "text"}


class LogEntry(TypedDict):
    """
    Purpose
    -------
    Typed dictionary describing the structure of a single log entry.

    Fields
    ------
    timestamp : str
        UTC ISO-8601 timestamp string with a "Z" suffix.
    level : str
        Log severity level ("DEBUG", "INFO", "WARNING", "ERROR").
    run_id : str
        Identifier for the analysis run that emitted this entry.
    component : str
        Name of the pipeline stage producing the log.
    event : str
        Short machine-readable event name (snake_case).
    message : str
        Human-readable message string.
    run_meta : dict
        Run metadata attached at logger initialization or via `bind`.
    context : dict
        Event-specific context payload (small, JSON-serializable).
    """

    timestamp: str
    level: str
    run_id: str
    component: str
    event: str
    message: str
    run_meta: dict
    context: dict


class InfraLogger:
    """
    Purpose
    -------
    A structured logger that enforces level thresholds, normalizes output
    format, and writes to configurable destinations.

    Key behaviors
    -------------
    - Emits structured log entries with `emit`.
    - Provides convenience methods for each level (`debug`, `info`, `warning`, `error`).
    - Produces child loggers with merged run metadata through `bind`.

    Parameters
    ----------
    component_name : str
        Name of the pipeline stage using this logger.
    run_id : str
        Identifier for this execution.
    run_meta : dict
        Run-scoped metadata (corpus filter, group, parameters).
    log_level : str, default="INFO"
        Minimum log level threshold.
    log_format : str, default="json"
        Output format ("json" or "text").
    log_dest : str, default="stderr"
        Destination for logs ("stderr" or a file path).

    Notes
    -----
    - Serialization falls back to `default=str` so numpy scalars and paths in
      the context never break an entry.
    - Write failures on file destinations are reported to STDERR and dropped.
    """

    def __init__(
        self,
        component_name: str,
        run_id: str,
        run_meta: dict,
        log_level: str = "INFO",
        log_format: str = "json",
        log_dest: str = "stderr",
    ) -> None:
        self.component_name = component_name
        self.run_id = run_id
        self.run_meta = run_meta
        self.level = log_level
        self.format = log_format
        self.dest = log_dest

    def emit(
        self,
        event: str,
        level: str = "INFO",
        msg: str | None = None,
        context: dict | None = None,
    ) -> None:
        """
        Emit one structured log entry.

        Parameters
        ----------
        event : str
            Snake_case event name describing what happened.
        level : str, default="INFO"
            Log severity level.
        msg : str, optional
            Human-readable message string.
        context : dict, optional
            Event-specific payload.

        Returns
        -------
        None

        Notes
        -----
        - Entries below the configured threshold are dropped.
        """

        if LEVEL_MAPPING[level] < LEVEL_MAPPING[self.level]:
            return
        entry: LogEntry = {
            "timestamp": dt.datetime.now(dt.timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": level,
            "run_id": self.run_id,
            "component": self.component_name,
            "event": event,
            "message": msg if msg is not None else "",
            "run_meta": self.run_meta,
            "context": context if context is not None else {},
        }
        self.write_entry(self.format_entry(entry))

    def debug(self, event: str, msg: str | None = None, context: dict | None = None) -> None:
        """Emit a DEBUG entry."""
        self.emit(event=event, level="DEBUG", msg=msg, context=context)

    def info(self, event: str, msg: str | None = None, context: dict | None = None) -> None:
        """Emit an INFO entry."""
        self.emit(event=event, level="INFO", msg=msg, context=context)

    def warning(self, event: str, msg: str | None = None, context: dict | None = None) -> None:
        """Emit a WARNING entry."""
        self.emit(event=event, level="WARNING", msg=msg, context=context)

    def error(self, event: str, msg: str | None = None, context: dict | None = None) -> None:
        """Emit an ERROR entry."""
        self.emit(event=event, level="ERROR", msg=msg, context=context)

    def bind(self, component_name: str | None = None, **run_meta: Any) -> "InfraLogger":
        """
        Derive a child logger sharing this logger's run_id and configuration.

        Parameters
        ----------
        component_name : str, optional
            Replacement component name; defaults to the parent's.
        **run_meta : Any
            Extra metadata merged over the parent's `run_meta`.

        Returns
        -------
        InfraLogger
            A new logger; the parent is left untouched.

        Notes
        -----
        - Used by the per-group pipeline so every entry names its group.
        """

        return InfraLogger(
            component_name=component_name or self.component_name,
            run_id=self.run_id,
            run_meta={**self.run_meta, **run_meta},
            log_level=self.level,
            log_format=self.format,
            log_dest=self.dest,
        )

    def format_entry(self, entry: LogEntry) -> str:
        """
        Format a log entry into the configured output format.

        Parameters
        ----------
        entry : LogEntry
            Structured log entry dictionary.

        Returns
        -------
        str
            Serialized log entry (JSON string or human-readable text).
        """

        if self.format == "json":
            try:
                return json.dumps(entry, ensure_ascii=False)
            except (TypeError, ValueError):
                return json.dumps(entry, ensure_ascii=False, default=str)
        context_str = " ".join(f"{k}={v}" for k, v in entry["context"].items())
        return (
            f"{entry['timestamp']} [{entry['level']}] "
            f"{entry['component']} {entry['event']} - {entry['message']} "
            f"{context_str}"
        ).rstrip()

    def write_entry(self, formatted_entry: str) -> None:
        """
        Write a formatted log entry to the configured destination.

        Parameters
        ----------
        formatted_entry : str
            Log entry string, already serialized.

        Returns
        -------
        None
        """

        if self.dest == "stderr":
            print(formatted_entry, file=sys.stderr)
            return
        try:
            with open(self.dest, "a", encoding="utf-8") as f:
                f.write(formatted_entry + "\n")
        except OSError as e:
            print(f"log write to {self.dest} failed: {e}; {formatted_entry}", file=sys.stderr)


def initialize_logger(
    component_name: str,
    level: str | None = None,
    run_id: str | None = None,
    run_meta: dict | None = None,
) -> InfraLogger:
    """
    Factory function to configure and return an InfraLogger.

    Parameters
    ----------
    component_name : str
        Name of the pipeline stage using the logger.
    level : str, optional
        Explicit level threshold; when None the LOG_LEVEL environment
        variable (or INFO) is used.
    run_id : str, optional
        Identifier for the run; auto-generated if not provided.
    run_meta : dict, optional
        Run metadata dictionary.

    Returns
    -------
    InfraLogger
        Configured logger instance.

    Notes
    -----
    - Environment variables LOG_LEVEL, LOG_FORMAT, LOG_DEST are honored.
    - Invalid values fall back to defaults with warnings emitted.
    """

    fall_backs = {
        "level": False,
        "log_format": False,
        "log_dest": False,
    }
    env_level, log_format, log_dest = extract_env_vars(fall_backs)
    if level is not None:
        if level.upper() in LOG_LEVELS:
            env_level = level.upper()
            fall_backs["level"] = False
        else:
            fall_backs["level"] = True
            env_level = "INFO"

    if run_id is None:
        run_id = generate_run_id(component_name)

    logger = InfraLogger(
        component_name=component_name,
        run_id=run_id,
        run_meta=run_meta if run_meta is not None else {},
        log_level=env_level,
        log_format=log_format,
        log_dest=log_dest,
    )
    handle_fallbacks(logger, fall_backs)
    return logger


def extract_env_vars(fall_backs: dict[str, bool]) -> tuple[str, str, str]:
    """
    Extract and validate logging configuration from environment variables.

    Parameters
    ----------
    fall_backs : dict[str, bool]
        Mutable dict tracking whether defaults had to be applied.

    Returns
    -------
    tuple[str, str, str]
        Normalized (level, format, destination).
    """

    level: str = os.environ.get("LOG_LEVEL", "INFO").upper()
    log_format: str = os.environ.get("LOG_FORMAT", "json").lower()
    log_dest: str = os.environ.get("LOG_DEST", "stderr")

    if level not in LOG_LEVELS:
        fall_backs["level"] = True
        level = "INFO"

    if log_format not in LOG_FORMATS:
        fall_backs["log_format"] = True
        log_format = "json"

    if log_dest.lower() != "stderr":
        try:
            with open(log_dest, "a", encoding="utf-8"):
                pass
        except OSError:
            fall_backs["log_dest"] = True
            log_dest = "stderr"

    return level, log_format, log_dest


def generate_run_id(component_name: str) -> str:
    """
    Generate a run identifier of the form `<component>--<UTC timestamp>--<pid>`.
    """

    return (
        component_name
        + "--"
        + dt.datetime.now(dt.timezone.utc).strftime("%Y%m%dT%H%M%SZ")
        + "--"
        + str(os.getpid())
    )


FALLBACK_MESSAGES: dict[str, tuple[str, str, str]] = {
    "level": ("FALLBACK_LOG_LEVEL", "Invalid log level; defaulting to INFO", "LOG_LEVEL"),
    "log_format": ("FALLBACK_LOG_FORMAT", "Invalid LOG_FORMAT env var; defaulting to json", "LOG_FORMAT"),
    "log_dest": ("FALLBACK_LOG_DEST", "Invalid LOG_DEST env var; defaulting to stderr", "LOG_DEST"),
}


def handle_fallbacks(logger: InfraLogger, fall_backs: dict[str, bool]) -> None:
    """
    Emit one WARNING entry per configuration value that fell back to its default.

    Parameters
    ----------
    logger : InfraLogger
        Logger instance used to emit warnings.
    fall_backs : dict[str, bool]
        Mapping of config keys ("level", "log_format", "log_dest") to fallback flags.

    Returns
    -------
    None
    """

    for key, triggered in fall_backs.items():
        if not triggered:
            continue
        event, msg, env_var = FALLBACK_MESSAGES[key]
        logger.emit(
            event=event,
            level="WARNING",
            msg=msg,
            context={"invalid_value": os.environ.get(env_var, None)},
        )
