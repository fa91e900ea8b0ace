"""
Purpose
-------
Read a directory of plain-text speeches into an immutable `Corpus`, keeping
only the country groups and years selected for the analysis.

Key behaviors
-------------
- Discover `*.txt` speech files recursively (exports usually nest them in
  one sub-directory per session).
- Parse `<group>_<session>_<year>` metadata positionally from each filename
  after removing the extension and any trailing two-digit counter.
- Apply a `CorpusFilter` (group membership, inclusive year bounds) and
  report which filter stage emptied the selection when nothing survives.
- Split a corpus per group and summarize it as a pandas DataFrame for the
  notebook.

Conventions
-----------
- Files are decoded as UTF-8 with an optional BOM.
- Filter decisions use filename metadata only; files outside the filter are
  never read.
- Files whose name does not follow the encoding (a stray `README.txt`, an
  export artefact) are skipped with a WARNING so they never block the
  requested groups.

Downstream usage
----------------
Call `load_speeches` at the start of a run, then `split_by_group` and
`missing_groups` to drive the per-group analysis in
`notebooks_utils.speech_analysis_utils`.
"""

from pathlib import Path
from typing import Dict, List, Tuple

import pandas as pd

from infra.logging.infra_logger import InfraLogger
from speech_corpus.speech_corpus_config import (
    FILENAME_DELIMITER,
    GROUP_FIELD_INDEX,
    MINIMAL_FIELD_COUNT,
    SESSION_FIELD_INDEX,
    SPEECH_FILE_SUFFIX,
    TEXT_ENCODING,
    TRAILING_SUFFIX_PATTERN,
    YEAR_FIELD_INDEX,
)
from speech_corpus.speech_corpus_errors import (
    EmptyCorpusError,
    LoadError,
    MalformedFilenameError,
)
from speech_corpus.speech_corpus_types import Corpus, CorpusFilter, Document


def parse_speech_filename(path: str | Path) -> Tuple[str, str, int, int]:
    """
    Derive the logical document id and its metadata from a speech filename.

    Parameters
    ----------
    path : str | pathlib.Path
        Path (or bare filename) of a speech file.

    Returns
    -------
    tuple[str, str, int, int]
        `(doc_id, group, session, year)`.

    Raises
    ------
    MalformedFilenameError
        If fewer than three delimited fields remain, or session/year are not
        integers.

    Notes
    -----
    - The trailing two-digit counter is only removed when at least
      `MINIMAL_FIELD_COUNT` fields remain afterwards, so a bare
      `USA_56.txt` is reported as malformed instead of being silently
      reinterpreted.
    - Fields beyond the third are ignored (positional parsing).
    """

    name: str = Path(path).name
    doc_id: str = name[: -len(SPEECH_FILE_SUFFIX)] if name.endswith(SPEECH_FILE_SUFFIX) else name
    stripped: str = TRAILING_SUFFIX_PATTERN.sub("", doc_id)
    if stripped != doc_id and len(stripped.split(FILENAME_DELIMITER)) >= MINIMAL_FIELD_COUNT:
        doc_id = stripped

    fields: List[str] = doc_id.split(FILENAME_DELIMITER)
    if len(fields) < MINIMAL_FIELD_COUNT or not fields[GROUP_FIELD_INDEX]:
        raise MalformedFilenameError(
            f"Expected '<group>{FILENAME_DELIMITER}<session>{FILENAME_DELIMITER}<year>"
            f"{SPEECH_FILE_SUFFIX}', got {name!r}"
        )
    try:
        session = int(fields[SESSION_FIELD_INDEX])
        year = int(fields[YEAR_FIELD_INDEX])
    except ValueError as exc:
        raise MalformedFilenameError(f"Non-numeric session or year in {name!r}") from exc
    return doc_id, fields[GROUP_FIELD_INDEX], session, year


def discover_speech_files(speeches_dir: str | Path) -> List[Path]:
    """
    List every speech file below `speeches_dir` in sorted path order.

    Raises
    ------
    LoadError
        If the directory does not exist, is not a directory, or cannot be listed.
    """

    root = Path(speeches_dir)
    if not root.is_dir():
        raise LoadError(f"Speech directory {str(root)!r} does not exist or is not a directory")
    try:
        return sorted(p for p in root.rglob(f"*{SPEECH_FILE_SUFFIX}") if p.is_file())
    except OSError as exc:
        raise LoadError(f"Could not list speech directory {str(root)!r}: {exc}") from exc


def read_speech(path: Path) -> str:
    try:
        return path.read_text(encoding=TEXT_ENCODING)
    except (OSError, UnicodeDecodeError) as exc:
        raise LoadError(f"Could not read speech file {str(path)!r}: {exc}") from exc


def load_speeches(
    speeches_dir: str | Path, corpus_filter: CorpusFilter, logger: InfraLogger
) -> Corpus:
    """
    Load the speeches under `speeches_dir` that pass `corpus_filter`.

    Parameters
    ----------
    speeches_dir : str | pathlib.Path
        Corpus root directory.
    corpus_filter : CorpusFilter
        Groups and year bounds to keep.
    logger : InfraLogger
        Structured logger for discovery and filter diagnostics.

    Returns
    -------
    Corpus
        The filtered corpus in canonical order.

    Raises
    ------
    LoadError
        If the directory or a selected file cannot be read.
    EmptyCorpusError
        If no document survives the filter. The message names the stage
        (group or year) that removed the last candidates.

    Notes
    -----
    - Metadata of every file is parsed before any text is read.
    - Malformed filenames are logged and skipped, then counted in the
      `load_speeches` context as `skipped_malformed`.
    """

    paths: List[Path] = discover_speech_files(speeches_dir)
    logger.info(
        event="discover_speech_files",
        msg=f"Found {len(paths)} speech files",
        context={"speeches_dir": str(speeches_dir)},
    )
    parsed: List[Tuple[Path, str, str, int, int]] = []
    skipped_malformed: int = 0
    for path in paths:
        try:
            parsed.append((path, *parse_speech_filename(path)))
        except MalformedFilenameError as e:
            skipped_malformed += 1
            logger.warning(
                event="load_speeches",
                msg=f"Skipping speech file with malformed name: {e}",
                context={"path": str(path)},
            )

    group_matches = [entry for entry in parsed if corpus_filter.keeps_group(entry[2])]
    if not group_matches:
        raise EmptyCorpusError(
            f"Group filter {sorted(corpus_filter.groups)} matched none of "
            f"{len(parsed)} speech files in {str(speeches_dir)!r}"
        )

    documents: List[Document] = []
    for path, doc_id, group, session, year in group_matches:
        if not corpus_filter.keeps_year(year):
            continue
        documents.append(
            Document(doc_id=doc_id, group=group, session=session, year=year, text=read_speech(path))
        )
    if not documents:
        raise EmptyCorpusError(
            f"Year filter [{corpus_filter.min_year}, {corpus_filter.max_year or 'open'}] "
            f"removed all {len(group_matches)} speeches of groups {sorted(corpus_filter.groups)}"
        )

    corpus = Corpus.from_documents(documents)
    logger.info(
        event="load_speeches",
        msg=f"Loaded {len(corpus)} speeches",
        context={
            "groups": sorted(corpus_filter.groups),
            "min_year": corpus_filter.min_year,
            "max_year": corpus_filter.max_year,
            "skipped_malformed": skipped_malformed,
            "skipped_other_groups": len(parsed) - len(group_matches),
            "skipped_years": len(group_matches) - len(documents),
        },
    )
    return corpus


def filter_corpus(corpus: Corpus, corpus_filter: CorpusFilter) -> Corpus:
    """
    Return a new corpus holding only the documents `corpus_filter` keeps.

    Raises
    ------
    EmptyCorpusError
        If nothing survives.
    """

    kept = Corpus.from_documents(d for d in corpus if corpus_filter.keeps(d))
    if not len(kept):
        raise EmptyCorpusError(
            f"Filter groups={sorted(corpus_filter.groups)} min_year={corpus_filter.min_year} "
            f"max_year={corpus_filter.max_year} selected none of {len(corpus)} documents"
        )
    return kept


def split_by_group(corpus: Corpus) -> Dict[str, Corpus]:
    """Partition a corpus into one sub-corpus per group, in canonical group order."""
    return {
        group: Corpus.from_documents(d for d in corpus if d.group == group)
        for group in corpus.groups
    }


def missing_groups(corpus: Corpus, corpus_filter: CorpusFilter) -> List[str]:
    """Requested groups that have no document in `corpus`, sorted."""
    present = set(corpus.groups)
    return sorted(group for group in corpus_filter.groups if group not in present)


def summarize_corpus(corpus: Corpus) -> pd.DataFrame:
    """
    Summarize a corpus per group.

    Parameters
    ----------
    corpus : Corpus
        Loaded corpus.

    Returns
    -------
    pandas.DataFrame
        Columns ['group', 'documents', 'first_year', 'last_year', 'characters'],
        one row per group in canonical order.
    """

    records_df = pd.DataFrame.from_records(
        [
            {"group": d.group, "year": d.year, "characters": len(d.text)}
            for d in corpus
        ],
        columns=["group", "year", "characters"],
    )
    return (
        records_df.groupby("group", sort=True)
        .agg(
            documents=("year", "size"),
            first_year=("year", "min"),
            last_year=("year", "max"),
            characters=("characters", "sum"),
        )
        .reset_index()
    )
