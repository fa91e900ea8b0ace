"""
Purpose
-------
Centralize the constants that describe where the speech corpus lives, how
speech filenames are encoded, and which subset of the corpus the analysis
looks at by default.

Key behaviors
-------------
- Resolve the corpus root from the `SPEECHES_DIR` environment variable,
  falling back to a project-relative `local_data/speeches/` directory.
- Describe the filename encoding `<group>_<session>_<year>.txt` through the
  delimiter, suffix, and positional field indices.
- Provide the default country groups and first year used by the notebook.

Conventions
-----------
- Group identifiers are ISO-3166 alpha-3 country codes as they appear in the
  filenames (upper case, e.g. "USA").
- Years are calendar years of the General Debate session.
- Some corpus exports append a two-digit counter to the document id
  (e.g. `USA_56_2001_01.txt`); `TRAILING_SUFFIX_PATTERN` matches it.

Downstream usage
----------------
Import from `speech_corpus.speech_corpus_loader` and from notebooks rather
than hard-coding paths, groups, or years.
"""

import os
import re
from typing import Tuple

SPEECHES_DIR: str = os.environ.get("SPEECHES_DIR", os.path.join("local_data", "speeches"))

SPEECH_FILE_SUFFIX: str = ".txt"

FILENAME_DELIMITER: str = "_"

GROUP_FIELD_INDEX: int = 0

SESSION_FIELD_INDEX: int = 1

YEAR_FIELD_INDEX: int = 2

MINIMAL_FIELD_COUNT: int = 3

TRAILING_SUFFIX_PATTERN: re.Pattern[str] = re.compile(r"[._-]\d{2}$")

DEFAULT_GROUPS: Tuple[str, ...] = ("USA", "RUS")

DEFAULT_MIN_YEAR: int = 2000

TEXT_ENCODING: str = "utf-8-sig"
