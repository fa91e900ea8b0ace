"""
Purpose
-------
Centralize the knobs of the TF-IDF branch: the word tokenizer pattern and the
number of top-weighted terms reported per country group.

Conventions
-----------
- `WORD_TOKEN_PATTERN` keeps letters, digits, and underscores together and
  joins internal apostrophes ("don't", "people's"), matching language-default
  word-boundary segmentation on lowercased text.
- No stemming and no stop-word removal happen in this branch; "the", "a"
  and "an" are counted like any other word.

Downstream usage
----------------
Imported by `tfidf.term_counting` and `tfidf.tfidf_scoring`; notebooks
override `top_k` through `TfIdfParameters`.
"""

from dataclasses import dataclass

WORD_TOKEN_PATTERN: str = r"\w+(?:['’]\w+)*"

DEFAULT_TOP_K: int = 15

TOP_COUNT_NUM: int = 20


@dataclass(frozen=True)
class TfIdfParameters:
    """
    Parameters of the TF-IDF branch.

    Attributes
    ----------
    top_k : int | None
        Records kept per group after ranking; None keeps every word.
    """

    top_k: int | None = DEFAULT_TOP_K
