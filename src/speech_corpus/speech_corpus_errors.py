"""
Purpose
-------
Define the exception taxonomy shared by every stage of the speech-analysis
pipeline, so callers can tell corpus problems, vocabulary pruning outcomes,
and numerical edge cases apart without parsing messages.

Key behaviors
-------------
- `LoadError` and its subclasses cover everything that goes wrong before a
  corpus exists: unreadable directories, malformed filenames, and filters
  that select nothing.
- `VocabularyMissError` and `NumericDegeneracyError` are per-query
  conditions; the orchestration layer records them and keeps going.

Conventions
-----------
- Each class also derives from the closest builtin (`ValueError`,
  `KeyError`, `ArithmeticError`) so generic handlers keep working.
- Messages name the offending group, file, filter, or word.

Downstream usage
----------------
Raise these from the loader, co-occurrence, and similarity modules; catch
them in `notebooks_utils.speech_analysis_utils` to isolate per-group and
per-query failures.
"""


class LoadError(Exception):
    """The speech corpus could not be read or parsed."""


class MalformedFilenameError(LoadError, ValueError):
    """A speech filename does not follow `<group>_<session>_<year>.txt`."""


class EmptyCorpusError(LoadError):
    """
    A filter, or a group inside an otherwise loaded corpus, selected zero
    documents or zero tokens.
    """


class EmptyVocabularyError(ValueError):
    """No word of a group's token stream survived minimum-count pruning."""


class VocabularyMissError(KeyError):
    """
    A query word is absent from a group's vocabulary, either because it never
    occurs or because it was pruned by the minimum-count threshold.
    """

    def __init__(self, word: str, group: str) -> None:
        super().__init__(word)
        self.word = word
        self.group = group

    def __str__(self) -> str:
        return f"'{self.word}' is not in the vocabulary of group {self.group}"


class NumericDegeneracyError(ArithmeticError):
    """A zero-norm vector made a cosine similarity undefined."""
