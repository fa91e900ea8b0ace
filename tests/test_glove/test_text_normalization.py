"""
Purpose
-------
Validate the text normalizer feeding the embedding branch.

Key behaviors
-------------
- Output contains only lowercase letters, digits and single spaces, with
  no leading or trailing whitespace.
- Normalization is idempotent.
- Group token streams concatenate documents in canonical corpus order.

Conventions
-----------
- Inputs include punctuation, underscores, tabs, newlines and non-ASCII
  letters.

Downstream usage
----------------
Run with `pytest -q tests/test_glove`.
"""

import re
from typing import List

import pytest

from glove.text_normalization import build_group_token_streams, normalize_text
from speech_corpus.speech_corpus_types import Corpus
from tests.test_speech_corpus.speech_corpus_testing_utils import make_document

NORMALIZE_TUPLES: List[tuple[str, str]] = [
    ("Peace, Security & Development!", "peace security development"),
    ("  multi\t\nline   text ", "multi line text"),
    ("snake_case_words", "snake case words"),
    ("U.N. resolution 1373 (2001)", "u n resolution 1373 2001"),
    ("Côte d'Ivoire", "cote d ivoire"),
    ("İstanbul Declaration", "istanbul declaration"),
    ("\u2102\u210d\u2115 \u2102\u2115\u0130", "chn cni"),
    ("...", ""),
    ("", ""),
]

NORMALIZED_PATTERN = re.compile(r"^(?:[^\W_A-Z]+(?: [^\W_A-Z]+)*)?$")


@pytest.mark.parametrize("text, expected", NORMALIZE_TUPLES)
def test_normalize_text(text: str, expected: str) -> None:
    assert normalize_text(text) == expected


@pytest.mark.parametrize("text", [text for text, _ in NORMALIZE_TUPLES])
def test_normalize_text_alphabet_and_idempotence(text: str) -> None:
    """
    Check the output alphabet and that a second pass changes nothing.
    """
    normalized: str = normalize_text(text)
    assert NORMALIZED_PATTERN.match(normalized)
    assert normalized == normalized.lower()
    assert "  " not in normalized
    assert normalize_text(normalized) == normalized


def test_build_group_token_streams_concatenates_in_corpus_order() -> None:
    corpus = Corpus.from_documents(
        [
            make_document("USA", 2002, "Third, speech."),
            make_document("USA", 2001, "First speech!"),
            make_document("RUS", 2001, "Other group"),
        ]
    )
    streams = build_group_token_streams(corpus)
    assert list(streams) == ["RUS", "USA"]
    assert streams["USA"] == ["first", "speech", "third", "speech"]
    assert streams["RUS"] == ["other", "group"]


def test_build_group_token_streams_empty_document() -> None:
    corpus = Corpus.from_documents([make_document("USA", 2001, "!!!")])
    assert build_group_token_streams(corpus) == {"USA": []}
