"""Tests for constants and models."""

import pytest

from dictee import constants
from dictee.errors import InvalidDocument
from dictee.models import DictationDocument, PlaybackResult, Score, Transcript, validate_document


def test_document_defaults():
    """Empty document uses placeholder title and French."""
    doc = DictationDocument()
    assert doc.title == "Sans titre"
    assert doc.language == "fr"
    assert doc.sentences == []
    assert doc.id is None
    assert doc.created_at is None and doc.updated_at is None


def test_documents_do_not_share_sentence_lists():
    a = DictationDocument()
    b = DictationDocument()
    a.sentences.append("x")
    assert b.sentences == []


def test_validation_errors_empty_document():
    errors = DictationDocument(title="  ").validation_errors()
    assert set(errors) == {"title", "sentences"}


def test_blank_sentences_do_not_count():
    doc = DictationDocument(title="T", sentences=["", "   "])
    assert "sentences" in doc.validation_errors()
    assert not doc.is_playable


def test_validate_document_raises_with_errors():
    with pytest.raises(InvalidDocument) as excinfo:
        validate_document(DictationDocument(title="T"))
    assert "sentences" in excinfo.value.errors
    assert isinstance(excinfo.value, ValueError)


def test_validate_document_accepts_playable(sample_document):
    validate_document(sample_document)
    assert sample_document.is_playable


@pytest.mark.parametrize("correct,total,expected", [
    (3, 4, 75),
    (0, 0, 0),
    (0, 3, 0),
    (2, 2, 100),
    (1, 3, 33),
    (2, 3, 67),
    (1, 8, 13),    # 12.5 rounds half up
])
def test_score_percentage(correct, total, expected):
    assert Score(correct=correct, total=total).percentage == expected


def test_score_record_is_immutable():
    score = Score()
    after = score.record(True).record(False)
    assert score == Score(0, 0)
    assert after == Score(correct=1, total=2)


def test_transcript_to_dict():
    results = [PlaybackResult("Bonjour.", "bonjour.", True), None]
    transcript = Transcript("T", "fr", results, Score(1, 1), finished=False)
    data = transcript.to_dict()
    assert data["score"] == {"correct": 1, "total": 1, "percentage": 100}
    assert data["results"][0] == {"sentence": "Bonjour.", "answer": "bonjour.", "is_correct": True}
    assert data["results"][1] is None
    assert data["finished"] is False


def test_constants_exist():
    """All module-level constants are defined."""
    expected = [
        "DEFAULT_TITLE",
        "DEFAULT_LANGUAGE",
        "LEGACY_MAX_SENTENCES",
        "RATE_NORMAL",
        "RATE_MEDIUM",
        "RATE_SLOW",
        "REVEAL_DELAY_SECONDS",
        "CORRECTION_DWELL_SECONDS",
        "TTS_RETRY_COUNT",
        "TTS_RETRY_BASE_DELAY",
        "VERSION",
    ]
    for name in expected:
        assert hasattr(constants, name), f"Missing constant: {name}"
    assert constants.LEGACY_MAX_SENTENCES == 20
    assert constants.RATE_PRESETS["normal"] == constants.RATE_NORMAL
