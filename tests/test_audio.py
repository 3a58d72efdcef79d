"""Tests for dictation audio rendering."""

import asyncio
from unittest.mock import AsyncMock, patch

import pytest
from pydub import AudioSegment

from dictee.audio import assemble_dictation, choose_voice, render_dictation
from dictee.errors import InvalidDocument
from dictee.models import DictationDocument
from dictee.speech import Voice


def _clip(ms):
    return AudioSegment.silent(duration=ms)


def test_assemble_layout():
    """Title, then each sentence read twice with pauses."""
    result = assemble_dictation(
        _clip(100), [_clip(200), _clip(300)],
        repeats=2, pause_repeat_ms=50, pause_sentence_ms=500, pause_title_ms=10,
    )
    expected = (100 + 10) + (200 + 50 + 200) + 500 + (300 + 50 + 300)
    assert abs(len(result) - expected) <= 2


def test_assemble_without_title_single_reading():
    result = assemble_dictation(None, [_clip(200)], repeats=1)
    assert abs(len(result) - 200) <= 1


def test_assemble_rejects_zero_repeats():
    with pytest.raises(ValueError):
        assemble_dictation(None, [_clip(10)], repeats=0)


def test_choose_voice_matches_language():
    host = AsyncMock()
    host.load_voices.return_value = [Voice("en-US-AriaNeural", "en-US"), Voice("de-DE-KatjaNeural", "de-DE")]
    assert asyncio.run(choose_voice("de", host)) == "de-DE-KatjaNeural"


def test_choose_voice_falls_back_when_catalog_unavailable():
    host = AsyncMock()
    host.load_voices.side_effect = OSError("offline")
    assert asyncio.run(choose_voice("fr-FR", host)) == "fr-FR-DeniseNeural"


def test_render_rejects_empty_document(tmp_path):
    with pytest.raises(InvalidDocument):
        render_dictation(DictationDocument(title="Vide"), str(tmp_path / "out.wav"))


@patch("dictee.audio._load_clip")
@patch("dictee.audio.synthesize_clip", new_callable=AsyncMock)
def test_render_dictation(mock_synth, mock_load, tmp_path, sample_document):
    mock_load.side_effect = lambda path: _clip(100)
    output = tmp_path / "out" / "dictee.wav"
    path = render_dictation(sample_document, str(output), voice="fr-FR-DeniseNeural", format="wav")
    assert path == str(output)
    assert output.exists()
    texts = [c.args[0] for c in mock_synth.await_args_list]
    assert texts == ["Le chat", "Le chat dort.", "Il fait beau.", "Nous partons demain."]
    assert all(c.args[1] == "fr-FR-DeniseNeural" for c in mock_synth.await_args_list)
    reloaded = AudioSegment.from_wav(str(output))
    assert len(reloaded) > 3 * 2 * 100
