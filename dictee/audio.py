"""Render a dictation as a single audio file for offline use.

Layout: [title] pause, then every sentence read `repeats` times with a
short pause between readings and a longer writing pause after it.
"""

import asyncio
import logging
import os
import tempfile

from pydub import AudioSegment

from dictee.constants import (
    DICTATION_REPEATS,
    FALLBACK_VOICE,
    OUTPUT_BITRATE,
    PAUSE_REPEAT_MS,
    PAUSE_SENTENCE_MS,
    PAUSE_TITLE_MS,
    RATE_NORMAL,
)
from dictee.models import DictationDocument, validate_document
from dictee.speech import SpeechCoordinator
from dictee.tts import EdgeTTSHost, synthesize_clip

logger = logging.getLogger(__name__)


def assemble_dictation(
    title_clip: AudioSegment | None,
    sentence_clips: list[AudioSegment],
    repeats: int = DICTATION_REPEATS,
    pause_repeat_ms: int = PAUSE_REPEAT_MS,
    pause_sentence_ms: int = PAUSE_SENTENCE_MS,
    pause_title_ms: int = PAUSE_TITLE_MS,
) -> AudioSegment:
    """Concatenate clips with dictation pauses."""
    if repeats < 1:
        raise ValueError("repeats must be at least 1")

    result = AudioSegment.silent(duration=0)
    if title_clip is not None:
        result += title_clip + AudioSegment.silent(duration=pause_title_ms)

    for i, clip in enumerate(sentence_clips):
        for reading in range(repeats):
            result += clip
            if reading < repeats - 1:
                result += AudioSegment.silent(duration=pause_repeat_ms)
        if i < len(sentence_clips) - 1:
            result += AudioSegment.silent(duration=pause_sentence_ms)

    return result


async def choose_voice(language: str, host: EdgeTTSHost | None = None) -> str:
    """Pick an edge-tts voice name for a language tag."""
    host = host or EdgeTTSHost()
    coordinator = SpeechCoordinator(host)
    try:
        coordinator.voices = await host.load_voices()
    except Exception as exc:
        logger.warning("Could not load the voice catalog (%s); using %s", exc, FALLBACK_VOICE)
        return FALLBACK_VOICE
    voice = coordinator.select_best_voice(language)
    return voice.name if voice else FALLBACK_VOICE


def _load_clip(path: str) -> AudioSegment:
    return AudioSegment.from_file(path, format="mp3")


async def _synthesize_all(texts: list[str], voice: str, work_dir: str, rate: float) -> list[str]:
    paths = []
    total = len(texts)
    for i, text in enumerate(texts):
        path = os.path.join(work_dir, f"{i:03d}_clip.mp3")
        logger.info("Generating clip %d/%d", i + 1, total)
        await synthesize_clip(text, voice, path, rate=rate)
        paths.append(path)
    return paths


def render_dictation(
    document: DictationDocument,
    output_path: str,
    voice: str | None = None,
    rate: float = RATE_NORMAL,
    repeats: int = DICTATION_REPEATS,
    announce_title: bool = True,
    format: str = "mp3",
) -> str:
    """Synthesize and export the whole dictation. Returns output_path."""
    validate_document(document)
    sentences = [s for s in document.sentences if s.strip()]

    if voice is None:
        voice = asyncio.run(choose_voice(document.language))

    texts = ([document.title] if announce_title else []) + sentences
    with tempfile.TemporaryDirectory(prefix="dictee-") as work_dir:
        paths = asyncio.run(_synthesize_all(texts, voice, work_dir, rate))
        clips = [_load_clip(p) for p in paths]

    title_clip = clips.pop(0) if announce_title else None
    assembled = assemble_dictation(title_clip, clips, repeats=repeats)

    parent = os.path.dirname(output_path)
    if parent:
        os.makedirs(parent, exist_ok=True)

    export_kwargs = {"format": format}
    if format == "mp3":
        export_kwargs["bitrate"] = OUTPUT_BITRATE
        export_kwargs["tags"] = {"title": document.title, "language": document.language}
    assembled.export(output_path, **export_kwargs)
    logger.info("Rendered %s (%.1fs)", output_path, len(assembled) / 1000)
    return output_path
