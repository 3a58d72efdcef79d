"""Speech host backed by edge-tts synthesis and ffplay playback."""

import asyncio
import hashlib
import logging
import os
import shutil
import signal
import tempfile

import edge_tts

from dictee.constants import (
    FALLBACK_VOICE,
    PLAYER_COMMAND,
    RATE_NORMAL,
    TTS_RETRY_BASE_DELAY,
    TTS_RETRY_COUNT,
)
from dictee.errors import SpeechError
from dictee.speech import Utterance, Voice

logger = logging.getLogger(__name__)


def rate_to_edge(rate: float) -> str:
    """Convert a continuous rate (1.0 = normal speed) to edge-tts' "+N%" form.

    0.65 -> "-35%", 1.0 -> "+0%", 1.5 -> "+50%".
    """
    percent = round((float(rate) - 1.0) * 100)
    return f"{percent:+d}%"


async def synthesize_clip(
    text: str,
    voice: str,
    output_path: str,
    rate: float = RATE_NORMAL,
) -> None:
    """Synthesize a single clip with retry logic.

    Retries on network errors, HTTP errors, or 0-byte output files, with
    exponential backoff. Raises SpeechError once all attempts failed.
    Audio is written to a ".part" sibling and only moved to output_path
    when complete, so a cancelled synthesis never leaves a truncated clip.
    """
    part_path = output_path + ".part"
    last_error = None
    try:
        for attempt in range(TTS_RETRY_COUNT):
            try:
                communicate = edge_tts.Communicate(text, voice, rate=rate_to_edge(rate))
                await communicate.save(part_path)

                if os.path.exists(part_path) and os.path.getsize(part_path) > 0:
                    os.replace(part_path, output_path)
                    return

                last_error = SpeechError(f"TTS produced 0-byte file for: {text[:50]}...")
            except Exception as e:
                last_error = e

            if attempt < TTS_RETRY_COUNT - 1:
                delay = TTS_RETRY_BASE_DELAY * (2 ** attempt)
                logger.warning("TTS attempt %d failed (%s), retrying in %.1fs", attempt + 1, last_error, delay)
                await asyncio.sleep(delay)
    finally:
        if os.path.exists(part_path):
            os.remove(part_path)

    raise SpeechError(f"Speech synthesis failed: {last_error}") from last_error


def clip_filename(text: str, voice: str, rate: float) -> str:
    """Stable cache filename for an utterance."""
    digest = hashlib.sha256(f"{voice}|{rate:.2f}|{text}".encode()).hexdigest()[:16]
    return f"{voice}_{digest}.mp3"


class EdgeTTSHost:
    """SpeechHost implementation: edge-tts neural voices played through ffplay.

    Synthesized clips are cached by (voice, rate, text), so replaying a
    sentence only costs the playback.
    """

    def __init__(self, cache_dir: str | None = None, player: str = PLAYER_COMMAND):
        self.cache_dir = cache_dir or os.path.join(tempfile.gettempdir(), "dictee-tts")
        self.player = player
        self._process: asyncio.subprocess.Process | None = None

    def available(self) -> bool:
        return shutil.which(self.player) is not None

    async def load_voices(self) -> list[Voice]:
        raw = await edge_tts.list_voices()
        return [Voice(name=v["ShortName"], lang=v["Locale"]) for v in raw]

    async def render(self, utterance: Utterance) -> str:
        """Synthesize the utterance into the cache (if needed); return its path."""
        voice = utterance.voice.name if utterance.voice else FALLBACK_VOICE
        os.makedirs(self.cache_dir, exist_ok=True)
        path = os.path.join(self.cache_dir, clip_filename(utterance.text, voice, utterance.rate))
        if os.path.exists(path) and os.path.getsize(path) > 0:
            logger.debug("[cache] %s", path)
            return path
        await synthesize_clip(utterance.text, voice, path, rate=utterance.rate)
        return path

    async def utter(self, utterance: Utterance) -> None:
        path = await self.render(utterance)
        process = await asyncio.create_subprocess_exec(
            self.player, "-nodisp", "-autoexit", "-loglevel", "quiet", path,
            stdout=asyncio.subprocess.DEVNULL,
            stderr=asyncio.subprocess.DEVNULL,
        )
        self._process = process
        try:
            returncode = await process.wait()
        except asyncio.CancelledError:
            self._terminate(process)
            raise
        finally:
            if self._process is process:
                self._process = None
        if returncode != 0:
            raise SpeechError(f"{self.player} exited with status {returncode}")

    def _terminate(self, process) -> None:
        if process.returncode is None:
            try:
                # A stopped process must be continued before it can exit
                process.send_signal(signal.SIGCONT)
                process.terminate()
            except ProcessLookupError:
                pass

    def pause(self) -> None:
        if self._process is not None and self._process.returncode is None:
            self._process.send_signal(signal.SIGSTOP)

    def resume(self) -> None:
        if self._process is not None and self._process.returncode is None:
            self._process.send_signal(signal.SIGCONT)

    def cancel(self) -> None:
        if self._process is not None:
            self._terminate(self._process)
