"""Speech coordination over a host text-to-speech capability.

The coordinator keeps at most one utterance active: every speak() cancels
the one in flight before starting. State changes are published on an
EventChannel so callers can register listeners or await specific events.
"""

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Protocol

from dictee.constants import DEFAULT_SPEECH_LANGUAGE, RATE_NORMAL
from dictee.errors import SpeechError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Voice:
    name: str
    lang: str          # BCP-47 tag, e.g. "fr-FR"


@dataclass(frozen=True)
class Utterance:
    text: str
    voice: Voice | None
    rate: float = RATE_NORMAL
    pitch: float = 1.0


class SpeechStatus(Enum):
    STOPPED = "stopped"
    PLAYING = "playing"
    PAUSED = "paused"


class SpeechEvent(Enum):
    START = "start"
    END = "end"
    PAUSE = "pause"
    RESUME = "resume"
    STOP = "stop"
    ERROR = "error"


@dataclass(frozen=True)
class SpeechNotification:
    kind: SpeechEvent
    error: Exception | None = None


_LISTENER_NAMES = {f"on_{event.value}": event for event in SpeechEvent}


class EventChannel:
    """Single listener set plus awaitable waiters for speech events."""

    def __init__(self):
        self._listeners: dict[SpeechEvent, Callable] = {}
        self._waiters: list[tuple[frozenset, asyncio.Future]] = []

    def listen(self, **callbacks: Callable) -> None:
        """Replace the listener set (on_start=..., on_end=..., on_error=...).

        The last registration wins; unnamed events get no listener.
        """
        listeners = {}
        for name, callback in callbacks.items():
            if name not in _LISTENER_NAMES:
                raise TypeError(f"Unknown speech event listener: {name}")
            listeners[_LISTENER_NAMES[name]] = callback
        self._listeners = listeners

    def publish(self, kind: SpeechEvent, error: Exception | None = None) -> None:
        notification = SpeechNotification(kind, error)
        callback = self._listeners.get(kind)
        if callback is not None:
            if kind is SpeechEvent.ERROR:
                callback(error)
            else:
                callback()

        pending = []
        for kinds, future in self._waiters:
            if future.done():
                continue
            if kind in kinds:
                future.set_result(notification)
            else:
                pending.append((kinds, future))
        self._waiters = pending

    async def wait_for(self, *kinds: SpeechEvent) -> SpeechNotification:
        """Suspend until one of kinds (any event when empty) is published."""
        wanted = frozenset(kinds) if kinds else frozenset(SpeechEvent)
        future = asyncio.get_running_loop().create_future()
        self._waiters.append((wanted, future))
        return await future


class SpeechHost(Protocol):
    """Text-to-speech capability provided by the environment."""

    def available(self) -> bool: ...

    async def load_voices(self) -> list[Voice]: ...

    async def utter(self, utterance: Utterance) -> None: ...

    def pause(self) -> None: ...

    def resume(self) -> None: ...

    def cancel(self) -> None: ...


class SpeechCoordinator:
    """Tracks speech state on top of a SpeechHost."""

    def __init__(self, host: SpeechHost | None):
        self.host = host
        self.voices: list[Voice] = []
        self.status = SpeechStatus.STOPPED
        self.channel = EventChannel()
        self.current: Utterance | None = None
        self._task: asyncio.Task | None = None

    def is_supported(self) -> bool:
        return self.host is not None and self.host.available()

    async def initialize(self) -> list[Voice]:
        """Load the host's voice catalog. Returns [] when speech is unsupported."""
        if not self.is_supported():
            logger.warning("Speech synthesis is not supported on this host")
            return []
        self.voices = list(await self.host.load_voices())
        logger.debug("Loaded %d voice(s)", len(self.voices))
        return self.voices

    def select_best_voice(self, lang: str) -> Voice | None:
        """Exact tag match, then same 2-letter language, then the first voice."""
        if not self.voices:
            logger.warning("No voice available")
            return None
        for voice in self.voices:
            if voice.lang == lang:
                return voice
        prefix = (lang or "")[:2]
        for voice in self.voices:
            if voice.lang.startswith(prefix):
                return voice
        return self.voices[0]

    async def speak(
        self,
        text: str,
        lang: str = DEFAULT_SPEECH_LANGUAGE,
        rate: float = RATE_NORMAL,
    ) -> bool:
        """Speak text, cancelling any utterance in flight.

        Returns True when spoken to completion, False when superseded by
        another speak() or stopped. Raises SpeechError on empty text, an
        unsupported host, or a host failure.
        """
        if not text or not text.strip():
            raise SpeechError("No text to speak")
        if not self.is_supported():
            raise SpeechError("Speech synthesis is not supported")

        self.stop()

        utterance = Utterance(text=text, voice=self.select_best_voice(lang), rate=float(rate))
        task = asyncio.ensure_future(self.host.utter(utterance))
        self.current = utterance
        self._task = task
        self.status = SpeechStatus.PLAYING
        self.channel.publish(SpeechEvent.START)

        try:
            await asyncio.wait({task})
        except asyncio.CancelledError:
            if self._task is task:
                self.stop()
            else:
                task.cancel()
            raise

        if task.cancelled():
            return False

        error = task.exception()
        if self._task is not task:
            # Superseded while finishing; the newer utterance owns the state.
            return False
        self._task = None
        self.status = SpeechStatus.STOPPED
        if error is not None:
            logger.warning("Speech failed: %s", error)
            self.channel.publish(SpeechEvent.ERROR, error)
            raise SpeechError(str(error) or "Speech synthesis failed") from error
        self.channel.publish(SpeechEvent.END)
        return True

    def stop(self) -> None:
        """Cancel the active utterance. Idempotent."""
        if self.status is SpeechStatus.STOPPED and self._task is None:
            return
        task, self._task = self._task, None
        if task is not None and not task.done():
            task.cancel()
        if self.host is not None:
            self.host.cancel()
        self.status = SpeechStatus.STOPPED
        self.channel.publish(SpeechEvent.STOP)

    def pause(self) -> None:
        if self.status is not SpeechStatus.PLAYING:
            return
        self.host.pause()
        self.status = SpeechStatus.PAUSED
        self.channel.publish(SpeechEvent.PAUSE)

    def resume(self) -> None:
        if self.status is not SpeechStatus.PAUSED:
            return
        self.host.resume()
        self.status = SpeechStatus.PLAYING
        self.channel.publish(SpeechEvent.RESUME)

    def voices_by_language(self) -> dict[str, list[Voice]]:
        """Group the catalog by 2-letter language code."""
        grouped: dict[str, list[Voice]] = {}
        for voice in self.voices:
            grouped.setdefault(voice.lang[:2], []).append(voice)
        return grouped

    def available_languages(self) -> list[str]:
        return list(self.voices_by_language())

    def is_language_available(self, code: str) -> bool:
        return any(voice.lang.startswith(code) for voice in self.voices)

    def state(self) -> dict:
        return {
            "status": self.status.value,
            "current_voice": self.current.voice if self.current else None,
            "current_rate": self.current.rate if self.current else None,
            "supported": self.is_supported(),
            "available_voices": len(self.voices),
        }
