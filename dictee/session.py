"""Playback session: one scored playthrough of a dictation.

The session is a small state machine:

    Presenting(i) -> Checking(i) -> Advancing(i)            -> Presenting(i+1) | Finished
                                 -> RevealingCorrection(i) -> Presenting(i+1) | Finished

Each public operation declares which states accept it; anything else
raises SessionStateError before touching the session.
"""

import asyncio
import functools
import inspect
import logging
from dataclasses import dataclass
from typing import Callable, Union

from dictee.constants import (
    CORRECTION_DWELL_SECONDS,
    DEFAULT_SPEECH_LANGUAGE,
    RATE_MAX,
    RATE_MIN,
    RATE_NORMAL,
    REVEAL_DELAY_SECONDS,
)
from dictee.errors import InvalidAnswer, InvalidDocument, SessionStateError, SpeechError
from dictee.models import DictationDocument, PlaybackResult, Score, Transcript, validate_document
from dictee.speech import SpeechCoordinator, SpeechStatus, Voice

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Presenting:
    index: int


@dataclass(frozen=True)
class Checking:
    index: int


@dataclass(frozen=True)
class Advancing:
    index: int


@dataclass(frozen=True)
class RevealingCorrection:
    index: int
    correction: str


@dataclass(frozen=True)
class Finished:
    pass


SessionState = Union[Presenting, Checking, Advancing, RevealingCorrection, Finished]
ANY_STATE = (Presenting, Checking, Advancing, RevealingCorrection, Finished)


@dataclass(frozen=True)
class SessionNotice:
    kind: str          # "speech" or "voice"
    message: str


def accepts(*states):
    """Restrict an operation to the given state variants."""
    def decorator(func):
        def check(self):
            if not isinstance(self._state, states):
                raise SessionStateError(
                    f"{func.__name__} is not allowed while {type(self._state).__name__}"
                )

        if inspect.iscoroutinefunction(func):
            @functools.wraps(func)
            async def async_wrapper(self, *args, **kwargs):
                check(self)
                return await func(self, *args, **kwargs)
            return async_wrapper

        @functools.wraps(func)
        def wrapper(self, *args, **kwargs):
            check(self)
            return func(self, *args, **kwargs)
        return wrapper
    return decorator


def _normalize(text: str) -> str:
    return text.strip().lower()


class PlaybackSession:
    """Sequences the sentences of a document, speaks them, and scores answers.

    The document is read-only for the session's lifetime. Speech failures
    never stop the session: they are reported as notices through
    on_notice and the notices list. on_state is called with every state the
    session enters, so a front end can show a correction while it is up.
    """

    def __init__(
        self,
        document: DictationDocument,
        speech: SpeechCoordinator,
        rate: float = RATE_NORMAL,
        reveal_delay: float = REVEAL_DELAY_SECONDS,
        dwell: float = CORRECTION_DWELL_SECONDS,
        on_notice: Callable[[SessionNotice], None] | None = None,
        on_state: Callable[[SessionState], None] | None = None,
    ):
        validate_document(document)
        blank = [i + 1 for i, s in enumerate(document.sentences) if not s or not s.strip()]
        if blank:
            raise InvalidDocument({"sentences": f"Blank sentence(s) at position {blank}"})

        self._document = document
        self._sentences = tuple(document.sentences)
        self.speech = speech
        self.reveal_delay = reveal_delay
        self.dwell = dwell
        self.on_notice = on_notice
        self.on_state = on_state
        self.notices: list[SessionNotice] = []
        self.voice: Voice | None = None
        self.speaking_status = SpeechStatus.STOPPED
        self._generation = 0
        self._reset()
        self._playback_rate = RATE_NORMAL
        self.set_playback_rate(rate)

    def _reset(self) -> None:
        self._results: list[PlaybackResult | None] = [None] * len(self._sentences)
        self._score = Score()
        self._index = 0
        self._state: SessionState = Presenting(0)

    # --- read-only views ---

    @property
    def document(self) -> DictationDocument:
        return self._document

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def status(self) -> str:
        return type(self._state).__name__

    @property
    def current_index(self) -> int:
        return self._index

    @property
    def current_sentence(self) -> str | None:
        if isinstance(self._state, Finished):
            return None
        return self._sentences[self._index]

    @property
    def results(self) -> tuple[PlaybackResult | None, ...]:
        return tuple(self._results)

    @property
    def score(self) -> Score:
        return self._score

    @property
    def percentage(self) -> int:
        return self._score.percentage

    @property
    def playback_rate(self) -> float:
        return self._playback_rate

    @property
    def is_finished(self) -> bool:
        return isinstance(self._state, Finished)

    @property
    def language(self) -> str:
        return self._document.language or DEFAULT_SPEECH_LANGUAGE

    # --- notices ---

    def _notify(self, kind: str, message: str) -> None:
        notice = SessionNotice(kind, message)
        logger.warning("%s", message)
        self.notices.append(notice)
        if self.on_notice is not None:
            self.on_notice(notice)

    def _enter(self, state: SessionState) -> None:
        self._state = state
        if self.on_state is not None:
            self.on_state(state)

    def _set_speaking(self, status: SpeechStatus) -> None:
        self.speaking_status = status

    def _on_speech_error(self, error) -> None:
        self.speaking_status = SpeechStatus.STOPPED

    # --- operations ---

    async def prepare(self) -> Voice | None:
        """Initialize speech and pick the voice for the document language."""
        if not self.speech.is_supported():
            self._notify("speech", "Speech synthesis is not supported on this host")
            return None

        try:
            await self.speech.initialize()
        except Exception as exc:
            self._notify("speech", f"Speech initialization failed: {exc}")
            return None

        self.speech.channel.listen(
            on_start=lambda: self._set_speaking(SpeechStatus.PLAYING),
            on_end=lambda: self._set_speaking(SpeechStatus.STOPPED),
            on_pause=lambda: self._set_speaking(SpeechStatus.PAUSED),
            on_resume=lambda: self._set_speaking(SpeechStatus.PLAYING),
            on_stop=lambda: self._set_speaking(SpeechStatus.STOPPED),
            on_error=self._on_speech_error,
        )

        self.voice = self.speech.select_best_voice(self.language)
        if self.voice is None:
            self._notify("voice", f'No voice available for language "{self.language}"')
        return self.voice

    @accepts(Presenting)
    async def speak_current(self) -> bool:
        """Speak the active sentence at the current playback rate.

        Returns False (and records a notice) when speech failed or was
        superseded; the session carries on either way.
        """
        sentence = self._sentences[self._state.index]
        try:
            return await self.speech.speak(sentence, self.language, self._playback_rate)
        except SpeechError as exc:
            self._notify("speech", f"Speech error: {exc}")
            return False

    @accepts(Presenting)
    async def submit_answer(self, text: str) -> PlaybackResult:
        """Score an answer for the active sentence and move on.

        A correct answer advances at once. An incorrect one locks input for
        reveal_delay, shows the correction for dwell, then advances.
        """
        if text is None or not text.strip():
            raise InvalidAnswer("Answer is blank")

        index = self._state.index
        self._enter(Checking(index))
        sentence = self._sentences[index]
        is_correct = _normalize(text) == _normalize(sentence)

        result = PlaybackResult(sentence=sentence, answer=text, is_correct=is_correct)
        self._results[index] = result
        self._score = self._score.record(is_correct)
        logger.debug("Sentence %d answered (%s)", index + 1, "correct" if is_correct else "incorrect")

        generation = self._generation
        if is_correct:
            self._enter(Advancing(index))
        else:
            await asyncio.sleep(self.reveal_delay)
            if generation != self._generation:
                return result
            self._enter(RevealingCorrection(index, sentence))
            await asyncio.sleep(self.dwell)
            if generation != self._generation:
                return result

        self._advance(index)
        return result

    def _advance(self, index: int) -> None:
        self.speech.stop()
        if index >= len(self._sentences) - 1:
            self._index = len(self._sentences)
            self._enter(Finished())
        else:
            self._index = index + 1
            self._enter(Presenting(self._index))

    @accepts(*ANY_STATE)
    def set_playback_rate(self, value: float) -> None:
        """Set the rate used by the next speak_current() call."""
        rate = float(value)
        if not RATE_MIN <= rate <= RATE_MAX:
            raise ValueError(f"Playback rate must be between {RATE_MIN} and {RATE_MAX}, got {rate}")
        self._playback_rate = rate

    @accepts(*ANY_STATE)
    def restart(self) -> None:
        """Start a new playthrough of the same document."""
        self.speech.stop()
        self._generation += 1
        self._reset()
        self._enter(self._state)

    def transcript(self) -> Transcript:
        return Transcript(
            title=self._document.title,
            language=self._document.language,
            results=list(self._results),
            score=self._score,
            finished=self.is_finished,
        )

    def close(self) -> None:
        """Stop any speech; the session should not be used afterwards."""
        self.speech.stop()
