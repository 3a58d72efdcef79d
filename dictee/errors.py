"""Exception taxonomy for dictation documents, speech and playback."""


class DictationError(Exception):
    """Base class for every error raised by this package."""


class FormatError(DictationError):
    """The codec found no usable structure.

    Reserved: the parser degrades to defaults instead of raising it.
    """


class InvalidLocator(DictationError):
    """A locator that is not a legacy locator was handed to a legacy import."""


class InvalidDocument(DictationError, ValueError):
    """A document failed validation before playback or storage."""

    def __init__(self, errors: dict[str, str]):
        self.errors = dict(errors)
        message = "; ".join(f"{field}: {msg}" for field, msg in self.errors.items())
        super().__init__(message or "Invalid document")


class SpeechError(DictationError):
    """The speech host is unsupported or failed mid-utterance."""


class SessionStateError(DictationError):
    """A session operation was invoked outside the states that accept it."""


class InvalidAnswer(DictationError, ValueError):
    """A blank answer was submitted."""


class StoreError(DictationError):
    pass


class FetchError(DictationError):
    pass
