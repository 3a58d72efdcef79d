"""Shared fixtures for dictation tests."""

import asyncio

import pytest

from dictee.models import DictationDocument
from dictee.speech import SpeechCoordinator, Voice


class FakeSpeechHost:
    """In-memory SpeechHost. With block=True, utterances wait for release()."""

    def __init__(self, voices=None, supported=True, fail_with=None, block=False):
        self.voices = voices if voices is not None else [
            Voice("fr-FR-DeniseNeural", "fr-FR"),
            Voice("en-US-AriaNeural", "en-US"),
            Voice("en-GB-SoniaNeural", "en-GB"),
        ]
        self.supported = supported
        self.fail_with = fail_with
        self.block = block
        self.spoken = []
        self.calls = []
        self._releases = []

    def available(self):
        return self.supported

    async def load_voices(self):
        return list(self.voices)

    async def utter(self, utterance):
        self.spoken.append(utterance)
        if self.fail_with is not None:
            raise self.fail_with
        if self.block:
            release = asyncio.Event()
            self._releases.append(release)
            await release.wait()
        else:
            await asyncio.sleep(0)

    def release(self):
        self._releases[-1].set()

    def pause(self):
        self.calls.append("pause")

    def resume(self):
        self.calls.append("resume")

    def cancel(self):
        self.calls.append("cancel")


@pytest.fixture
def fake_host():
    return FakeSpeechHost()


@pytest.fixture
def speech(fake_host):
    return SpeechCoordinator(fake_host)


@pytest.fixture
def sample_document():
    """Three-sentence French dictation."""
    return DictationDocument(
        title="Le chat",
        language="fr-FR",
        sentences=[
            "Le chat dort.",
            "Il fait beau.",
            "Nous partons demain.",
        ],
    )


@pytest.fixture
def sample_markdown():
    return (
        "# Le chat\n"
        "<!-- lang:fr-FR -->\n"
        "\n"
        "1. Le chat dort.\n"
        "2. Il fait beau.\n"
        "3. Nous partons demain.\n"
    )
