"""Plain-text dictation format: parse and serialize.

Format:
    # Title
    <!-- lang:fr-FR -->

    1. First sentence.
    2. Second sentence.

Lines are classified one by one (title, language marker, sentence, ignored)
so parsing is total: unknown lines are skipped, never rejected.
"""

import logging
import re
from dataclasses import dataclass
from enum import Enum

from dictee.constants import DEFAULT_TITLE, DEFAULT_LANGUAGE
from dictee.models import DictationDocument

logger = logging.getLogger(__name__)

_TITLE_RE = re.compile(r"^# (.+)$")
_LANG_TAG = r"[a-z]{2}(?:-[A-Z]{2})?"
_LANG_RE = re.compile(rf"^<!--\s*lang:({_LANG_TAG})\s*-->$")
_INLINE_LANG_RE = re.compile(rf"<!--\s*lang:({_LANG_TAG})\s*-->")
_SENTENCE_RE = re.compile(r"^\d+\.\s+(.+)$")


class LineKind(Enum):
    TITLE = "title"
    LANGUAGE = "language"
    SENTENCE = "sentence"
    IGNORED = "ignored"


@dataclass(frozen=True)
class ClassifiedLine:
    kind: LineKind
    value: str = ""


def classify_line(line: str, first: bool = False) -> ClassifiedLine:
    """Classify a single line of a dictation document.

    Only the first line may be a title. A language marker must fill the
    whole (stripped) line.
    """
    if first:
        match = _TITLE_RE.match(line.rstrip())
        if match:
            return ClassifiedLine(LineKind.TITLE, match.group(1).strip())

    match = _LANG_RE.match(line.strip())
    if match:
        return ClassifiedLine(LineKind.LANGUAGE, match.group(1))

    match = _SENTENCE_RE.match(line.rstrip())
    if match:
        return ClassifiedLine(LineKind.SENTENCE, match.group(1).strip())

    return ClassifiedLine(LineKind.IGNORED)


def parse(text: str) -> DictationDocument:
    """Parse plain text into a DictationDocument.

    Never raises: missing parts fall back to defaults. Callers decide
    whether a document without sentences is acceptable.
    """
    if not text:
        return DictationDocument()

    title = DEFAULT_TITLE
    language = None
    sentences = []

    for position, line in enumerate(text.splitlines()):
        classified = classify_line(line, first=position == 0)
        if classified.kind is LineKind.TITLE:
            if classified.value:
                title = classified.value
        elif classified.kind is LineKind.LANGUAGE:
            # First marker wins
            if language is None:
                language = classified.value
        elif classified.kind is LineKind.SENTENCE:
            if classified.value:
                sentences.append(classified.value)

        if classified.kind is not LineKind.LANGUAGE and _INLINE_LANG_RE.search(line):
            logger.debug("Ignoring language marker not on its own line %d: %r", position + 1, line)

    logger.debug("Parsed %d sentence(s) from %r", len(sentences), title)
    return DictationDocument(
        title=title,
        language=language or DEFAULT_LANGUAGE,
        sentences=sentences,
    )


def extract_metadata(text: str) -> dict:
    """Return the metadata carried by marker comments (currently the language)."""
    metadata = {"language": DEFAULT_LANGUAGE}
    if not text:
        return metadata
    for line in text.splitlines():
        classified = classify_line(line)
        if classified.kind is LineKind.LANGUAGE:
            metadata["language"] = classified.value
            break
    return metadata


def _one_line(sentence: str) -> str:
    return " ".join(part.strip() for part in sentence.strip().splitlines())


def serialize(doc: DictationDocument) -> str:
    """Render a document as plain text.

    Blank sentences are dropped and numbering stays contiguous, so a
    document with blank sentences does not round-trip to the same count.
    """
    title = doc.title.strip() if doc.title and doc.title.strip() else DEFAULT_TITLE
    lines = [f"# {_one_line(title)}"]
    if doc.language:
        lines.append(f"<!-- lang:{doc.language} -->")
    lines.append("")

    number = 0
    for sentence in doc.sentences:
        if not sentence or not sentence.strip():
            continue
        number += 1
        lines.append(f"{number}. {_one_line(sentence)}")

    return "\n".join(lines) + "\n"
