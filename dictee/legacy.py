"""Decode the legacy query-string locators of the previous dictation site.

A legacy locator looks like:

    https://old.example/dictee.php?titre=Test&tl=en&d[1]=72|105&d[2]=...

Each d[i] value is a "|"-delimited list of decimal character codes.
"""

import logging
from urllib.parse import parse_qsl, urlencode

from dictee.constants import DEFAULT_TITLE, DEFAULT_LANGUAGE, LEGACY_MAX_SENTENCES
from dictee.models import DictationDocument

logger = logging.getLogger(__name__)


def _query_params(url: str) -> dict[str, str]:
    """Parse the part after the first "?" into a dict (first occurrence wins)."""
    if not url or "?" not in url:
        return {}
    query = url.split("?", 1)[1].split("#", 1)[0]
    params = {}
    for key, value in parse_qsl(query, keep_blank_values=True):
        params.setdefault(key, value)
    return params


def _sentence_key(index: int) -> str:
    return f"d[{index}]"


def is_legacy_locator(url: str) -> bool:
    """True iff at least one d[1]..d[20] key is present."""
    params = _query_params(url)
    return any(
        _sentence_key(i) in params for i in range(1, LEGACY_MAX_SENTENCES + 1)
    )


def _decode_codes(value: str) -> str:
    """Turn "72|105" into "Hi", skipping blank or malformed codes."""
    chars = []
    for code in value.split("|"):
        code = code.strip()
        if not code:
            continue
        try:
            chars.append(chr(int(code)))
        except (ValueError, OverflowError):
            logger.debug("Skipping malformed character code: %r", code)
    return "".join(chars)


def decode(url: str) -> DictationDocument:
    """Decode a legacy locator into a DictationDocument.

    Never raises. A locator without d[i] keys yields an empty document;
    gate on is_legacy_locator() first.
    """
    params = _query_params(url)
    title = params.get("titre") or DEFAULT_TITLE
    language = params.get("tl") or DEFAULT_LANGUAGE

    sentences = []
    for i in range(1, LEGACY_MAX_SENTENCES + 1):
        value = params.get(_sentence_key(i))
        if not value:
            continue
        sentence = _decode_codes(value).strip()
        if sentence:
            sentences.append(sentence)

    return DictationDocument(title=title, language=language, sentences=sentences)


def encode(doc: DictationDocument, base: str = "") -> str:
    """Build a legacy locator for doc (inverse of decode).

    Sentences past the 20th cannot be represented and are dropped.
    """
    sentences = [s for s in doc.sentences if s and s.strip()]
    if len(sentences) > LEGACY_MAX_SENTENCES:
        logger.warning(
            "Legacy locators hold %d sentences; dropping %d",
            LEGACY_MAX_SENTENCES, len(sentences) - LEGACY_MAX_SENTENCES,
        )
        sentences = sentences[:LEGACY_MAX_SENTENCES]

    pairs = [("titre", doc.title), ("tl", doc.language)]
    for i, sentence in enumerate(sentences, start=1):
        pairs.append((_sentence_key(i), "|".join(str(ord(c)) for c in sentence)))

    return f"{base}?{urlencode(pairs, safe='[]|')}"
