"""Tests for the plain-text codec."""

import logging

import pytest

from dictee.codec import LineKind, classify_line, extract_metadata, parse, serialize
from dictee.models import DictationDocument


def test_parse_empty():
    """Empty input yields the all-defaults document."""
    doc = parse("")
    assert doc.title == "Sans titre"
    assert doc.language == "fr"
    assert doc.sentences == []


def test_parse_full_document(sample_markdown):
    doc = parse(sample_markdown)
    assert doc.title == "Le chat"
    assert doc.language == "fr-FR"
    assert doc.sentences == ["Le chat dort.", "Il fait beau.", "Nous partons demain."]


def test_parse_without_title_uses_placeholder():
    doc = parse("Some intro\n1. Bonjour.")
    assert doc.title == "Sans titre"
    assert doc.sentences == ["Bonjour."]


def test_parse_ignores_unrecognized_lines():
    text = "# T\n\nNotes for the class\n1. One.\n- bullet\n2. Two.\n3.missing space\n"
    assert parse(text).sentences == ["One.", "Two."]


def test_parse_language_marker_anywhere_first_wins():
    text = "# T\n1. One.\n<!-- lang:en-GB -->\n2. Two.\n<!-- lang:de -->\n"
    doc = parse(text)
    assert doc.language == "en-GB"
    assert doc.sentences == ["One.", "Two."]


def test_parse_inline_language_marker_is_logged_and_ignored(caplog):
    with caplog.at_level(logging.DEBUG, logger="dictee.codec"):
        doc = parse("# Titre <!-- lang:en -->\n1. One.\n")
    assert doc.language == "fr"
    assert "not on its own line 1" in caplog.text


def test_parse_rejects_malformed_language_tag():
    doc = parse("# T\n<!-- lang:ENG -->\n1. One.")
    assert doc.language == "fr"


def test_parse_trims_sentences_and_handles_crlf():
    doc = parse("# Titre  \r\n\r\n1.   Bonjour   \r\n10. Au revoir\r\n")
    assert doc.title == "Titre"
    assert doc.sentences == ["Bonjour", "Au revoir"]


def test_parse_never_raises_on_garbage():
    doc = parse("\x00\n#\n<!--\n12.\n")
    assert doc.sentences == []


def test_classify_line_kinds():
    assert classify_line("# Title", first=True).kind is LineKind.TITLE
    assert classify_line("# Title").kind is LineKind.IGNORED
    assert classify_line("<!-- lang:fr-FR -->").value == "fr-FR"
    assert classify_line("3. Bonjour").kind is LineKind.SENTENCE
    assert classify_line("hello").kind is LineKind.IGNORED


def test_serialize_layout(sample_document):
    text = serialize(sample_document)
    lines = text.splitlines()
    assert lines[0] == "# Le chat"
    assert lines[1] == "<!-- lang:fr-FR -->"
    assert lines[2] == ""
    assert lines[3:] == ["1. Le chat dort.", "2. Il fait beau.", "3. Nous partons demain."]


def test_serialize_skips_blank_sentences_with_contiguous_numbering():
    doc = DictationDocument(title="T", language="fr", sentences=["A.", "", "  ", "B."])
    text = serialize(doc)
    assert "1. A." in text
    assert "2. B." in text
    assert "3." not in text
    assert parse(text).sentences == ["A.", "B."]


def test_serialize_without_language_omits_marker():
    text = serialize(DictationDocument(title="T", language="", sentences=["A."]))
    assert "lang:" not in text


@pytest.mark.parametrize("doc", [
    DictationDocument(title="Le chat", language="fr-FR", sentences=["Le chat dort.", "Il fait beau."]),
    DictationDocument(title="Spelling 2", language="en", sentences=["The 3 cats sat.", "Why?"]),
    DictationDocument(title="Vide", language="de-DE", sentences=[]),
])
def test_round_trip(doc):
    again = parse(serialize(doc))
    assert again.title == doc.title
    assert again.language == doc.language
    assert again.sentences == doc.sentences


def test_extract_metadata():
    assert extract_metadata("# T\n<!-- lang:en-US -->") == {"language": "en-US"}
    assert extract_metadata("") == {"language": "fr"}
