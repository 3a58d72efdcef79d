"""Tests for import/export/migration flows."""

from unittest.mock import MagicMock

import pytest

from dictee.errors import InvalidDocument, InvalidLocator, StoreError
from dictee.library import DictationLibrary, load_legacy, migrate
from dictee.store import MemoryDocumentStore

LEGACY = "http://dictee.example.org/lecteur.php?titre=Test&tl=en&d[1]=72|105"


@pytest.fixture
def library():
    return DictationLibrary(MemoryDocumentStore())


def test_migrate_legacy_to_markdown():
    assert migrate(LEGACY) == "# Test\n<!-- lang:en -->\n\n1. Hi\n"


def test_load_legacy_rejects_other_locators():
    with pytest.raises(InvalidLocator):
        load_legacy("https://example.org/?titre=x")


def test_import_markdown(library, sample_markdown):
    doc_id = library.import_markdown(sample_markdown)
    assert library.store.get(doc_id).sentences[0] == "Le chat dort."


def test_import_markdown_without_sentences_rejected(library):
    with pytest.raises(InvalidDocument):
        library.import_markdown("# Seulement un titre\n")


def test_import_legacy(library):
    doc_id = library.import_legacy(LEGACY)
    assert library.store.get(doc_id).title == "Test"
    with pytest.raises(InvalidLocator):
        library.import_legacy("https://example.org/")


def test_import_remote_fetches_and_parses(sample_markdown):
    fetcher = MagicMock()
    fetcher.fetch.return_value = sample_markdown
    library = DictationLibrary(MemoryDocumentStore(), fetcher=fetcher)
    doc_id = library.import_remote("https://example.org/dictee.md")
    fetcher.fetch.assert_called_once_with("https://example.org/dictee.md")
    assert library.store.get(doc_id).language == "fr-FR"


def test_import_remote_decodes_legacy_without_fetching():
    fetcher = MagicMock()
    library = DictationLibrary(MemoryDocumentStore(), fetcher=fetcher)
    doc_id = library.import_remote(LEGACY)
    fetcher.fetch.assert_not_called()
    assert library.store.get(doc_id).sentences == ["Hi"]


def test_export_markdown(library, sample_markdown):
    doc_id = library.import_markdown(sample_markdown)
    assert library.export_markdown(doc_id) == sample_markdown
    assert library.export_markdown() == sample_markdown


def test_export_markdown_nothing_to_export(library):
    with pytest.raises(StoreError):
        library.export_markdown()
    with pytest.raises(StoreError, match="not found"):
        library.export_markdown(7)
