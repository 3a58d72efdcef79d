"""Import, export and migration flows tying the codec to the collaborators."""

import logging

from dictee import codec, legacy
from dictee.errors import InvalidLocator, StoreError
from dictee.fetcher import RemoteFetcher
from dictee.models import DictationDocument
from dictee.store import DocumentStore

logger = logging.getLogger(__name__)


def load_legacy(url: str) -> DictationDocument:
    """Decode a legacy locator, refusing anything that is not one."""
    if not legacy.is_legacy_locator(url):
        raise InvalidLocator("URL is not recognized as a legacy dictation locator")
    return legacy.decode(url)


def migrate(url: str) -> str:
    """Convert a legacy locator straight into the plain-text format."""
    return codec.serialize(load_legacy(url))


class DictationLibrary:
    """Document operations over a store and an optional remote fetcher."""

    def __init__(self, store: DocumentStore, fetcher: RemoteFetcher | None = None):
        self.store = store
        self.fetcher = fetcher

    def import_markdown(self, text: str) -> int:
        """Parse plain text and save it. The store rejects empty documents."""
        doc = codec.parse(text)
        doc_id = self.store.save(doc)
        logger.info("Imported %r with %d sentence(s) as %s", doc.title, len(doc.sentences), doc_id)
        return doc_id

    def import_legacy(self, url: str) -> int:
        doc = load_legacy(url)
        return self.store.save(doc)

    def import_remote(self, locator: str) -> int:
        """Import from a share link; legacy locators are decoded without fetching."""
        if legacy.is_legacy_locator(locator):
            return self.import_legacy(locator)
        if self.fetcher is None:
            self.fetcher = RemoteFetcher()
        return self.import_markdown(self.fetcher.fetch(locator))

    def export_markdown(self, doc_id=None) -> str:
        """Serialize a stored document (the most recent one when doc_id is None)."""
        doc = self.store.get(doc_id) if doc_id is not None else self.store.latest()
        if doc is None:
            raise StoreError("No dictation selected for export" if doc_id is None else f"Dictation not found: {doc_id}")
        return codec.serialize(doc)
