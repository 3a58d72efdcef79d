"""Document store interface and an in-process implementation."""

import copy
import itertools
import logging
from datetime import datetime, timezone
from typing import Protocol

from dictee.errors import StoreError
from dictee.models import DictationDocument, validate_document

logger = logging.getLogger(__name__)


class DocumentStore(Protocol):
    """What the core expects from whoever keeps documents."""

    def save(self, doc: DictationDocument) -> int: ...

    def get(self, doc_id) -> DictationDocument | None: ...

    def list(self) -> list[DictationDocument]: ...

    def delete(self, doc_id) -> None: ...

    def latest(self) -> DictationDocument | None: ...


def _now() -> datetime:
    return datetime.now(timezone.utc)


class MemoryDocumentStore:
    """Keeps documents in a dict for the lifetime of the process.

    Ids are increasing integers. save() stamps updated_at and keeps the
    original created_at on updates. Stored documents are copies, so callers
    cannot mutate them behind the store's back.
    """

    def __init__(self, clock=_now):
        self._docs: dict[int, DictationDocument] = {}
        self._ids = itertools.count(1)
        self._clock = clock

    def save(self, doc: DictationDocument) -> int:
        validate_document(doc)
        now = self._clock()
        stored = copy.deepcopy(doc)

        if stored.id is None:
            stored.id = next(self._ids)
        elif stored.id not in self._docs:
            raise StoreError(f"Unknown document id: {stored.id}")

        previous = self._docs.get(stored.id)
        stored.created_at = (previous.created_at if previous else None) or stored.created_at or now
        stored.updated_at = now
        self._docs[stored.id] = stored
        logger.debug("Saved document %s (%r)", stored.id, stored.title)
        return stored.id

    def get(self, doc_id) -> DictationDocument | None:
        if doc_id is None:
            return None
        doc = self._docs.get(_coerce_id(doc_id))
        return copy.deepcopy(doc) if doc else None

    def list(self) -> list[DictationDocument]:
        return [copy.deepcopy(d) for d in self._docs.values()]

    def delete(self, doc_id) -> None:
        key = _coerce_id(doc_id) if doc_id is not None else None
        if key not in self._docs:
            raise StoreError(f"Unknown document id: {doc_id}")
        del self._docs[key]

    def latest(self) -> DictationDocument | None:
        if not self._docs:
            return None
        doc = max(self._docs.values(), key=lambda d: (d.updated_at, d.id))
        return copy.deepcopy(doc)

    def __len__(self) -> int:
        return len(self._docs)


def _coerce_id(doc_id):
    try:
        return int(doc_id)
    except (TypeError, ValueError):
        return doc_id
