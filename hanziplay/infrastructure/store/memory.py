# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""In-memory document store.

Process-local RecordStore backed by nested dicts. Used in development
and tests; payloads are deep-copied in and out so callers never share
state with the store.

Example:
    store = InMemoryRecordStore()
    user_id = await store.put(USERS, {"email": "a@b.c", "role": "student"})
    doc = await store.get(USERS, user_id)
"""

import copy
import logging
from collections.abc import Sequence
from typing import Any
from uuid import uuid4

from hanziplay.infrastructure.store.base import (
    Document,
    DocumentNotFoundError,
    OrderBy,
    Predicate,
    RecordStore,
    apply_query,
)

logger = logging.getLogger(__name__)


class InMemoryRecordStore(RecordStore):
    """RecordStore kept in process memory.

    Attributes:
        _collections: Mapping of collection name to {doc_id: payload}.
    """

    def __init__(self, seed: dict[str, dict[str, dict[str, Any]]] | None = None) -> None:
        """Initialize the store.

        Args:
            seed: Optional initial contents, {collection: {doc_id: payload}}.
        """
        self._collections: dict[str, dict[str, dict[str, Any]]] = copy.deepcopy(seed or {})

    async def query(
        self,
        collection: str,
        predicates: Sequence[Predicate] = (),
        order_by: OrderBy | None = None,
        limit: int | None = None,
    ) -> list[Document]:
        rows = self._collections.get(collection, {})
        documents = [Document(id=doc_id, data=copy.deepcopy(data)) for doc_id, data in rows.items()]
        return apply_query(documents, predicates, order_by, limit)

    async def get(self, collection: str, doc_id: str) -> Document | None:
        data = self._collections.get(collection, {}).get(doc_id)
        if data is None:
            return None
        return Document(id=doc_id, data=copy.deepcopy(data))

    async def put(
        self,
        collection: str,
        data: dict[str, Any],
        doc_id: str | None = None,
    ) -> str:
        doc_id = doc_id or uuid4().hex
        self._collections.setdefault(collection, {})[doc_id] = copy.deepcopy(data)
        logger.debug("Stored document %s/%s", collection, doc_id)
        return doc_id

    async def update(self, collection: str, doc_id: str, changes: dict[str, Any]) -> None:
        rows = self._collections.get(collection, {})
        if doc_id not in rows:
            raise DocumentNotFoundError(collection, doc_id)
        rows[doc_id].update(copy.deepcopy(changes))

    async def delete(self, collection: str, doc_id: str) -> None:
        self._collections.get(collection, {}).pop(doc_id, None)
