# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Document store abstraction.

The dashboard treats its backing database as a collection-keyed document
store. This module defines:
- RecordStore: abstract async interface (query, get, put, update, delete)
- Document: an ID plus a plain dict payload
- Predicate / OrderBy: the filter and ordering primitives queries accept
- StoreUnavailableError / DocumentNotFoundError: the store error taxonomy

Documents never carry live handles to the store. References between
documents are plain string IDs.

Example:
    docs = await store.query(
        "userGameData",
        [Predicate("GameId", "==", "Game1")],
        order_by=OrderBy("Datetime", descending=True),
    )
"""

import operator
from abc import ABC, abstractmethod
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Literal, Optional

from hanziplay.utils.datetime import ensure_utc, parse_iso
from hanziplay.utils.references import parse_reference

# Collection names shared with the game clients
USERS = "users"
GAMES = "games"
PLAY_RECORDS = "userGameData"
ERROR_TALLIES = "errorPatterns"

Operator = Literal["==", "!=", "<", "<=", ">", ">=", "in", "ref"]

_COMPARATORS: dict[str, Callable[[Any, Any], bool]] = {
    "==": operator.eq,
    "!=": operator.ne,
    "<": operator.lt,
    "<=": operator.le,
    ">": operator.gt,
    ">=": operator.ge,
}


class StoreError(Exception):
    """Base exception for document store operations.

    Attributes:
        message: Human-readable error description.
        original_error: The underlying backend error, if any.
    """

    def __init__(self, message: str, original_error: Optional[Exception] = None) -> None:
        """Initialize the store error.

        Args:
            message: Human-readable error description.
            original_error: The underlying exception that caused this error.
        """
        super().__init__(message)
        self.message = message
        self.original_error = original_error

    def __str__(self) -> str:
        """Return string representation of the error."""
        if self.original_error:
            return f"{self.message}: {self.original_error}"
        return self.message


class StoreUnavailableError(StoreError):
    """Raised when a query, lookup or write against the backend fails."""


class DocumentNotFoundError(StoreError):
    """Raised when a write targets a document that does not exist."""

    def __init__(self, collection: str, doc_id: str) -> None:
        self.collection = collection
        self.doc_id = doc_id
        super().__init__(f"Document {collection}/{doc_id} not found")


@dataclass
class Document:
    """A stored document: its ID and payload."""

    id: str
    data: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Flatten into a single mapping with an ``id`` key."""
        return {"id": self.id, **self.data}


def _comparable(field_value: Any, target: Any) -> Any:
    """Coerce a stored value so it compares against a predicate value.

    Datetimes survive a JSON backend as ISO strings, so a datetime
    predicate parses string field values before comparing.
    """
    if isinstance(target, datetime):
        if isinstance(field_value, str):
            try:
                return parse_iso(field_value)
            except ValueError:
                return None
        if isinstance(field_value, datetime):
            return ensure_utc(field_value)
    return field_value


@dataclass(frozen=True)
class Predicate:
    """A single field condition.

    Attributes:
        field: Top-level document field name.
        op: Comparison operator.
        value: Value to compare against (an iterable for ``in``). For
            ``ref`` the stored value is reduced to a bare document ID
            before the equality check, so ID, path and mapping forms match.
    """

    field: str
    op: Operator
    value: Any

    def matches(self, data: dict[str, Any]) -> bool:
        """Check whether a document payload satisfies this condition."""
        if self.field not in data:
            return False

        if self.op == "in":
            return data[self.field] in self.value

        if self.op == "ref":
            return parse_reference(data[self.field]) == self.value

        target = ensure_utc(self.value) if isinstance(self.value, datetime) else self.value
        current = _comparable(data[self.field], target)
        if current is None and self.op not in ("==", "!="):
            return False
        try:
            return _COMPARATORS[self.op](current, target)
        except TypeError:
            # Mismatched types never satisfy a range condition
            return False


@dataclass(frozen=True)
class OrderBy:
    """Ordering on a single top-level field."""

    field: str
    descending: bool = False


def _order_value(document: Document, field_name: str) -> Any:
    value = document.data.get(field_name)
    if isinstance(value, str):
        try:
            return parse_iso(value)
        except ValueError:
            return value
    if isinstance(value, datetime):
        return ensure_utc(value)
    return value


def apply_query(
    documents: Iterable[Document],
    predicates: Sequence[Predicate] = (),
    order_by: OrderBy | None = None,
    limit: int | None = None,
) -> list[Document]:
    """Filter, order and cap documents client-side.

    Shared by backends that cannot push JSON predicates down to storage.

    Args:
        documents: Candidate documents of one collection.
        predicates: Conditions that must all hold.
        order_by: Optional ordering.
        limit: Optional maximum number of results.

    Returns:
        The matching documents.
    """
    matched = [doc for doc in documents if all(p.matches(doc.data) for p in predicates)]

    if order_by is not None:
        # Missing values sort last in either direction
        present = [doc for doc in matched if doc.data.get(order_by.field) is not None]
        missing = [doc for doc in matched if doc.data.get(order_by.field) is None]
        try:
            present.sort(
                key=lambda doc: _order_value(doc, order_by.field),
                reverse=order_by.descending,
            )
        except TypeError:
            present.sort(
                key=lambda doc: str(_order_value(doc, order_by.field)),
                reverse=order_by.descending,
            )
        matched = present + missing

    if limit is not None:
        matched = matched[:limit]

    return matched


class RecordStore(ABC):
    """Abstract async document store.

    Implementations wrap backend failures in StoreUnavailableError.
    Returned payloads are copies; mutating them never changes the store.
    """

    @abstractmethod
    async def query(
        self,
        collection: str,
        predicates: Sequence[Predicate] = (),
        order_by: OrderBy | None = None,
        limit: int | None = None,
    ) -> list[Document]:
        """Return documents of a collection matching all predicates."""

    @abstractmethod
    async def get(self, collection: str, doc_id: str) -> Document | None:
        """Return one document, or None if it does not exist."""

    @abstractmethod
    async def put(
        self,
        collection: str,
        data: dict[str, Any],
        doc_id: str | None = None,
    ) -> str:
        """Insert or replace a document and return its ID.

        A new ID is generated when doc_id is None.
        """

    @abstractmethod
    async def update(self, collection: str, doc_id: str, changes: dict[str, Any]) -> None:
        """Merge top-level fields into an existing document.

        Raises:
            DocumentNotFoundError: If the document does not exist.
        """

    @abstractmethod
    async def delete(self, collection: str, doc_id: str) -> None:
        """Delete a document. Deleting a missing document is a no-op."""

    async def check_connection(self) -> bool:
        """Check whether the backend is reachable."""
        return True

    async def close(self) -> None:
        """Release backend resources."""
