# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Raw play record retrieval.

RawRecordFetcher loads every play record of one game, newest first, and
resolves each owner's display name. Name lookups run concurrently, once
per distinct user; a user that no longer exists (or whose lookup fails)
is shown as "Unknown User" and the record is kept.

Usage:
    fetcher = RawRecordFetcher(store)
    records = await fetcher.fetch_records("Game1")
"""

import asyncio
import logging
from collections.abc import Iterable

from pydantic import ValidationError

from hanziplay.domains.games.registry import GameRegistry, GameType, get_game_registry
from hanziplay.utils.folding import Outcome, Skip, best_effort
from hanziplay.infrastructure.store.base import (
    PLAY_RECORDS,
    USERS,
    Document,
    OrderBy,
    Predicate,
    RecordStore,
    StoreUnavailableError,
)
from hanziplay.models.records import PlayRecord, ResolvedPlayRecord
from hanziplay.models.users import display_name

logger = logging.getLogger(__name__)

UNKNOWN_USER = "Unknown User"


def parse_play_record(document: Document) -> Outcome[PlayRecord]:
    """Validate a play record document, or describe why it is unusable."""
    try:
        return PlayRecord.from_document(document)
    except ValidationError as e:
        fields = ", ".join(str(error["loc"][0]) for error in e.errors() if error["loc"])
        return Skip(reason=f"invalid fields: {fields or 'unknown'}", source=document.id)


def game_reference_predicate(game_type: GameType) -> Predicate:
    """Match a game reference in any stored form (bare ID, path or mapping)."""
    return Predicate("GameId", "ref", game_type.value)


class RawRecordFetcher:
    """Fetches a game's play records with owner names resolved.

    Attributes:
        _store: Document store.
        _registry: Game registry used to validate game types.
        _unknown_user_label: Name used for unresolvable owners.
    """

    def __init__(
        self,
        store: RecordStore,
        registry: GameRegistry | None = None,
        unknown_user_label: str = UNKNOWN_USER,
    ) -> None:
        """Initialize the fetcher.

        Args:
            store: Document store to read from.
            registry: Game registry (defaults to the built-in games).
            unknown_user_label: Placeholder name for missing users.
        """
        self._store = store
        self._registry = registry if registry is not None else get_game_registry()
        self._unknown_user_label = unknown_user_label

    async def fetch_records(self, game_type: str | GameType) -> list[ResolvedPlayRecord]:
        """Fetch all play records of a game, newest first.

        Args:
            game_type: Game identifier.

        Returns:
            Records with ``user_name`` and ``game_name`` resolved.

        Raises:
            InvalidGameTypeError: If the game type is not registered.
            StoreUnavailableError: If the record query fails.
        """
        descriptor = self._registry.get(game_type)

        documents = await self._store.query(
            PLAY_RECORDS,
            [game_reference_predicate(descriptor.game_type)],
            order_by=OrderBy("Datetime", descending=True),
        )
        fold = best_effort(
            (parse_play_record(document) for document in documents),
            context="play record",
        )

        names = await self.resolve_user_names(record.user_id for record in fold.items)

        logger.debug(
            "Fetched play records: game=%s, records=%d, users=%d",
            descriptor.game_type.value,
            len(fold.items),
            len(names),
        )

        return [
            ResolvedPlayRecord(
                **record.model_dump(),
                user_name=names[record.user_id],
                game_name=descriptor.display_name,
            )
            for record in fold.items
        ]

    async def resolve_user_names(self, user_ids: Iterable[str]) -> dict[str, str]:
        """Resolve user IDs to display names concurrently.

        Args:
            user_ids: IDs to resolve; duplicates are looked up once.

        Returns:
            Mapping of user ID to display name.
        """
        unique_ids = list(dict.fromkeys(user_ids))
        names = await asyncio.gather(*(self._resolve_user_name(user_id) for user_id in unique_ids))
        return dict(zip(unique_ids, names))

    async def _resolve_user_name(self, user_id: str) -> str:
        try:
            document = await self._store.get(USERS, user_id)
        except StoreUnavailableError as e:
            logger.warning(
                "User lookup failed, using placeholder name: user_id=%s, error=%s",
                user_id,
                str(e),
            )
            return self._unknown_user_label

        if document is None:
            return self._unknown_user_label
        return display_name(document.data, fallback=self._unknown_user_label)
