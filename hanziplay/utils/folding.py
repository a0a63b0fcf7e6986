# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Best-effort folding over partially malformed store data.

Normalizers yield either a value or a Skip describing why an item was
dropped. best_effort() keeps the values, logs each skip once and counts
them, so a report over the well-formed subset is still produced.

Example:
    fold = best_effort((normalize(doc) for doc in documents), context="error tallies")
    for tally in fold.items:
        ...
    print(fold.skipped_count)
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Generic, TypeVar, Union

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class Skip:
    """Why an item was left out of a fold.

    Attributes:
        reason: Short description of the defect.
        source: Identifier of the offending document or entry.
    """

    reason: str
    source: str | None = None


Outcome = Union[T, Skip]


@dataclass
class FoldResult(Generic[T]):
    """Accepted items and the skips encountered."""

    items: list[T] = field(default_factory=list)
    skipped: list[Skip] = field(default_factory=list)

    @property
    def skipped_count(self) -> int:
        return len(self.skipped)


def best_effort(outcomes: Iterable[Outcome[T]], context: str) -> FoldResult[T]:
    """Accumulate values, logging and counting skips.

    Args:
        outcomes: Values or Skip markers.
        context: What is being folded, for log messages.

    Returns:
        FoldResult with the accepted values in input order.
    """
    result: FoldResult[T] = FoldResult()

    for outcome in outcomes:
        if isinstance(outcome, Skip):
            logger.warning(
                "Skipping malformed %s item: source=%s, reason=%s",
                context,
                outcome.source,
                outcome.reason,
            )
            result.skipped.append(outcome)
        else:
            result.items.append(outcome)

    if result.skipped:
        logger.warning(
            "Skipped %d malformed %s item(s), kept %d",
            result.skipped_count,
            context,
            len(result.items),
        )

    return result
