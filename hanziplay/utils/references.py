# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Document reference normalization.

Game clients write references either as plain IDs (``"Game1"``) or, in
older documents, as document paths (``"games/Game1"`` or a full
``projects/.../documents/games/Game1`` path). Mappings with an ``id``
key are accepted too. Every form reduces to the bare document ID.
"""

from typing import Any


def parse_reference(value: Any) -> str | None:
    """Reduce a stored document reference to a bare ID.

    Args:
        value: Raw reference value from a document.

    Returns:
        The referenced document ID, or None if the value is not a reference.
    """
    if isinstance(value, dict):
        value = value.get("id")
    if not isinstance(value, str):
        return None

    segments = [segment for segment in value.strip().split("/") if segment]
    return segments[-1] if segments else None
