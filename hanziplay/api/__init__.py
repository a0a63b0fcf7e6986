# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""HTTP API for the HanziPlay dashboard."""

from hanziplay.api.app import create_app

__all__ = ["create_app"]
