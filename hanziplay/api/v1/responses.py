# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Shared response helpers for v1 endpoints."""

from fastapi import status
from fastapi.responses import JSONResponse

from hanziplay.models.common import MutationResult


def mutation_response(result: MutationResult) -> JSONResponse:
    """Render a MutationResult with a matching status code.

    Not-found failures map to 404 and other failures to 503.
    """
    if result.success:
        status_code = status.HTTP_200_OK
    elif result.is_not_found:
        status_code = status.HTTP_404_NOT_FOUND
    else:
        status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    return JSONResponse(status_code=status_code, content=result.model_dump())
