"""
Shared-secret authentication.

Deal creation requires `Authorization: Bearer <API_TOKEN>`. Accept and skip
are open unless PROTECT_RESOLUTION is enabled.
"""

from __future__ import annotations

import logging
import secrets

from fastapi import HTTPException, Request, status

from api.config import Settings

logger = logging.getLogger(__name__)


def _check_bearer(request: Request, settings: Settings) -> None:
    header = request.headers.get("Authorization") or ""
    expected = f"Bearer {settings.api_token}"
    if not secrets.compare_digest(header.encode("utf-8"), expected.encode("utf-8")):
        logger.warning(
            "Rejected request with invalid or missing token",
            extra={
                "path": request.url.path,
                "client_host": request.client.host if request.client else "unknown",
            },
        )
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or missing token",
        )


def require_api_token(request: Request) -> None:
    """Dependency for producer-facing routes."""
    _check_bearer(request, request.app.state.settings)


def require_resolution_token(request: Request) -> None:
    """Dependency for accept/skip; only enforced when PROTECT_RESOLUTION is on."""
    settings: Settings = request.app.state.settings
    if settings.protect_resolution:
        _check_bearer(request, settings)
