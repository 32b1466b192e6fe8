from __future__ import annotations

from dataclasses import asdict

from fastapi import APIRouter, Depends

from portfolio_api.api.dependencies import get_container

router = APIRouter(tags=["Health"])


@router.get("/health")
def health_check(container=Depends(get_container)) -> dict:
    """Health check endpoint.

    Reports liveness plus the storage backend resolved at startup, so a
    silent fallback from the database to JSON files is visible.

    Returns:
        dict: ``{"status": "ok", "storage": {"backend", "requested", "connection", ...}}``.
    """

    storage = {key: value for key, value in asdict(container.repositories.info).items() if value is not None}
    return {"status": "ok", "storage": storage}
