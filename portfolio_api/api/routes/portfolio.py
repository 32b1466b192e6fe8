from __future__ import annotations

from fastapi import APIRouter, Query

from portfolio_api.schemas.responses import Envelope
from portfolio_api.services.portfolio_data import get_resource

router = APIRouter(tags=["Portfolio"])


@router.get("/api")
def portfolio_data(
    resource: str = Query("projects", description="projects, skills or testimonials"),
) -> dict:
    """Static portfolio content for the front-end."""
    return Envelope(data=get_resource(resource)).dump()
