from __future__ import annotations

from fastapi import APIRouter, Depends, Request

from portfolio_api.api.dependencies import client_ip, get_container
from portfolio_api.schemas.forms import ContactRequest
from portfolio_api.schemas.responses import Envelope

router = APIRouter(tags=["Forms"])


@router.post("/contact")
def submit_contact(
    payload: ContactRequest,
    request: Request,
    container=Depends(get_container),
    ip: str = Depends(client_ip),
) -> dict:
    """Contact form submission.

    Checks run in order: honeypot, field validation, rate limit (per client
    address), notification email. Every field violation is reported in
    ``error.details.violations``.

    Raises:
        ValidationAppError: 400 spam or invalid fields.
        RateLimitAppError: 429 over budget.
        SendAppError: 500 notification could not be delivered.
    """
    message = container.contact.submit(payload, client_ip=ip, host=request.headers.get("host"))
    return Envelope(message=message).dump()
