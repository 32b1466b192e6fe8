from __future__ import annotations

from fastapi import APIRouter, Depends

from portfolio_api.api.dependencies import client_ip, get_container
from portfolio_api.schemas.forms import NewsletterRequest
from portfolio_api.schemas.responses import Envelope
from portfolio_api.services.newsletter_service import SUCCESS_MESSAGE

router = APIRouter(tags=["Forms"])


@router.post("/newsletter")
def subscribe(
    payload: NewsletterRequest,
    container=Depends(get_container),
    ip: str = Depends(client_ip),
) -> dict:
    """Newsletter signup.

    ``data.confirmation_sent`` is false when the subscription was stored but
    the confirmation email could not be delivered.
    """
    result = container.newsletter.subscribe(payload, client_ip=ip)
    return Envelope(
        message=SUCCESS_MESSAGE,
        data={"email": result.subscriber.email, "confirmation_sent": result.confirmation_sent},
    ).dump()
