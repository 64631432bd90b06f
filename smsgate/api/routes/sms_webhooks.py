"""SMS webhook endpoint for Twilio."""

import logging
import time
from typing import Annotated

from fastapi import APIRouter, Depends, Form, HTTPException, Request, status
from fastapi.responses import Response
from twilio.request_validator import RequestValidator
from twilio.twiml.messaging_response import MessagingResponse

from smsgate.api.deps import get_counter_store, get_gate_config
from smsgate.core.exceptions import StoreUnavailableError
from smsgate.domain.models import GateConfig, Outcome
from smsgate.domain.services.gatekeeper import Gatekeeper
from smsgate.infrastructure.store import CounterStore
from smsgate.settings import settings

logger = logging.getLogger(__name__)

router = APIRouter()


async def _validate_twilio_signature(
    request: Request,
    auth_token: str,
) -> bool:
    """Validate Twilio webhook signature.

    Args:
        request: FastAPI request
        auth_token: Twilio auth token for the account

    Returns:
        True if signature is valid, False otherwise
    """
    signature = request.headers.get("X-Twilio-Signature", "")
    if not signature:
        logger.warning("Missing X-Twilio-Signature header")
        return False

    # Get the full URL as Twilio sees it
    url = str(request.url)

    form_data = await request.form()
    params = {key: form_data[key] for key in form_data}

    validator = RequestValidator(auth_token)
    return validator.validate(url, params, signature)


def render_outcome(outcome: Outcome) -> Response:
    """Translate a decision into the HTTP response Twilio expects.

    Silence is a bare 204 so Twilio sends nothing (and bills nothing).
    """
    if outcome.is_silent:
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    twiml = MessagingResponse()
    twiml.message(outcome.reply)
    return Response(content=str(twiml), media_type="application/xml")


@router.post("/inbound")
async def inbound_sms_webhook(
    request: Request,
    store: Annotated[CounterStore, Depends(get_counter_store)],
    config: Annotated[GateConfig, Depends(get_gate_config)],
    From: Annotated[str, Form()] = "",
    Body: Annotated[str, Form()] = "",
    MessageSid: Annotated[str, Form()] = "",
) -> Response:
    """Handle inbound SMS webhook from Twilio.

    This endpoint:
    - Validates the Twilio signature (enforced in production)
    - Runs the gatekeeper decision pipeline
    - Replies with TwiML, or 204 for silence

    A counter store outage returns 503 so Twilio re-delivers; the sender
    never sees an error message.
    """
    if settings.twilio_auth_token:
        is_valid = await _validate_twilio_signature(request, settings.twilio_auth_token)
        if not is_valid:
            if settings.environment == "production":
                logger.warning("Invalid Twilio signature", extra={"message_sid": MessageSid})
                raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Invalid signature")
            logger.warning("Invalid Twilio signature (ignored in dev)", extra={"message_sid": MessageSid})

    now_ms = int(time.time() * 1000)
    try:
        outcome = await Gatekeeper(store, config).decide(From, Body, now_ms)
    except StoreUnavailableError:
        logger.exception(
            "Counter store unavailable; leaving inbound SMS for re-delivery",
            extra={"event_type": "store_unavailable", "message_sid": MessageSid, "from_number": From},
        )
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Temporarily unavailable",
        )

    return render_outcome(outcome)
