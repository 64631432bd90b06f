"""Admin endpoints for unblocking senders and managing the whitelist.

Usage (GET or POST):
    /admin/unblock?phone=555-123-4567&token=YOUR_TOKEN
    /admin/whitelist-add?phone=+15551234567&token=YOUR_TOKEN
    /admin/whitelist-remove?phone=+15551234567&token=YOUR_TOKEN
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel

from smsgate.api.deps import get_counter_store, verify_admin
from smsgate.core.exceptions import InvalidPhoneNumberError, StoreUnavailableError
from smsgate.core.phone import assert_e164_us, normalize_to_e164_us
from smsgate.domain.services.admin_service import AdminService
from smsgate.infrastructure.store import CounterStore

logger = logging.getLogger(__name__)

router = APIRouter()

_TRUTHY = {"1", "true", "yes", "on"}


class UnblockResponse(BaseModel):
    """Response for an unblock request."""

    ok: bool = True
    phone: str
    removed_from_blocklist: bool
    burst_deleted: int
    suspicious_deleted: int
    opt_out_cleared: bool
    note: str = "If the user texted STOP, carriers still require START to re-enable delivery."


class WhitelistResponse(BaseModel):
    """Response for whitelist changes."""

    ok: bool = True
    phone: str
    changed: bool
    message: str


def _require_phone(params: dict[str, str]) -> str:
    phone = params.get("phone")
    if not phone:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Missing ?phone")
    return phone


def _store_down(e: StoreUnavailableError) -> HTTPException:
    logger.error(f"Admin operation failed: {e}")
    return HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Counter store unavailable")


@router.api_route("/unblock", methods=["GET", "POST"], response_model=UnblockResponse)
async def unblock(
    params: Annotated[dict[str, str], Depends(verify_admin)],
    store: Annotated[CounterStore, Depends(get_counter_store)],
) -> UnblockResponse:
    """Remove a sender from the blocklist and reset its counters.

    Optional flags: ``clear_opt_out=true`` also clears a STOP opt-out;
    ``all=true`` also deletes suspicious-content counters from past days.
    """
    try:
        phone = normalize_to_e164_us(_require_phone(params))
    except InvalidPhoneNumberError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    try:
        result = await AdminService(store).unblock(
            phone,
            clear_opt_out=params.get("clear_opt_out", "").lower() in _TRUTHY,
            clear_history=params.get("all", "").lower() in _TRUTHY,
        )
    except StoreUnavailableError as e:
        raise _store_down(e)

    return UnblockResponse(
        phone=result.phone,
        removed_from_blocklist=result.removed_from_blocklist,
        burst_deleted=result.burst_deleted,
        suspicious_deleted=result.suspicious_deleted,
        opt_out_cleared=result.opt_out_cleared,
    )


@router.api_route("/whitelist-add", methods=["GET", "POST"], response_model=WhitelistResponse)
async def whitelist_add(
    params: Annotated[dict[str, str], Depends(verify_admin)],
    store: Annotated[CounterStore, Depends(get_counter_store)],
) -> WhitelistResponse:
    """Add a strictly formatted E.164 US number to the whitelist."""
    try:
        phone = assert_e164_us(_require_phone(params))
    except InvalidPhoneNumberError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    try:
        added = await AdminService(store).whitelist_add(phone)
    except StoreUnavailableError as e:
        raise _store_down(e)

    return WhitelistResponse(
        phone=phone,
        changed=added,
        message="Phone added to whitelist." if added else "Phone was already in whitelist.",
    )


@router.api_route("/whitelist-remove", methods=["GET", "POST"], response_model=WhitelistResponse)
async def whitelist_remove(
    params: Annotated[dict[str, str], Depends(verify_admin)],
    store: Annotated[CounterStore, Depends(get_counter_store)],
) -> WhitelistResponse:
    """Remove a strictly formatted E.164 US number from the whitelist."""
    try:
        phone = assert_e164_us(_require_phone(params))
    except InvalidPhoneNumberError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    try:
        removed = await AdminService(store).whitelist_remove(phone)
    except StoreUnavailableError as e:
        raise _store_down(e)

    return WhitelistResponse(
        phone=phone,
        changed=removed,
        message="Phone removed from whitelist." if removed else "Phone was not in whitelist.",
    )
