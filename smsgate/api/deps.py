"""FastAPI dependencies for the counter store, gate config and admin auth."""

import hmac
import logging
from functools import lru_cache

from fastapi import HTTPException, Request, status

from smsgate.domain.models import GateConfig
from smsgate.infrastructure.store import CounterStore, get_store
from smsgate.settings import settings

logger = logging.getLogger(__name__)


def get_counter_store() -> CounterStore:
    """Counter store for the current request."""
    return get_store()


@lru_cache
def get_gate_config() -> GateConfig:
    """Decision pipeline configuration built from settings."""
    return settings.gate_config()


async def read_admin_params(request: Request) -> dict[str, str]:
    """Merge query-string and form parameters (GET or POST)."""
    params = dict(request.query_params)
    if request.method == "POST":
        form = await request.form()
        params.update({key: str(value) for key, value in form.items()})
    return params


async def verify_admin(request: Request) -> dict[str, str]:
    """Check the admin token and return the request parameters.

    Raises:
        HTTPException: 401 if no admin token is configured or it does not match
    """
    if not settings.admin_token:
        # Misconfiguration; safer to refuse access than to expose controls.
        logger.error("Admin request refused: ADMIN_TOKEN not configured")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")

    params = await read_admin_params(request)
    supplied = params.get("token") or request.headers.get("X-Admin-Token") or ""
    if not hmac.compare_digest(supplied.strip().encode(), settings.admin_token.strip().encode()):
        logger.warning(
            "Unauthorized admin attempt",
            extra={"path": request.url.path, "token_present": bool(supplied)},
        )
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")
    return params
