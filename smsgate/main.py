"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from smsgate.api.middleware import RequestIdMiddleware
from smsgate.api.routes import api_router
from smsgate.infrastructure.redis import redis_client
from smsgate.logging_config import setup_logging
from smsgate.settings import settings

# Setup logging
setup_logging()

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    # Startup
    if settings.redis_enabled:
        await redis_client.connect()
    else:
        logger.warning("Redis disabled - using in-memory counters (single process only)")
    yield
    # Shutdown
    await redis_client.disconnect()


app = FastAPI(
    title="SMS Gatekeeper",
    description="Inbound SMS gatekeeper: secret replies for guests, silence for everyone else",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(RequestIdMiddleware)

app.include_router(api_router)


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "redis": redis_client.is_connected}
