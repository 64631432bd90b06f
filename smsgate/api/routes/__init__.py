"""API routes."""

from fastapi import APIRouter

from smsgate.api.routes import admin, sms_webhooks

api_router = APIRouter()

# Public routes (Twilio signature checked inside the handler)
api_router.include_router(sms_webhooks.router, prefix="/sms", tags=["sms-webhooks"])

# Admin routes (token required)
api_router.include_router(admin.router, prefix="/admin", tags=["admin"])
