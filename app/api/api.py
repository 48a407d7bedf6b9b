import time
from datetime import datetime, timezone

from fastapi import APIRouter
from app.api.endpoints import billdesk, payment

STARTED_AT = time.monotonic()

api_router = APIRouter()
api_router.include_router(billdesk.router, tags=["billdesk"])
api_router.include_router(payment.router, tags=["razorpay"])


@api_router.get("/health", tags=["health"])
async def health_check():
    return {
        "status": "OK",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "uptime": round(time.monotonic() - STARTED_AT, 3),
    }
