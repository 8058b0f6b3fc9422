"""
Health API Routes
"""
from fastapi import APIRouter, Depends

from app.api.dependencies import get_session_registry
from app.config import settings
from app.services.payment_session import PaymentSessionRegistry

router = APIRouter()


@router.get("/health")
async def health_check(sessions: PaymentSessionRegistry = Depends(get_session_registry)) -> dict:
    """Application liveness and open payment sessions"""
    return {
        "status": "healthy",
        "environment": settings.app_env,
        "travel_api": settings.travel_api_base_url,
        "open_payment_sessions": len(sessions),
    }
