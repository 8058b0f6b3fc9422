"""
Travel Pay - FastAPI Application
Subscription checkout and QR payment confirmation for the travel marketplace
"""
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from uvicorn.middleware.proxy_headers import ProxyHeadersMiddleware

from app.config import settings
from app.core.logger import configure_logging, get_logger
from app.api import websocket
from app.api.routes import health
from app.api.v1 import payments, plans, subscriptions
from app.services.payment_session import registry

configure_logging(settings.log_level)
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Handle startup and shutdown events."""
    logger.info("Starting %s...", settings.app_name)
    logger.info("Travel API: %s", settings.travel_api_base_url)
    logger.info(
        "Payment checks every %.1fs, giving up after %.0fs",
        settings.payment_check_interval,
        settings.payment_check_timeout,
    )
    yield
    await registry.close_all()
    logger.info("Shutting down %s...", settings.app_name)


app = FastAPI(
    title=settings.app_name,
    description="Subscription payment API for the travel marketplace",
    version="1.0.0",
    debug=settings.app_debug,
    lifespan=lifespan,
)

# Respect proxy forwarded proto/host so checkout redirects keep https.
app.add_middleware(ProxyHeadersMiddleware, trusted_hosts="*")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/")
async def root() -> dict:
    return {
        "name": settings.app_name,
        "environment": settings.app_env,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


prefix = settings.api_v1_prefix
app.include_router(health.router, prefix=prefix, tags=["Health"])
app.include_router(plans.router, prefix=f"{prefix}/plans", tags=["Plans"])
app.include_router(
    subscriptions.router, prefix=f"{prefix}/subscriptions", tags=["Subscriptions"]
)
app.include_router(payments.router, prefix=f"{prefix}/payments", tags=["Payments"])
app.include_router(websocket.router, tags=["WebSocket"])
