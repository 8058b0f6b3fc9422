from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field

from app.api.dependencies import (
    TravelClientFactory,
    get_bearer_token,
    get_session_owner,
    get_session_registry,
    get_travel_client_factory,
)
from app.core.exceptions import AuthenticationError, IntegrationError, SessionNotFoundError
from app.core.logger import get_logger
from app.core.security import token_fingerprint
from app.schemas.subscription import CreateSubscriptionRequest, Plan
from app.services.payment_session import PaymentSession, PaymentSessionRegistry
from app.websockets.connection_manager import manager

logger = get_logger(__name__)

router = APIRouter()


class CheckoutRequest(BaseModel):
    plan_id: int = Field(gt=0, alias="planId")
    plan: Optional[Plan] = None

    model_config = {"populate_by_name": True}


def _get_session(sessions: PaymentSessionRegistry, session_id: str, owner: str) -> PaymentSession:
    try:
        return sessions.get(session_id, owner)
    except SessionNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))


@router.post("/checkout", status_code=status.HTTP_201_CREATED)
async def checkout(
    payload: CheckoutRequest,
    token: str = Depends(get_bearer_token),
    factory: TravelClientFactory = Depends(get_travel_client_factory),
    sessions: PaymentSessionRegistry = Depends(get_session_registry),
):
    """Create the subscription upstream and open a QR payment session for it."""
    client = factory(token)
    try:
        result = await client.create_subscription(CreateSubscriptionRequest(plan_id=payload.plan_id))
    except AuthenticationError as exc:
        await client.close()
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=exc.message)
    except IntegrationError as exc:
        await client.close()
        logger.error("Error creating subscription for plan %s: %s", payload.plan_id, exc)
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=exc.message or "Failed to create subscription. Please try again.",
        )

    session = sessions.create(
        result,
        client,
        plan=payload.plan,
        listener=manager.broadcast,
        owns_source=True,
        owner=token_fingerprint(token),
    )
    return session.snapshot()


@router.get("/{session_id}")
async def get_payment_session(
    session_id: str,
    owner: str = Depends(get_session_owner),
    sessions: PaymentSessionRegistry = Depends(get_session_registry),
):
    return _get_session(sessions, session_id, owner).snapshot()


@router.post("/{session_id}/confirm")
async def confirm_payment(
    session_id: str,
    owner: str = Depends(get_session_owner),
    sessions: PaymentSessionRegistry = Depends(get_session_registry),
):
    """User reports the transfer is done; start watching for the active subscription."""
    session = _get_session(sessions, session_id, owner)
    started = session.confirm_payment()
    return {"started": started, **session.snapshot()}


@router.delete("/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
async def close_payment_session(
    session_id: str,
    owner: str = Depends(get_session_owner),
    sessions: PaymentSessionRegistry = Depends(get_session_registry),
):
    try:
        await sessions.close(session_id, owner)
    except SessionNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
