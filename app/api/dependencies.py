"""Shared API dependencies."""
from __future__ import annotations

from typing import AsyncIterator, Callable

from fastapi import Depends

from app.core.security import get_bearer_token, get_session_owner
from app.integrations.travel_api import TravelApiClient
from app.services.payment_session import PaymentSessionRegistry, registry

TravelClientFactory = Callable[[str], TravelApiClient]


def get_travel_client_factory() -> TravelClientFactory:
    """Build clients that forward the caller's token upstream."""
    return lambda token: TravelApiClient(token=token)


async def get_travel_client(
    token: str = Depends(get_bearer_token),
    factory: TravelClientFactory = Depends(get_travel_client_factory),
) -> AsyncIterator[TravelApiClient]:
    client = factory(token)
    try:
        yield client
    finally:
        await client.close()


def get_session_registry() -> PaymentSessionRegistry:
    return registry


__all__ = [
    "get_bearer_token",
    "get_session_owner",
    "get_session_registry",
    "get_travel_client",
    "get_travel_client_factory",
]
