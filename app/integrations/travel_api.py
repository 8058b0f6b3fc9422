from __future__ import annotations

from typing import Any, Dict, List, Optional, Protocol

import httpx

from app.config import settings
from app.core.exceptions import AuthenticationError, IntegrationError
from app.core.logger import get_logger
from app.schemas.subscription import (
    CreateSubscriptionRequest,
    PaymentResult,
    Plan,
    Subscription,
)

logger = get_logger(__name__)


class SubscriptionSource(Protocol):
    async def get_my_subscription(self) -> Optional[Subscription]:
        ...


class TravelApiClient:
    """Client for the travel marketplace REST API (plans and subscriptions)."""

    def __init__(
        self,
        token: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        if token is None and settings.travel_api_token is not None:
            token = settings.travel_api_token.get_secret_value()
        self.base_url = (base_url or settings.travel_api_base_url).rstrip("/")
        headers = {"Content-Type": "application/json", "Accept": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self.client = httpx.AsyncClient(
            base_url=self.base_url,
            headers=headers,
            timeout=timeout or settings.travel_api_timeout,
            verify=settings.travel_api_verify_ssl,
            transport=transport,
        )

    async def get_all_plans(self) -> List[Plan]:
        response = await self._request("GET", "/plans")
        data = self._json(response)
        items = data.get("items", []) if isinstance(data, dict) else data or []
        return [Plan.model_validate(item) for item in items]

    async def get_my_subscription(self) -> Optional[Subscription]:
        """Current principal's subscription, or None when the backend has none yet."""
        response = await self._request("GET", "/subscriptions/my", allow_not_found=True)
        if response is None:
            return None
        data = self._json(response)
        if not data:
            return None
        return Subscription.model_validate(data)

    async def create_subscription(self, request: CreateSubscriptionRequest) -> PaymentResult:
        response = await self._request(
            "POST",
            "/subscriptions",
            json=request.model_dump(by_alias=True),
        )
        return PaymentResult.model_validate(self._json(response) or {})

    async def _request(
        self,
        method: str,
        path: str,
        json: Optional[Dict[str, Any]] = None,
        allow_not_found: bool = False,
    ) -> Optional[httpx.Response]:
        try:
            response = await self.client.request(method, path, json=json)
        except httpx.HTTPError as exc:
            raise IntegrationError(f"Travel API {method} {path} failed: {exc}") from exc

        if allow_not_found and response.status_code == 404:
            return None
        if response.status_code == 401:
            raise AuthenticationError("Travel API rejected credentials", status_code=401)
        if response.is_error:
            message = self._error_message(response) or f"Travel API returned {response.status_code}"
            logger.warning("Travel API %s %s -> %s: %s", method, path, response.status_code, message)
            raise IntegrationError(message, status_code=response.status_code)
        return response

    @staticmethod
    def _json(response: httpx.Response) -> Any:
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            raise IntegrationError("Travel API returned invalid JSON") from exc

    @staticmethod
    def _error_message(response: httpx.Response) -> Optional[str]:
        try:
            body = response.json()
        except ValueError:
            return None
        if isinstance(body, dict):
            return body.get("message") or body.get("title")
        return None

    async def close(self) -> None:
        await self.client.aclose()

    async def __aenter__(self) -> "TravelApiClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()
