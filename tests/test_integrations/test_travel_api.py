from __future__ import annotations

import json

import httpx
import pytest

from app.core.exceptions import AuthenticationError, IntegrationError
from app.integrations.travel_api import TravelApiClient
from app.schemas.subscription import CreateSubscriptionRequest

BASE_URL = "https://travel.example.test/api"


def make_client(handler, token="tok-123"):
    return TravelApiClient(token=token, base_url=BASE_URL, transport=httpx.MockTransport(handler))


@pytest.mark.asyncio
async def test_get_my_subscription_sends_bearer_token():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["path"] = request.url.path
        seen["auth"] = request.headers.get("Authorization")
        return httpx.Response(
            200,
            json={"id": "sub-1", "userId": 5, "planId": 2, "status": "Active", "planName": "Explorer"},
        )

    async with make_client(handler) as client:
        sub = await client.get_my_subscription()

    assert seen == {"path": "/api/subscriptions/my", "auth": "Bearer tok-123"}
    assert sub.id == "sub-1"
    assert sub.is_active is True


@pytest.mark.asyncio
async def test_get_my_subscription_not_found_is_none():
    async with make_client(lambda request: httpx.Response(404, json={"message": "No subscription"})) as client:
        assert await client.get_my_subscription() is None


@pytest.mark.asyncio
async def test_get_my_subscription_empty_body_is_none():
    async with make_client(lambda request: httpx.Response(200, content=b"")) as client:
        assert await client.get_my_subscription() is None


@pytest.mark.asyncio
async def test_unauthorized_raises_authentication_error():
    async with make_client(lambda request: httpx.Response(401)) as client:
        with pytest.raises(AuthenticationError) as exc_info:
            await client.get_my_subscription()
    assert exc_info.value.status_code == 401


@pytest.mark.asyncio
async def test_server_error_raises_integration_error():
    async with make_client(lambda request: httpx.Response(500, json={"message": "boom"})) as client:
        with pytest.raises(IntegrationError) as exc_info:
            await client.get_my_subscription()
    assert exc_info.value.message == "boom"
    assert exc_info.value.status_code == 500


@pytest.mark.asyncio
async def test_transport_error_is_wrapped():
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    async with make_client(handler) as client:
        with pytest.raises(IntegrationError):
            await client.get_my_subscription()


@pytest.mark.asyncio
async def test_create_subscription_posts_plan_id():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["method"] = request.method
        seen["path"] = request.url.path
        seen["body"] = json.loads(request.content)
        return httpx.Response(
            200,
            json={
                "checkoutUrl": "https://pay.example.test/web/abc",
                "qrCode": "000201010212",
                "orderCode": 98765,
                "paymentLinkId": "pl_abc",
                "status": "PENDING",
            },
        )

    async with make_client(handler) as client:
        result = await client.create_subscription(CreateSubscriptionRequest(plan_id=3))

    assert seen == {"method": "POST", "path": "/api/subscriptions", "body": {"planId": 3}}
    assert result.order_code == 98765
    assert result.qr_code == "000201010212"


@pytest.mark.asyncio
async def test_create_subscription_surfaces_backend_message():
    handler = lambda request: httpx.Response(400, json={"message": "You already have an active subscription"})  # noqa: E731
    async with make_client(handler) as client:
        with pytest.raises(IntegrationError) as exc_info:
            await client.create_subscription(CreateSubscriptionRequest(plan_id=3))
    assert exc_info.value.message == "You already have an active subscription"


@pytest.mark.asyncio
async def test_get_all_plans_accepts_list_or_items_envelope():
    plans = [{"id": 1, "name": "Basic", "price": 99000, "billingCycleInMonths": 1, "isActive": True}]

    async with make_client(lambda request: httpx.Response(200, json=plans)) as client:
        assert [p.name for p in await client.get_all_plans()] == ["Basic"]

    async with make_client(lambda request: httpx.Response(200, json={"items": plans})) as client:
        assert [p.id for p in await client.get_all_plans()] == [1]


@pytest.mark.asyncio
async def test_no_token_sends_no_authorization_header():
    seen = {}

    def handler(request):
        seen["auth"] = request.headers.get("Authorization")
        return httpx.Response(200, json=[])

    async with make_client(handler, token="") as client:
        await client.get_all_plans()
    assert seen["auth"] is None
