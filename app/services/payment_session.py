"""
Headless QR payment modal.

A PaymentSession mirrors the modal lifecycle: open renders the QR, the user's
"I've completed payment" starts the checker, close stops it. After success the
session closes itself following a short delay (the modal's auto-redirect);
after a timeout it lingers for an idle TTL so the user can retry. The registry
keeps sessions addressable from the HTTP layer and evicts them once closed.
"""
from __future__ import annotations

import asyncio
import hmac
import uuid
from typing import Any, Awaitable, Callable, Dict, Optional

from app.config import settings
from app.core.exceptions import SessionNotFoundError
from app.core.logger import get_logger
from app.integrations.travel_api import SubscriptionSource
from app.schemas.subscription import PaymentResult, Plan, Subscription
from app.services.payment_checker import PaymentStatusChecker, create_payment_checker
from app.services.qr_code import render_qr_data_url

logger = get_logger(__name__)

EVENT_CONFIRMED = "payment_confirmed"
EVENT_ERROR = "payment_error"
EVENT_CLOSED = "payment_closed"

CLOSE_REASON_CONFIRMED = "confirmed"
CLOSE_REASON_IDLE = "idle"

SessionListener = Callable[[str, Dict[str, Any]], Awaitable[None]]


def format_vnd(amount: float) -> str:
    """Format a price in Vietnamese dong, e.g. ``250.000 ₫``."""
    return f"{int(round(amount)):,}".replace(",", ".") + " ₫"


def format_duration(months: int) -> str:
    if months >= 12:
        years = months // 12
        return f"{years} year{'s' if years > 1 else ''}"
    return f"{months} month{'s' if months > 1 else ''}"


class PaymentSession:
    """State of one QR payment modal instance."""

    def __init__(
        self,
        payment_result: PaymentResult,
        subscription_source: SubscriptionSource,
        plan: Optional[Plan] = None,
        session_id: Optional[str] = None,
        listener: Optional[SessionListener] = None,
        owns_source: bool = False,
        owner: Optional[str] = None,
        poll_interval: Optional[float] = None,
        timeout: Optional[float] = None,
        success_close_delay: Optional[float] = None,
        idle_ttl: Optional[float] = None,
    ):
        self.id = session_id or uuid.uuid4().hex
        self.payment_result = payment_result
        self.plan = plan
        self.listener = listener
        self.owner = owner
        self.subscription_source = subscription_source
        self._owns_source = owns_source
        self.success_close_delay = (
            settings.payment_success_close_delay if success_close_delay is None else success_close_delay
        )
        self.idle_ttl = settings.payment_session_idle_ttl if idle_ttl is None else idle_ttl
        self.checker: PaymentStatusChecker = create_payment_checker(
            self._handle_confirmed,
            self._handle_error,
            subscription_source,
            poll_interval=poll_interval,
            timeout=timeout,
        )
        # Set by the registry so a self-closing session also leaves the registry.
        self.on_closed: Optional[Callable[["PaymentSession"], Awaitable[None]]] = None
        self._close_task: asyncio.Task | None = None
        self.is_open = False
        self._reset()

    def _reset(self) -> None:
        self.checking = False
        self.success = False
        self.error_message: Optional[str] = None
        self.subscription: Optional[Subscription] = None
        self.qr_image: Optional[str] = None

    @property
    def checkout_url(self) -> Optional[str]:
        return self.payment_result.checkout_url

    @property
    def order_code(self) -> Optional[int]:
        return self.payment_result.order_code

    @property
    def close_pending(self) -> bool:
        return self._close_task is not None

    def is_owned_by(self, owner: Optional[str]) -> bool:
        if self.owner is None:
            return True
        return owner is not None and hmac.compare_digest(self.owner, owner)

    def open(self) -> None:
        self._reset()
        self.is_open = True
        if not self.payment_result.qr_code:
            return
        try:
            self.qr_image = render_qr_data_url(self.payment_result.qr_code)
        except Exception as exc:
            logger.error("Error generating QR code for session %s: %s", self.id, exc)
            self.qr_image = None

    def confirm_payment(self) -> bool:
        """User asserts payment is done. Returns False when nothing was started."""
        if self.checking or self.success:
            return False
        self._cancel_scheduled_close()
        self.checking = True
        self.error_message = None
        self.checker.start_checking()
        return True

    def close(self) -> None:
        self._cancel_scheduled_close()
        self.checker.stop_checking()
        self.is_open = False
        self._reset()

    async def aclose(self) -> None:
        self.close()
        if self._owns_source and hasattr(self.subscription_source, "close"):
            await self.subscription_source.close()

    async def _handle_confirmed(self, subscription: Subscription) -> None:
        self.checking = False
        self.success = True
        self.subscription = subscription
        self._schedule_close(self.success_close_delay, CLOSE_REASON_CONFIRMED)
        await self._emit(
            EVENT_CONFIRMED,
            {"subscription": subscription.model_dump(mode="json", by_alias=True)},
        )

    async def _handle_error(self, message: str) -> None:
        self.checking = False
        self.error_message = message
        self._schedule_close(self.idle_ttl, CLOSE_REASON_IDLE)
        await self._emit(EVENT_ERROR, {"message": message})

    def _schedule_close(self, delay: float, reason: str) -> None:
        self._cancel_scheduled_close()
        self._close_task = asyncio.get_running_loop().create_task(self._auto_close(delay, reason))

    def _cancel_scheduled_close(self) -> None:
        task = self._close_task
        self._close_task = None
        if task is None or task.done():
            return
        try:
            current = asyncio.current_task()
        except RuntimeError:
            current = None
        if task is not current:
            task.cancel()

    async def _auto_close(self, delay: float, reason: str) -> None:
        await asyncio.sleep(delay)
        self._close_task = None
        logger.info("Auto-closing payment session %s (%s)", self.id, reason)
        try:
            await self._emit(EVENT_CLOSED, {"reason": reason})
        except Exception:
            logger.exception("Payment session %s close listener failed", self.id)
        if self.on_closed is not None:
            await self.on_closed(self)
        else:
            await self.aclose()

    async def _emit(self, event_type: str, data: Dict[str, Any]) -> None:
        if self.listener is None:
            return
        await self.listener(event_type, {"session_id": self.id, **data})

    def snapshot(self) -> Dict[str, Any]:
        plan = None
        if self.plan:
            plan = {
                "id": self.plan.id,
                "name": self.plan.name,
                "price": format_vnd(self.plan.price),
                "duration": format_duration(self.plan.billing_cycle_in_months),
            }
        return {
            "session_id": self.id,
            "is_open": self.is_open,
            "checking": self.checking,
            "success": self.success,
            "error_message": self.error_message,
            "checkout_url": self.checkout_url,
            "order_code": self.order_code,
            "qr_image": self.qr_image,
            "plan": plan,
            "subscription": (
                self.subscription.model_dump(mode="json", by_alias=True)
                if self.subscription
                else None
            ),
        }


class PaymentSessionRegistry:
    """In-process map of open payment sessions."""

    def __init__(self):
        self._sessions: Dict[str, PaymentSession] = {}

    def create(self, payment_result: PaymentResult, subscription_source: SubscriptionSource, **kwargs) -> PaymentSession:
        session = PaymentSession(payment_result, subscription_source, **kwargs)
        session.on_closed = self._evict
        session.open()
        self._sessions[session.id] = session
        logger.info("Opened payment session %s (order=%s)", session.id, session.order_code)
        return session

    def get(self, session_id: str, owner: Optional[str] = None) -> PaymentSession:
        """Look up a session. With ``owner``, sessions bound to someone else read as missing."""
        session = self._sessions.get(session_id)
        if session is None or (owner is not None and not session.is_owned_by(owner)):
            raise SessionNotFoundError(f"Payment session {session_id} not found")
        return session

    async def close(self, session_id: str, owner: Optional[str] = None) -> None:
        self.get(session_id, owner)
        session = self._sessions.pop(session_id)
        await session.aclose()
        logger.info("Closed payment session %s", session_id)

    async def _evict(self, session: PaymentSession) -> None:
        if self._sessions.get(session.id) is session:
            await self.close(session.id)
        else:
            await session.aclose()

    async def close_all(self) -> None:
        for session_id in list(self._sessions):
            await self.close(session_id)

    def __len__(self) -> int:
        return len(self._sessions)


registry = PaymentSessionRegistry()
