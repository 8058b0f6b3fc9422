"""
Payment confirmation poller.

Polls the travel API for the caller's subscription until it turns Active,
the overall deadline passes, or checking is stopped. Outcomes are delivered
through the two constructor callbacks and, for awaiting callers, through
``wait_for_outcome``.
"""
from __future__ import annotations

import asyncio
import inspect
from typing import Any, Awaitable, Callable, Optional, Union

from app.config import settings
from app.core.logger import get_logger
from app.integrations.travel_api import SubscriptionSource, TravelApiClient
from app.models.payment import PaymentOutcome
from app.schemas.subscription import Subscription, is_active_status, status_label

logger = get_logger(__name__)

CHECK_INTERVAL_SECONDS = 3.0
CHECK_TIMEOUT_SECONDS = 5 * 60.0
PAYMENT_TIMEOUT_MESSAGE = (
    "Payment confirmation timeout. Please check your subscription status manually."
)

ConfirmedCallback = Callable[[Subscription], Union[None, Awaitable[None]]]
ErrorCallback = Callable[[str], Union[None, Awaitable[None]]]


class PaymentStatusChecker:
    """Single-flight polling session bound to one payment modal."""

    def __init__(
        self,
        on_payment_confirmed: ConfirmedCallback,
        on_error: ErrorCallback,
        subscription_source: Optional[SubscriptionSource] = None,
        poll_interval: float = CHECK_INTERVAL_SECONDS,
        timeout: float = CHECK_TIMEOUT_SECONDS,
    ):
        if poll_interval <= 0:
            raise ValueError("poll_interval must be positive")
        if timeout <= 0:
            raise ValueError("timeout must be positive")
        self.on_payment_confirmed = on_payment_confirmed
        self.on_error = on_error
        self._owns_source = subscription_source is None
        self.subscription_source = subscription_source or TravelApiClient()
        self.poll_interval = poll_interval
        self.timeout = timeout

        # Bumped on every start/stop; ticks and deadlines from an older
        # generation are stale and must not touch the current session.
        self._generation = 0
        self._poll_task: asyncio.Task | None = None
        self._timeout_task: asyncio.Task | None = None
        self._outcome: asyncio.Future | None = None

    @property
    def generation(self) -> int:
        return self._generation

    def start_checking(self) -> None:
        """Begin a fresh polling session, replacing any active one."""
        self.stop_checking()

        loop = asyncio.get_running_loop()
        self._generation += 1
        generation = self._generation
        self._outcome = loop.create_future()
        self._poll_task = loop.create_task(self._poll_loop(generation))
        self._timeout_task = loop.create_task(self._deadline(generation))
        logger.info(
            "Payment checking started (session=%s interval=%.1fs timeout=%.1fs)",
            generation,
            self.poll_interval,
            self.timeout,
        )

    def stop_checking(self) -> None:
        """Cancel polling and the deadline. Safe to call when not checking."""
        if self._poll_task is None and self._timeout_task is None:
            return

        self._generation += 1
        try:
            current = asyncio.current_task()
        except RuntimeError:
            current = None
        for task in (self._poll_task, self._timeout_task):
            if task is not None and task is not current and not task.done():
                task.cancel()
        self._poll_task = None
        self._timeout_task = None

        if self._outcome is not None and not self._outcome.done():
            self._outcome.set_result(None)
        logger.debug("Payment checking stopped")

    def is_checking(self) -> bool:
        return self._poll_task is not None

    async def wait_for_outcome(self) -> Optional[PaymentOutcome]:
        """Await the current session's result; None if it was stopped explicitly."""
        if self._outcome is None:
            return None
        return await self._outcome

    async def aclose(self) -> None:
        self.stop_checking()
        if self._owns_source and isinstance(self.subscription_source, TravelApiClient):
            await self.subscription_source.close()

    def _is_current(self, generation: int) -> bool:
        return self.is_checking() and generation == self._generation

    async def _poll_loop(self, generation: int) -> None:
        while self._is_current(generation):
            await asyncio.sleep(self.poll_interval)
            if not self._is_current(generation):
                return
            await self._check_once(generation)

    async def _check_once(self, generation: int) -> None:
        try:
            subscription = await self.subscription_source.get_my_subscription()
        except Exception as exc:
            # Not found yet: the backend may not have materialised the subscription.
            logger.info("Payment still processing (fetch failed: %s)", exc)
            return

        if not self._is_current(generation):
            logger.debug("Discarding result from stale payment session %s", generation)
            return

        if subscription is not None and is_active_status(subscription.status):
            logger.info(
                "Payment confirmed, subscription %s is active (plan=%s)",
                subscription.id,
                subscription.display_plan_name,
            )
            self._finish(PaymentOutcome.confirmed(subscription))
            await self._notify(self.on_payment_confirmed, subscription)
            return

        if subscription is None:
            logger.info("Payment still processing, no subscription yet")
        else:
            logger.info(
                "Payment still processing, current status: %s (raw: %r)",
                status_label(subscription.status),
                subscription.status,
            )

    async def _deadline(self, generation: int) -> None:
        await asyncio.sleep(self.timeout)
        if not self._is_current(generation):
            return
        logger.warning("Payment confirmation timed out after %.0fs", self.timeout)
        self._finish(PaymentOutcome.timed_out(PAYMENT_TIMEOUT_MESSAGE))
        await self._notify(self.on_error, PAYMENT_TIMEOUT_MESSAGE)

    def _finish(self, outcome: PaymentOutcome) -> None:
        if self._outcome is not None and not self._outcome.done():
            self._outcome.set_result(outcome)
        self.stop_checking()

    @staticmethod
    async def _notify(callback: Callable[[Any], Any], payload: Any) -> None:
        try:
            result = callback(payload)
            if inspect.isawaitable(result):
                await result
        except Exception:
            logger.exception("Payment checker callback %r failed", callback)


def create_payment_checker(
    on_payment_confirmed: ConfirmedCallback,
    on_error: ErrorCallback,
    subscription_source: Optional[SubscriptionSource] = None,
    *,
    poll_interval: Optional[float] = None,
    timeout: Optional[float] = None,
) -> PaymentStatusChecker:
    return PaymentStatusChecker(
        on_payment_confirmed,
        on_error,
        subscription_source=subscription_source,
        poll_interval=poll_interval if poll_interval is not None else settings.payment_check_interval,
        timeout=timeout if timeout is not None else settings.payment_check_timeout,
    )
