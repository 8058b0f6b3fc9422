"""Terminal outcome of a payment confirmation session."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from app.schemas.subscription import Subscription

CONFIRMED = "confirmed"
TIMED_OUT = "timed_out"


@dataclass(frozen=True)
class PaymentOutcome:
    kind: str
    subscription: Optional[Subscription] = None
    message: Optional[str] = None

    @classmethod
    def confirmed(cls, subscription: Subscription) -> "PaymentOutcome":
        return cls(kind=CONFIRMED, subscription=subscription)

    @classmethod
    def timed_out(cls, message: str) -> "PaymentOutcome":
        return cls(kind=TIMED_OUT, message=message)

    @property
    def is_confirmed(self) -> bool:
        return self.kind == CONFIRMED
