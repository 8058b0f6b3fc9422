from __future__ import annotations

from enum import IntEnum
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, computed_field
from pydantic.alias_generators import to_camel


class SubscriptionStatus(IntEnum):
    """Backend subscription enum. The API serialises it as either name or number."""

    PENDING = 0
    ACTIVE = 1
    CANCELED = 2
    EXPIRED = 3

    @property
    def label(self) -> str:
        return self.name.capitalize()


ACTIVE_STATUS_LABEL = SubscriptionStatus.ACTIVE.label


def status_label(value: Any) -> str:
    """Map a raw wire status (string or enum number) to its display name."""
    if isinstance(value, str):
        return value
    # bool is an int subclass; True must not read as Active.
    if isinstance(value, bool) or not isinstance(value, int):
        return "Unknown"
    try:
        return SubscriptionStatus(value).label
    except ValueError:
        return "Unknown"


def is_active_status(value: Any) -> bool:
    """Single normalisation point for the string/numeric status inconsistency."""
    if isinstance(value, str):
        return value == ACTIVE_STATUS_LABEL
    if isinstance(value, bool):
        return False
    return value == SubscriptionStatus.ACTIVE


class TravelApiModel(BaseModel):
    """camelCase on the wire, snake_case in Python."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


class Plan(TravelApiModel):
    id: int
    name: str
    description: Optional[str] = None
    price: float
    billing_cycle_in_months: int = 1
    is_active: bool = True


class Subscription(TravelApiModel):
    id: str
    user_id: int
    plan_id: int
    plan: Optional[Plan] = None
    plan_name: Optional[str] = None
    status: Union[int, str]
    started_date: Optional[str] = None
    current_period_end_date: Optional[str] = None
    canceled_date: Optional[str] = None

    @computed_field(alias="statusLabel")
    @property
    def status_label(self) -> str:
        return status_label(self.status)

    @computed_field(alias="isActive")
    @property
    def is_active(self) -> bool:
        return is_active_status(self.status)

    @property
    def display_plan_name(self) -> Optional[str]:
        if self.plan_name:
            return self.plan_name
        return self.plan.name if self.plan else None


class CreateSubscriptionRequest(TravelApiModel):
    plan_id: int = Field(gt=0)


class PaymentResult(TravelApiModel):
    checkout_url: Optional[str] = None
    payment_link_id: Optional[str] = None
    qr_code: Optional[str] = None
    order_code: Optional[int] = None
    status: Optional[str] = None
