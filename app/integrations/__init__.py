"""External integration adapters."""

from .travel_api import SubscriptionSource, TravelApiClient

__all__ = [
    "SubscriptionSource",
    "TravelApiClient",
]
