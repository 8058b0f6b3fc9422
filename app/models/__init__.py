"""
In-memory domain models for the payment flow.
"""
from app.models.payment import CONFIRMED, TIMED_OUT, PaymentOutcome

__all__ = ["CONFIRMED", "TIMED_OUT", "PaymentOutcome"]
