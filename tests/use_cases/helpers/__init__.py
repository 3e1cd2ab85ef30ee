"""Test helpers for use case-based testing."""

from .chat_participant import ChatParticipant
from .payment_api_adapter import UseCasePaymentApi

__all__ = [
    "ChatParticipant",
    "UseCasePaymentApi",
]
