"""Domain-specific exceptions."""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from .payment.entities import PaymentOutcome


class ChatSphereError(Exception):
    """Base class for every error raised by chatsphere."""


class Unauthenticated(ChatSphereError):
    """Raised when the caller has no valid authenticated session or token."""


class ConfigurationError(ChatSphereError):
    """Raised when transport or gateway credentials are not configured."""


# Token issuance failure is a configuration problem, never retried.
CredentialsUnavailable = ConfigurationError


class InvalidInput(ChatSphereError):
    """Raised for input rejected locally, before any network call."""


class TransportUnavailable(ChatSphereError):
    """Raised when the real-time transport cannot be reached (transient)."""


class GatewayUnavailable(ChatSphereError):
    """Raised when the payment gateway or payment API cannot be reached (transient)."""


class VerificationFailed(ChatSphereError):
    """Raised when a gateway signature does not verify. Terminal for the order."""


class PaymentDismissed(ChatSphereError):
    """Raised when the checkout was dismissed or abandoned before a result arrived."""


class PaymentInProgress(ChatSphereError):
    """Raised when a payment is started while another one is still processing."""


class NotConnected(ChatSphereError):
    """Raised when an operation needs a connected chat session and there is none."""


class ConnectionFailed(ChatSphereError):
    """Raised when a chat session could not be established. Retry is user driven."""


class DeliveryDegraded(ChatSphereError):
    """Raised when a verified payment could not be recorded in the chat.

    The payment itself is settled; only the confirmation message is missing.
    """

    def __init__(
        self,
        message: str,
        *,
        outcome: Optional["PaymentOutcome"] = None,
        sender_record_sent: bool = False,
        recipient_record_sent: bool = False,
    ) -> None:
        super().__init__(message)
        self.outcome = outcome
        self.sender_record_sent = sender_record_sent
        self.recipient_record_sent = recipient_record_sent
