"""Payment domain entities: orders, verified outcomes and confirmation records."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Literal, Optional, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_serializer,
    model_validator,
)

PaymentStatus = Literal["created", "verifying", "verified", "failed"]
Direction = Literal["sent", "received"]
ConfirmationType = Literal["payment_confirmation", "payment_notification"]

PAYMENT_CONFIRMATION: ConfirmationType = "payment_confirmation"
PAYMENT_NOTIFICATION: ConfirmationType = "payment_notification"

TERMINAL_STATUSES = frozenset({"verified", "failed"})

# Confirmation type <-> direction tag carried in payment_details.type
CONFIRMATION_TYPE_BY_DIRECTION: dict[str, ConfirmationType] = {
    "sent": PAYMENT_CONFIRMATION,
    "received": PAYMENT_NOTIFICATION,
}

MINOR_UNITS_PER_MAJOR = 100

Amount = Union[int, float]


def minor_to_major(amount_minor: int) -> Amount:
    """Convert minor units (paise, cents) to the major amount shown to users."""
    if amount_minor % MINOR_UNITS_PER_MAJOR == 0:
        return amount_minor // MINOR_UNITS_PER_MAJOR
    return amount_minor / MINOR_UNITS_PER_MAJOR


class PaymentOrder(BaseModel):
    """Local record of an amount requested for transfer, prior to settlement."""

    order_id: str = Field(..., min_length=1, description="Gateway order id")
    amount: int = Field(..., gt=0, description="Amount in minor units")
    currency: str = Field(..., min_length=3, max_length=3)
    recipient_name: Optional[str] = None
    recipient_handle: Optional[str] = None
    status: PaymentStatus = "created"
    payment_id: Optional[str] = None
    owner_id: Optional[str] = None
    failure_reason: Optional[str] = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: Optional[datetime] = None

    @field_serializer("created_at")
    def serialize_created_at(self, value: datetime) -> str:
        return value.isoformat()

    @field_serializer("updated_at")
    def serialize_updated_at(self, value: Optional[datetime]) -> Optional[str]:
        return value.isoformat() if value else None

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    @property
    def major_amount(self) -> Amount:
        return minor_to_major(self.amount)

    def _ensure_open(self) -> None:
        if self.is_terminal:
            raise ValueError(f"Payment order {self.order_id} is already {self.status}.")

    def start_verification(self, payment_id: str) -> None:
        """Move the order into verification for a gateway payment id."""
        self._ensure_open()
        if self.status == "verifying" and self.payment_id != payment_id:
            raise ValueError("Payment order is already being verified for another payment.")
        self.status = "verifying"
        self.payment_id = payment_id
        self.updated_at = datetime.now(timezone.utc)

    def mark_verified(self) -> None:
        if self.status != "verifying":
            raise ValueError("Only an order under verification can be verified.")
        self.status = "verified"
        self.updated_at = datetime.now(timezone.utc)

    def mark_failed(self, reason: str) -> None:
        self._ensure_open()
        self.status = "failed"
        self.failure_reason = reason
        self.updated_at = datetime.now(timezone.utc)


class GatewayCheckoutResult(BaseModel):
    """What the gateway checkout hands back once the payer completes it."""

    model_config = ConfigDict(frozen=True)

    gateway_order_id: str = Field(..., min_length=1)
    gateway_payment_id: str = Field(..., min_length=1)
    signature: str = Field(..., min_length=1)


class PaymentOutcome(BaseModel):
    """Verified, trusted result of a completed payment. Immutable."""

    model_config = ConfigDict(frozen=True)

    order_id: str = Field(..., min_length=1)
    payment_id: str = Field(..., min_length=1)
    signature_verified: bool
    amount: Amount = Field(..., gt=0, description="Amount in major units")
    currency: str
    recipient_name: str
    recipient_handle: str
    sender_name: str
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @field_serializer("timestamp")
    def serialize_timestamp(self, value: datetime) -> str:
        return value.isoformat()


class PaymentDetails(BaseModel):
    """`payment_details` payload carried by confirmation messages on the wire."""

    model_config = ConfigDict(extra="ignore")

    amount: Amount = Field(..., gt=0)
    currency: str = "INR"
    recipient_name: Optional[str] = None
    recipient_upi: Optional[str] = None
    transaction_id: str = Field(..., min_length=1)
    order_id: Optional[str] = None
    sender_name: str = Field(..., min_length=1)
    timestamp: Optional[str] = None
    status: str = "completed"
    type: Direction


class AttachmentField(BaseModel):
    model_config = ConfigDict(frozen=True)

    title: str
    value: str
    short: bool = True


class PaymentAttachment(BaseModel):
    """Transport-native card attached to a sender confirmation."""

    model_config = ConfigDict(frozen=True)

    type: Literal["payment"] = "payment"
    title: str
    color: str
    fields: list[AttachmentField]
    footer: str
    footer_icon: Optional[str] = None


class ConfirmationRecord(BaseModel):
    """Chat message representing a payment event to the sender or recipient."""

    model_config = ConfigDict(frozen=True)

    type: ConfirmationType
    text: str
    payment_details: PaymentDetails
    attachments: Optional[list[PaymentAttachment]] = None

    @model_validator(mode="after")
    def _type_matches_direction(self) -> "ConfirmationRecord":
        expected = CONFIRMATION_TYPE_BY_DIRECTION[self.payment_details.type]
        if self.type != expected:
            raise ValueError(
                f"{self.type} cannot carry a '{self.payment_details.type}' payment"
            )
        return self

    @property
    def direction(self) -> Direction:
        return self.payment_details.type

    def to_message(self) -> dict:
        """Message body handed to `channel.send_message`."""
        return self.model_dump(mode="json", exclude_none=True)
