"""Data Transfer Objects for the payment application layer."""

from __future__ import annotations

from typing import Any, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class CreateOrderRequestDTO(BaseModel):
    """DTO for `POST /payment/create-order`.

    The amount is validated by the service so that malformed values are
    reported as invalid input rather than schema errors.
    """

    model_config = ConfigDict(json_schema_extra={"example": {"amount": 500}})

    amount: Any = Field(..., description="Amount in major currency units")


class GatewayOrderDTO(BaseModel):
    """Order as returned by the payment gateway."""

    model_config = ConfigDict(extra="ignore")

    id: str
    amount: int = Field(..., description="Amount in minor units")
    currency: str
    status: Optional[str] = None
    receipt: Optional[str] = None


class CreateOrderResponseDTO(BaseModel):
    success: bool = True
    order: GatewayOrderDTO


class VerifyPaymentRequestDTO(BaseModel):
    """DTO for `POST /payment/verify`. Accepts gateway-native field names too."""

    model_config = ConfigDict(populate_by_name=True)

    gateway_order_id: str = Field(
        ...,
        min_length=1,
        validation_alias=AliasChoices(
            "gateway_order_id", "gatewayOrderId", "razorpay_order_id"
        ),
    )
    gateway_payment_id: str = Field(
        ...,
        min_length=1,
        validation_alias=AliasChoices(
            "gateway_payment_id", "gatewayPaymentId", "razorpay_payment_id"
        ),
    )
    signature: str = Field(
        ...,
        min_length=1,
        validation_alias=AliasChoices("signature", "razorpay_signature"),
    )


class VerifyPaymentResponseDTO(BaseModel):
    success: bool
    order_id: str
    payment_id: str
    message: Optional[str] = None


class PaymentRequestDTO(BaseModel):
    """What the payer enters in the chat: amount and who receives it."""

    amount: Any
    currency: str = "INR"
    recipient_name: Optional[str] = None
    recipient_handle: Optional[str] = None
