"""Payment API routes."""

from __future__ import annotations

import logging
import time

from fastapi import APIRouter, Depends, HTTPException, status
from prometheus_client import Counter, Histogram

from ...application.payment.dtos import (
    CreateOrderRequestDTO,
    CreateOrderResponseDTO,
    VerifyPaymentRequestDTO,
    VerifyPaymentResponseDTO,
)
from ...application.payment.use_cases.payment import PaymentService
from ...domain.chat.entities import AuthenticatedUser
from ...domain.errors import GatewayUnavailable, InvalidInput, VerificationFailed
from ..auth import get_current_user
from ..dependencies import get_payment_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/payment", tags=["payment"])

payment_requests_total = Counter(
    "payment_requests_total",
    "Total payment requests processed",
    ["operation", "status"],
)

payment_request_duration_seconds = Histogram(
    "payment_request_duration_seconds",
    "Wall time to process a payment request",
    ["operation", "status"],
)


def _observe(operation: str, outcome: str, start_time: float) -> None:
    payment_requests_total.labels(operation=operation, status=outcome).inc()
    elapsed = time.perf_counter() - start_time
    payment_request_duration_seconds.labels(
        operation=operation, status=outcome
    ).observe(elapsed)


@router.post("/create-order", response_model=CreateOrderResponseDTO)
async def create_order(
    payload: CreateOrderRequestDTO,
    user: AuthenticatedUser = Depends(get_current_user),
    payment_service: PaymentService = Depends(get_payment_service),
) -> CreateOrderResponseDTO:
    """Create a gateway order for the authenticated caller."""
    start_time = time.perf_counter()
    try:
        result = await payment_service.create_order(payload, user)
        _observe("create_order", "success", start_time)
        return result
    except InvalidInput as e:
        _observe("create_order", "client_error", start_time)
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except GatewayUnavailable as e:
        logger.warning("Payment gateway unavailable: %s", e)
        _observe("create_order", "server_error", start_time)
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="Payment gateway unavailable",
        )
    except Exception as e:
        logger.exception("Internal server error while creating payment order: %s", e)
        _observe("create_order", "server_error", start_time)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create payment order",
        )


@router.post("/verify", response_model=VerifyPaymentResponseDTO)
async def verify_payment(
    payload: VerifyPaymentRequestDTO,
    user: AuthenticatedUser = Depends(get_current_user),
    payment_service: PaymentService = Depends(get_payment_service),
) -> VerifyPaymentResponseDTO:
    """Verify the gateway signature of a completed checkout."""
    start_time = time.perf_counter()
    try:
        result = await payment_service.verify_payment(payload, user)
        _observe("verify", "success", start_time)
        return result
    except (InvalidInput, VerificationFailed) as e:
        _observe("verify", "client_error", start_time)
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except Exception as e:
        logger.exception("Internal server error while verifying payment: %s", e)
        _observe("verify", "server_error", start_time)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Payment verification failed",
        )
