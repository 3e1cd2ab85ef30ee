"""Shared domain utilities.

This package is domain-accessible and should not depend on application code.
"""

from .gateway_protocol import (
    CheckoutProtocol,
    PaymentApiProtocol,
    PaymentGatewayProtocol,
)
from .transport_protocol import (
    ChannelProtocol,
    TransportClientProtocol,
    UserDirectoryProtocol,
)

__all__ = [
    "ChannelProtocol",
    "CheckoutProtocol",
    "PaymentApiProtocol",
    "PaymentGatewayProtocol",
    "TransportClientProtocol",
    "UserDirectoryProtocol",
]
