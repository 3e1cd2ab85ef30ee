"""Gateway payment signatures (HMAC-SHA256 over `order_id|payment_id`)."""

from __future__ import annotations

import binascii

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes, hmac


def signature_payload(order_id: str, payment_id: str) -> bytes:
    """Bytes the gateway signs for a completed checkout."""
    return f"{order_id}|{payment_id}".encode("utf-8")


def sign_payment(key_secret: str, order_id: str, payment_id: str) -> str:
    """Compute the hex signature the gateway attaches to a checkout result."""
    mac = hmac.HMAC(key_secret.encode("utf-8"), hashes.SHA256())
    mac.update(signature_payload(order_id, payment_id))
    return mac.finalize().hex()


def verify_payment_signature(
    key_secret: str, order_id: str, payment_id: str, signature_hex: str
) -> bool:
    """Verify a checkout signature in constant time. Raises InvalidSignature on failure."""
    try:
        signature = binascii.unhexlify(signature_hex)
    except (binascii.Error, ValueError) as e:
        raise InvalidSignature("Signature is not valid hex") from e
    mac = hmac.HMAC(key_secret.encode("utf-8"), hashes.SHA256())
    mac.update(signature_payload(order_id, payment_id))
    mac.verify(signature)
    return True
