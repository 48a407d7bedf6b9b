import hashlib
import hmac
from typing import Union

import razorpay
from razorpay.errors import SignatureVerificationError

from app.core.exceptions import ChecksumKeyError

# verify_signature / verify_webhook_signature never touch the client
razorpay_utility = razorpay.Utility(None)


def _to_bytes(value: Union[str, bytes]) -> bytes:
    if isinstance(value, bytes):
        return value
    return value.encode("utf-8")


def compute_hmac(message: Union[str, bytes], secret: str) -> str:
    """
    HMAC-SHA256 of ``message`` keyed with ``secret``, as lower-case hex.

    Raises ChecksumKeyError when the secret is missing or empty.
    """
    if not secret:
        raise ChecksumKeyError("Shared secret is not configured")
    return hmac.new(_to_bytes(secret), _to_bytes(message), hashlib.sha256).hexdigest()


def generate_checksum(payload: str, key: str) -> str:
    # BillDesk expects the digest in upper case
    return compute_hmac(payload, key).upper()


def verify_checksum(payload: str, checksum: str, key: str) -> bool:
    if not checksum:
        return False
    expected = generate_checksum(payload, key)
    return hmac.compare_digest(_to_bytes(expected), _to_bytes(checksum.upper()))


def _razorpay_check(verify, message: str, signature: str, secret: str) -> bool:
    if not secret:
        raise ChecksumKeyError("Razorpay secret is not configured")
    # the SDK compares str digests, which only works for ASCII input
    if not signature or not signature.isascii():
        return False
    try:
        return bool(verify(message, signature, secret))
    except SignatureVerificationError:
        return False


def verify_payment_signature(order_id: str, payment_id: str, signature: str, secret: str) -> bool:
    """
    Checks a Razorpay checkout signature: HMAC_SHA256(order_id + "|" + payment_id, secret).
    """
    return _razorpay_check(razorpay_utility.verify_signature, f"{order_id}|{payment_id}", signature, secret)


def verify_webhook_signature(body: Union[str, bytes], signature: str, secret: str) -> bool:
    if isinstance(body, bytes):
        body = body.decode("utf-8")
    return _razorpay_check(razorpay_utility.verify_webhook_signature, body, signature, secret)
