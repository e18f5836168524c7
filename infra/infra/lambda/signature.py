"""
Stripe-style webhook signature check.

Header format: "t=<unix seconds>,v1=<hex>[,v1=<hex>...]"
Expected v1 = HMAC_SHA256(secret, f"{t}.{raw_body}")
"""
import hashlib
import hmac
import time

DEFAULT_TOLERANCE = 300
SCHEME = "v1"


class SignatureVerificationError(ValueError):
    """Raised when a webhook signature is missing, stale or does not match."""


def compute_signature(payload: str, secret: str, timestamp: int) -> str:
    signed = f"{timestamp}.{payload}".encode("utf-8", "surrogatepass")
    return hmac.new(secret.encode("utf-8"), signed, hashlib.sha256).hexdigest()


def sign_payload(payload: str, secret: str, timestamp: int | None = None) -> str:
    """Build a header value the verifier accepts. Used by tests and local triggers."""
    if timestamp is None:
        timestamp = int(time.time())
    return f"t={timestamp},{SCHEME}={compute_signature(payload, secret, timestamp)}"


def _parse_header(header: str) -> tuple[int, list[str]]:
    timestamp = None
    signatures = []
    for item in header.split(","):
        key, sep, value = item.strip().partition("=")
        if not sep:
            continue
        if key == "t":
            try:
                timestamp = int(value)
            except ValueError:
                raise SignatureVerificationError(f"Timestamp is not an integer: {value!r}")
        elif key == SCHEME:
            signatures.append(value)

    if timestamp is None:
        raise SignatureVerificationError("Unable to extract timestamp from header")
    if not signatures:
        raise SignatureVerificationError(f"No {SCHEME} signature found in header")
    return timestamp, signatures


def verify_signature(
    payload: str,
    header: str | None,
    secret: str,
    tolerance: int = DEFAULT_TOLERANCE,
    now: float | None = None,
) -> None:
    """
    Verify `header` against the raw `payload`.

    A tolerance of 0 disables the timestamp age check.
    Raises SignatureVerificationError on any failure.
    """
    if not header:
        raise SignatureVerificationError("Missing Stripe-Signature header")
    if not isinstance(header, str):
        raise SignatureVerificationError(f"Signature header must be a string, got {type(header).__name__}")

    timestamp, signatures = _parse_header(header)
    expected = compute_signature(payload, secret, timestamp)
    expected_bytes = expected.encode("ascii")
    if not any(hmac.compare_digest(expected_bytes, sig.encode("utf-8", "surrogatepass")) for sig in signatures):
        raise SignatureVerificationError("No signature matches the expected signature for the payload")

    if tolerance:
        current = time.time() if now is None else now
        if abs(current - timestamp) > tolerance:
            raise SignatureVerificationError(f"Timestamp outside the tolerance zone ({timestamp})")
