"""HMAC signature checks for inbound change notifications."""

import hashlib
import hmac

BEARER_SCHEME = "Bearer"


def _as_bytes(value: bytes | str) -> bytes:
    return value.encode("utf-8") if isinstance(value, str) else value


def generate_signature(payload: bytes | str, secret: str) -> str:
    """Compute the hex HMAC-SHA256 of a payload.

    Args:
        payload: Exact raw request body.
        secret: Shared signing secret.

    Returns:
        Lowercase hex digest.
    """
    return hmac.new(_as_bytes(secret), _as_bytes(payload), hashlib.sha256).hexdigest()


def verify_signature(raw_payload: bytes, signature: str | None, secret: str) -> bool:
    """Check a presented signature against the raw body.

    Must be given the body exactly as received; a parsed and
    re-serialized body will not hash the same. Never raises.

    Args:
        raw_payload: Unparsed request body bytes.
        signature: Hex signature presented by the sender.
        secret: Shared signing secret.

    Returns:
        True only if the signature matches.
    """
    if not signature or not secret:
        return False
    try:
        presented = signature.encode("ascii")
    except (UnicodeEncodeError, AttributeError):
        return False
    expected = generate_signature(raw_payload, secret).encode("ascii")
    return hmac.compare_digest(presented, expected)


def extract_bearer_token(auth_header: str | None) -> str | None:
    """Pull the token out of an ``Authorization: Bearer <token>`` header.

    Args:
        auth_header: Raw header value, if present.

    Returns:
        The token, or None if the header is absent or malformed.
    """
    if not auth_header:
        return None
    parts = auth_header.split(" ")
    if len(parts) != 2 or parts[0] != BEARER_SCHEME or not parts[1]:
        return None
    return parts[1]
