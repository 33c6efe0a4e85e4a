"""Webhook signature and shared-token validation."""

from __future__ import annotations

import hashlib
import hmac

SIGNATURE_PREFIX = "sha256="


def compute_signature(body: bytes, secret: str) -> str:
    """Return the ``sha256=<hex>`` HMAC signature of ``body`` keyed by ``secret``."""
    digest = hmac.new(secret.encode(), body, hashlib.sha256).hexdigest()
    return SIGNATURE_PREFIX + digest


def verify_signature(body: bytes, signature: str, secret: str) -> bool:
    """Validate a provider HMAC-SHA256 signature header.

    Returns False if no secret is configured, the header is missing, or any
    input is malformed. Never raises.
    """
    if not secret or not signature:
        return False
    try:
        expected = compute_signature(bytes(body), secret)
        return hmac.compare_digest(expected.encode(), signature.encode())
    except (TypeError, ValueError, AttributeError, UnicodeError):
        return False


def verify_token(provided: str, configured: str) -> bool:
    """Validate a shared token via constant-time comparison.

    Returns False if no token is configured (rejects unauthenticated requests).
    """
    if not configured or not provided:
        return False
    try:
        return hmac.compare_digest(provided.encode(), configured.encode())
    except (AttributeError, UnicodeError):
        return False
