"""
Webhook Security Module

Signing for outbound automation webhooks and checks for inbound
payment provider notifications.
"""

import hashlib
import hmac
import json
import logging
from typing import Any, Optional

logger = logging.getLogger(__name__)

SIGNATURE_HEADER = "X-Webhook-Signature"
SIGNATURE_PREFIX = "sha256="


def constant_time_compare(a: str, b: str) -> bool:
    """
    Compare two strings in constant time to prevent timing attacks.
    Uses hmac.compare_digest which is designed for this purpose.
    """
    if not a or not b:
        return False
    return hmac.compare_digest(a, b)


def compute_hmac_sha256(secret: str, payload: bytes) -> str:
    """Compute HMAC-SHA256 signature of payload"""
    return hmac.new(secret.encode("utf-8"), payload, hashlib.sha256).hexdigest()


def serialize_payload(payload: dict[str, Any]) -> bytes:
    """Serialize a webhook payload exactly as it is sent on the wire"""
    return json.dumps(payload, separators=(",", ":"), default=str).encode("utf-8")


def sign_payload(secret: str, body: bytes) -> str:
    """Build the X-Webhook-Signature header value for a request body"""
    return f"{SIGNATURE_PREFIX}{compute_hmac_sha256(secret, body)}"


def verify_signature(secret: str, body: bytes, header_value: Optional[str]) -> bool:
    """Verify an X-Webhook-Signature header against the raw body"""
    if not header_value or not header_value.startswith(SIGNATURE_PREFIX):
        logger.warning("🚫 Missing or malformed webhook signature header")
        return False

    expected = compute_hmac_sha256(secret, body)
    is_valid = constant_time_compare(header_value[len(SIGNATURE_PREFIX) :], expected)
    if not is_valid:
        logger.warning("🚫 Webhook signature mismatch")
    return is_valid


def terminal_matches(received: Optional[str], *expected: Optional[str]) -> bool:
    """
    Check a Cardcom notification's terminal number against the known terminals.

    When no terminal is configured anywhere the check is skipped.
    """
    known = [str(t).strip() for t in expected if t]
    if not known:
        return True
    if not received:
        logger.warning("🚫 Cardcom notification without terminal number")
        return False
    return any(constant_time_compare(str(received).strip(), t) for t in known)
