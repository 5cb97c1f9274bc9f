"""
Security utilities for stored integration credentials
"""

import logging
from typing import Optional

from cryptography.fernet import Fernet, InvalidToken

from .config import SETTINGS_ENCRYPTION_KEY

logger = logging.getLogger(__name__)

# Initialize encryption
fernet = Fernet(SETTINGS_ENCRYPTION_KEY) if SETTINGS_ENCRYPTION_KEY else None


def encrypt_secret(value: Optional[str]) -> Optional[str]:
    """Encrypt an API token for storage"""
    if not value:
        return value
    if not fernet:
        logger.warning("SETTINGS_ENCRYPTION_KEY not set, storing token in plain text")
        return value
    return fernet.encrypt(value.encode()).decode()


def decrypt_secret(encrypted: Optional[str]) -> Optional[str]:
    """Decrypt an API token for use"""
    if not fernet or not encrypted:
        return encrypted
    try:
        return fernet.decrypt(encrypted.encode()).decode()
    except InvalidToken:
        # Value stored before encryption was configured
        logger.warning("⚠️ Stored token is not Fernet-encrypted, using it as-is")
        return encrypted


def mask_secret(value: Optional[str], visible: int = 4) -> Optional[str]:
    """Mask all but the last few characters of a secret for display"""
    if not value:
        return None
    if len(value) <= visible:
        return "*" * len(value)
    return "*" * (len(value) - visible) + value[-visible:]
