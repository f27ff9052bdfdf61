"""Fernet encryption for GitHub OAuth tokens stored on user rows."""

from __future__ import annotations

import base64
import hashlib

from cryptography.fernet import Fernet, InvalidToken

from server.config import settings

_fernet: Fernet | None = None


def derive_key(secret: str) -> bytes:
    """Fernet wants 32 url-safe base64 bytes; hash the app secret down to that."""
    return base64.urlsafe_b64encode(hashlib.sha256(secret.encode()).digest())


def _get_fernet() -> Fernet:
    global _fernet
    if _fernet is None:
        _fernet = Fernet(derive_key(settings.app_secret_key))
    return _fernet


def encrypt_token(token: str) -> str:
    return _get_fernet().encrypt(token.encode()).decode()


def decrypt_token(ciphertext: str | None) -> str | None:
    """Decrypt a stored token. Returns None when missing or encrypted under another key."""
    if not ciphertext:
        return None
    try:
        return _get_fernet().decrypt(ciphertext.encode()).decode()
    except InvalidToken:
        return None
