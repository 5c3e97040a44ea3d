"""Symmetric cipher for opaque tokens.

Fernet (AES-128-CBC with HMAC-SHA256) keyed by a SHA-256 derivation of
the process-wide state secret. Tokens are URL-safe base64 and carry
their own creation timestamp, so expiry can be enforced on decrypt.
"""

import base64
import hashlib

from cryptography.fernet import Fernet, InvalidToken

from codehost.core.errors import DecryptFailureError, MalformedPayloadError


class StateCipher:
    """Encrypts and authenticates short strings with a shared secret."""

    def __init__(self, secret: str):
        if not secret:
            raise ValueError("State cipher secret must not be empty")
        # Derive Fernet key from secret (must be 32 bytes, base64-encoded)
        key_bytes = hashlib.sha256(secret.encode()).digest()
        self._fernet = Fernet(base64.urlsafe_b64encode(key_bytes))

    def encrypt(self, plaintext: str) -> str:
        """Encrypt plaintext into a URL-safe token."""
        return self._fernet.encrypt(plaintext.encode("utf-8")).decode("ascii")

    def decrypt(self, token: str, ttl: int | None = None) -> str:
        """Decrypt a token produced by encrypt().

        Raises:
            DecryptFailureError: token is forged, corrupted, encrypted under
                another key or older than ttl seconds
            MalformedPayloadError: token authenticated but is not UTF-8 text
        """
        try:
            plaintext = self._fernet.decrypt(token.encode("utf-8"), ttl=ttl)
        except InvalidToken as e:
            raise DecryptFailureError("State token could not be decrypted") from e
        try:
            return plaintext.decode("utf-8")
        except UnicodeDecodeError as e:
            raise MalformedPayloadError("State token plaintext is not UTF-8") from e
