"""AES-256-GCM encryption for data source credentials stored in the tenant registry.

Encrypted values use the format ``iv:authTag:ciphertext`` where each part is
standard base64. The IV and the authentication tag are both 16 bytes.
"""

import base64
import binascii
import os
import re
from typing import Final

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from src.crm.core.config import get_settings
from src.crm.core.exceptions import CredentialEncryptionError

IV_LENGTH: Final[int] = 16
AUTH_TAG_LENGTH: Final[int] = 16
KEY_HEX_LENGTH: Final[int] = 64

_HEX_PATTERN: Final[re.Pattern[str]] = re.compile(r"^[0-9a-fA-F]+$")


def _load_key(key_hex: str | None) -> bytes:
    if not key_hex:
        raise CredentialEncryptionError("ENCRYPTION_KEY environment variable is not set")
    if len(key_hex) != KEY_HEX_LENGTH or not _HEX_PATTERN.match(key_hex):
        raise CredentialEncryptionError(
            "ENCRYPTION_KEY must be 64 hex characters (32 bytes for AES-256)"
        )
    return bytes.fromhex(key_hex)


def _b64decode(value: str) -> bytes:
    try:
        return base64.b64decode(value, validate=True)
    except (binascii.Error, ValueError) as e:
        raise CredentialEncryptionError("Invalid encrypted key format. Invalid base64") from e


class CredentialCipher:
    """Encrypts and decrypts credentials with a single AES-256 key."""

    def __init__(self, key_hex: str | None):
        self._aesgcm = AESGCM(_load_key(key_hex))

    def encrypt(self, plain_key: str) -> str:
        if not isinstance(plain_key, str) or not plain_key:
            raise CredentialEncryptionError(
                "Invalid input: plainKey must be a non-empty string"
            )

        iv = os.urandom(IV_LENGTH)
        # AESGCM appends the tag to the ciphertext
        sealed = self._aesgcm.encrypt(iv, plain_key.encode("utf-8"), None)
        ciphertext, auth_tag = sealed[:-AUTH_TAG_LENGTH], sealed[-AUTH_TAG_LENGTH:]

        return ":".join(
            base64.b64encode(part).decode("ascii") for part in (iv, auth_tag, ciphertext)
        )

    def decrypt(self, encrypted_key: str) -> str:
        if not isinstance(encrypted_key, str) or not encrypted_key:
            raise CredentialEncryptionError(
                "Invalid input: encryptedKey must be a non-empty string"
            )

        parts = encrypted_key.split(":")
        if len(parts) != 3:
            raise CredentialEncryptionError("Invalid encrypted key format")
        if not all(parts):
            raise CredentialEncryptionError(
                "Invalid encrypted key format. Missing required components"
            )

        iv, auth_tag, ciphertext = (_b64decode(part) for part in parts)

        if len(iv) != IV_LENGTH:
            raise CredentialEncryptionError(
                f"Invalid IV length: expected {IV_LENGTH} bytes, got {len(iv)}"
            )
        if len(auth_tag) != AUTH_TAG_LENGTH:
            raise CredentialEncryptionError(
                f"Invalid auth tag length: expected {AUTH_TAG_LENGTH} bytes, got {len(auth_tag)}"
            )

        try:
            plain = self._aesgcm.decrypt(iv, ciphertext + auth_tag, None)
        except InvalidTag as e:
            raise CredentialEncryptionError(
                "Authentication failed: data may have been tampered with"
            ) from e

        return plain.decode("utf-8")


def get_cipher() -> CredentialCipher:
    """Build a cipher from the configured ENCRYPTION_KEY."""
    return CredentialCipher(get_settings().encryption_key)


def encrypt_credential(plain_key: str) -> str:
    """Encrypt a credential with the configured key."""
    return get_cipher().encrypt(plain_key)


def decrypt_credential(encrypted_key: str) -> str:
    """Decrypt a credential with the configured key."""
    return get_cipher().decrypt(encrypted_key)
