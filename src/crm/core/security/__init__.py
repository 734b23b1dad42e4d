"""Security utilities - crypto, credential encryption and validators.

Re-exports all security-related functions for convenience.
"""

from src.crm.core.security.crypto import (
    DUMMY_PASSWORD_HASH,
    create_access_token,
    decode_token,
    hash_password,
    verify_password,
)
from src.crm.core.security.encryption import (
    CredentialCipher,
    decrypt_credential,
    encrypt_credential,
)
from src.crm.core.security.validators import validate_tenant_slug_format, validate_website

__all__ = [
    # Crypto
    "DUMMY_PASSWORD_HASH",
    "create_access_token",
    "decode_token",
    "hash_password",
    "verify_password",
    # Credential encryption
    "CredentialCipher",
    "decrypt_credential",
    "encrypt_credential",
    # Validators
    "validate_tenant_slug_format",
    "validate_website",
]
