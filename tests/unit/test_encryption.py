"""Tests for AES-256-GCM credential encryption."""

import base64

import pytest

from src.crm.core.exceptions import CredentialEncryptionError
from src.crm.core.security.encryption import (
    AUTH_TAG_LENGTH,
    IV_LENGTH,
    CredentialCipher,
    decrypt_credential,
    encrypt_credential,
)

pytestmark = pytest.mark.unit

KEY = "ab" * 32
OTHER_KEY = "cd" * 32


@pytest.fixture
def cipher() -> CredentialCipher:
    return CredentialCipher(KEY)


class TestFormat:
    def test_encrypted_value_has_three_base64_parts(self, cipher):
        iv, tag, ciphertext = cipher.encrypt("svc_user:secret").split(":")

        assert len(base64.b64decode(iv)) == IV_LENGTH
        assert len(base64.b64decode(tag)) == AUTH_TAG_LENGTH
        assert len(base64.b64decode(ciphertext)) == len("svc_user:secret")

    def test_fresh_iv_per_encryption(self, cipher):
        assert cipher.encrypt("same") != cipher.encrypt("same")

    def test_decrypt_restores_value(self, cipher):
        assert cipher.decrypt(cipher.encrypt("user:p@ss:with:colons")) == "user:p@ss:with:colons"

    def test_module_helpers_use_configured_key(self):
        assert decrypt_credential(encrypt_credential("svc:pw")) == "svc:pw"


class TestKeyValidation:
    @pytest.mark.parametrize("key", [None, ""])
    def test_missing_key(self, key):
        with pytest.raises(CredentialEncryptionError, match="not set"):
            CredentialCipher(key)

    @pytest.mark.parametrize("key", ["ab" * 16, "zz" * 32, "ab" * 33])
    def test_malformed_key(self, key):
        with pytest.raises(CredentialEncryptionError, match="64 hex characters"):
            CredentialCipher(key)


class TestDecryptFailures:
    def test_wrong_key(self, cipher):
        encrypted = cipher.encrypt("secret")
        with pytest.raises(CredentialEncryptionError, match="Authentication failed"):
            CredentialCipher(OTHER_KEY).decrypt(encrypted)

    def test_tampered_ciphertext(self, cipher):
        iv, tag, ciphertext = cipher.encrypt("secret").split(":")
        raw = bytearray(base64.b64decode(ciphertext))
        raw[0] ^= 0xFF
        tampered = ":".join([iv, tag, base64.b64encode(bytes(raw)).decode()])

        with pytest.raises(CredentialEncryptionError) as exc_info:
            cipher.decrypt(tampered)

        assert str(exc_info.value) == "Authentication failed: data may have been tampered with"

    @pytest.mark.parametrize("value", ["onlyonepart", "a:b", "a:b:c:d"])
    def test_wrong_number_of_parts(self, cipher, value):
        with pytest.raises(CredentialEncryptionError) as exc_info:
            cipher.decrypt(value)

        assert str(exc_info.value) == "Invalid encrypted key format"

    def test_empty_component(self, cipher):
        with pytest.raises(CredentialEncryptionError) as exc_info:
            cipher.decrypt("abc::def")

        assert str(exc_info.value) == "Invalid encrypted key format. Missing required components"

    def test_invalid_base64(self, cipher):
        with pytest.raises(CredentialEncryptionError, match="Invalid base64"):
            cipher.decrypt("!!!:???:***")

    def test_short_iv(self, cipher):
        iv, tag, ciphertext = cipher.encrypt("secret").split(":")
        short_iv = base64.b64encode(b"x" * 12).decode()

        with pytest.raises(CredentialEncryptionError, match="Invalid IV length"):
            cipher.decrypt(":".join([short_iv, tag, ciphertext]))

    @pytest.mark.parametrize("value", ["", None])
    def test_empty_input(self, cipher, value):
        with pytest.raises(CredentialEncryptionError, match="non-empty string"):
            cipher.decrypt(value)

    def test_encrypt_rejects_empty(self, cipher):
        with pytest.raises(CredentialEncryptionError, match="non-empty string"):
            cipher.encrypt("")
