"""Password hashing, access tokens and bearer header parsing."""

from datetime import timedelta
from uuid import uuid4

import pytest
from fastapi import HTTPException
from jose import jwt

from src.crm.api.dependencies.auth import get_token_payload
from src.crm.core.config import get_settings
from src.crm.core.security import (
    DUMMY_PASSWORD_HASH,
    create_access_token,
    decode_token,
    hash_password,
    verify_password,
)

pytestmark = pytest.mark.unit


class TestPasswords:
    def test_hash_is_argon2id_and_salted(self):
        first = hash_password("correct horse battery staple")
        second = hash_password("correct horse battery staple")

        assert first.startswith("$argon2id$")
        assert first != second

    def test_verify(self):
        hashed = hash_password("correct horse battery staple")

        assert verify_password("correct horse battery staple", hashed)
        assert not verify_password("Correct horse battery staple", hashed)

    def test_malformed_hash_is_a_mismatch(self):
        assert not verify_password("anything", "not-an-argon2-hash")

    def test_dummy_hash_never_matches_user_input(self):
        assert not verify_password("", DUMMY_PASSWORD_HASH)


class TestAccessTokens:
    def test_round_trip_carries_user_and_tenant(self):
        user_id, tenant_id = uuid4(), uuid4()

        payload = decode_token(create_access_token(user_id, tenant_id))

        assert payload is not None
        assert payload["sub"] == str(user_id)
        assert payload["tenant_id"] == str(tenant_id)
        assert payload["type"] == "access"

    def test_expired_token_rejected(self):
        token = create_access_token(uuid4(), uuid4(), expires_delta=timedelta(seconds=-1))

        assert decode_token(token) is None

    def test_wrong_signature_rejected(self):
        token = jwt.encode({"sub": str(uuid4()), "type": "access"}, "x" * 40, algorithm="HS256")

        assert decode_token(token) is None

    def test_garbage_rejected(self):
        assert decode_token("not.a.jwt") is None


class TestBearerHeader:
    async def test_valid_header(self):
        user_id = uuid4()
        token = create_access_token(user_id, uuid4())

        payload = await get_token_payload(f"Bearer {token}")

        assert payload["sub"] == str(user_id)

    @pytest.mark.parametrize("header", [None, "", "Token abc", "Bearer ", "Bearer nope"])
    async def test_unusable_header_is_401(self, header):
        with pytest.raises(HTTPException) as exc_info:
            await get_token_payload(header)

        assert exc_info.value.status_code == 401
        assert exc_info.value.headers == {"WWW-Authenticate": "Bearer"}

    async def test_non_access_token_is_401(self):
        settings = get_settings()
        token = jwt.encode(
            {"sub": str(uuid4()), "type": "refresh"},
            settings.jwt_secret_key,
            algorithm=settings.jwt_algorithm,
        )

        with pytest.raises(HTTPException) as exc_info:
            await get_token_payload(f"Bearer {token}")

        assert exc_info.value.status_code == 401
