"""Tests for bearer token identity resolution."""
from datetime import timedelta

import pytest
from fastapi import HTTPException
from fastapi.security import HTTPAuthorizationCredentials

from app.core.auth import Identity, create_access_token, get_current_identity


def bearer(token):
    return HTTPAuthorizationCredentials(scheme="Bearer", credentials=token)


@pytest.mark.asyncio
class TestIdentity:
    """Token decoding into an explicit Identity."""

    async def test_valid_token(self):
        token = create_access_token("user-42")

        identity = await get_current_identity(bearer(token))

        assert identity == Identity(user_id="user-42")

    async def test_expired_token(self):
        token = create_access_token("user-42", expires_delta=timedelta(minutes=-5))

        with pytest.raises(HTTPException) as exc:
            await get_current_identity(bearer(token))
        assert exc.value.status_code == 401

    async def test_garbage_token(self):
        with pytest.raises(HTTPException) as exc:
            await get_current_identity(bearer("not.a.token"))
        assert exc.value.status_code == 401
