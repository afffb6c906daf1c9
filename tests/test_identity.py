"""Tests for identity providers and bearer-token parsing."""

import asyncio
import time

import httpx
import jwt

from pharmacy_pos.core.identity import (
    JWTIdentityProvider,
    StaticIdentityProvider,
    SupabaseAuthIdentityProvider,
)
from pharmacy_pos.security.auth import extract_bearer_token

SECRET = "identity-test-secret-with-enough-length"


def test_static_provider():
    assert asyncio.run(StaticIdentityProvider("u1").current_user_id()) == "u1"
    assert asyncio.run(StaticIdentityProvider(None).current_user_id()) is None


def test_jwt_provider_reads_subject():
    token = jwt.encode({"sub": "u1", "aud": "authenticated"}, SECRET, algorithm="HS256")
    assert asyncio.run(JWTIdentityProvider(token, SECRET).current_user_id()) == "u1"


def test_jwt_provider_rejects_bad_tokens():
    wrong_audience = jwt.encode({"sub": "u1", "aud": "anon"}, SECRET, algorithm="HS256")
    expired = jwt.encode(
        {"sub": "u1", "aud": "authenticated", "exp": int(time.time()) - 60},
        SECRET,
        algorithm="HS256",
    )

    for token in (wrong_audience, expired, "not-a-jwt", None):
        assert asyncio.run(JWTIdentityProvider(token, SECRET).current_user_id()) is None


def test_supabase_auth_provider():
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/auth/v1/user"
        assert request.headers["apikey"] == "anon-key"
        if request.headers["Authorization"] == "Bearer good":
            return httpx.Response(200, json={"id": "u1", "email": "till@example.com"})
        return httpx.Response(401, json={"msg": "invalid JWT"})

    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))

    def lookup(token):
        provider = SupabaseAuthIdentityProvider(
            token, "https://pos.example/auth/v1", "anon-key", http_client=client
        )
        return asyncio.run(provider.current_user_id())

    assert lookup("good") == "u1"
    assert lookup("bad") is None
    assert lookup(None) is None


def test_extract_bearer_token():
    assert extract_bearer_token("Bearer abc") == "abc"
    assert extract_bearer_token("bearer  abc ") == "abc"
    assert extract_bearer_token("Basic abc") is None
    assert extract_bearer_token("Bearer ") is None
    assert extract_bearer_token(None) is None
