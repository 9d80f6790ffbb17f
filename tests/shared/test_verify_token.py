"""Tests for bearer token verification and its caches."""

from time import time
from unittest.mock import AsyncMock

import jwt
import orjson
import pytest
from starlette.requests import Request

from creator_live.shared.domain.auth import verify_token as vt
from creator_live.utils.id_codec import get_id_codec
from tests.fixtures.constants import JWT_ACCESS_SECRET


def make_request(token: str | None) -> Request:
    headers = []
    if token is not None:
        headers.append((b"authorization", f"Bearer {token}".encode()))
    return Request({"type": "http", "method": "GET", "path": "/live/create", "headers": headers, "query_string": b""})


def make_token(claims: dict, secret: str = JWT_ACCESS_SECRET) -> str:
    return jwt.encode({"exp": int(time()) + 3600, **claims}, secret, algorithm="HS256")


@pytest.fixture(autouse=True)
def clear_local_caches():
    vt._LOCAL_POS.clear()
    vt._LOCAL_NEG.clear()
    yield
    vt._LOCAL_POS.clear()
    vt._LOCAL_NEG.clear()


@pytest.fixture
def redis_client() -> AsyncMock:
    client = AsyncMock()
    client.get.return_value = None
    return client


class TestResolveUserId:
    def test_numeric_claims(self):
        assert vt.resolve_user_id(42) == 42
        assert vt.resolve_user_id("42") == 42

    def test_opaque_claim(self):
        assert vt.resolve_user_id(get_id_codec().encrypt(42)) == 42

    @pytest.mark.parametrize("claim", [None, 0, -3, True, "abc", 4.2])
    def test_unusable_claims(self, claim):
        assert vt.resolve_user_id(claim) is None


class TestVerifyToken:
    async def test_valid_token(self, redis_client):
        payload = await vt.verify_token(make_request(make_token({"id": 7})), redis_client)

        assert payload["user_id"] == 7
        pos_key, ttl, packed = redis_client.setex.await_args.args
        assert pos_key.startswith(f"{vt.SVC_KEY}:vtpos:")
        assert 0 < ttl <= 300
        assert orjson.loads(packed)["user_id"] == 7

    async def test_user_id_claim_alias(self, redis_client):
        payload = await vt.verify_token(make_request(make_token({"userId": "9"})), redis_client)

        assert payload["user_id"] == 9

    async def test_missing_header(self, redis_client):
        assert await vt.verify_token(make_request(None), redis_client) is None
        redis_client.get.assert_not_awaited()

    async def test_bad_signature_is_negatively_cached(self, redis_client):
        token = make_token({"id": 7}, secret="some-other-secret-of-sufficient-length")

        assert await vt.verify_token(make_request(token), redis_client) is None
        neg_key, ttl, _ = redis_client.setex.await_args.args
        assert neg_key.startswith(f"{vt.SVC_KEY}:vtneg:")
        assert ttl == 45

        redis_client.get.reset_mock()
        assert await vt.verify_token(make_request(token), redis_client) is None
        redis_client.get.assert_not_awaited()

    async def test_expired_token(self, redis_client):
        token = jwt.encode({"id": 7, "exp": int(time()) - 10}, JWT_ACCESS_SECRET, algorithm="HS256")

        assert await vt.verify_token(make_request(token), redis_client) is None

    async def test_local_cache_hit_skips_redis_read(self, redis_client):
        request = make_request(make_token({"id": 7}))
        await vt.verify_token(request, redis_client)
        redis_client.get.reset_mock()

        payload = await vt.verify_token(request, redis_client)

        assert payload["user_id"] == 7
        # only the negative-cache probe reaches redis
        assert redis_client.get.await_count == 1

    async def test_redis_failure_still_verifies(self, redis_client):
        redis_client.get.side_effect = ConnectionError("down")
        redis_client.setex.side_effect = ConnectionError("down")

        payload = await vt.verify_token(make_request(make_token({"id": 7})), redis_client)

        assert payload["user_id"] == 7
