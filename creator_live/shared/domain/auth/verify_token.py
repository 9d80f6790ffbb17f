import orjson
import mmh3
import jwt
from time import time
from typing import Any, Dict, Optional, Tuple
from fastapi import Request
from redis.asyncio import Redis
from loguru import logger

from ....app_config import get_app_environ_config
from ....utils.id_codec import get_id_codec


SVC_KEY = 'creator-live'


# Simple in-process cache with TTL (size-bound + time-bound)
_LOCAL_POS: Dict[str, Tuple[float, Dict[str, Any]]] = {}
_LOCAL_NEG: Dict[str, float] = {}
_MAX_LOCAL_SIZE = 1000
_MAX_POS_TTL = 300  # seconds
_MAX_NEG_TTL = 45   # seconds


def _trim_local_cache():
    if len(_LOCAL_POS) <= _MAX_LOCAL_SIZE:
        return
    # Drop oldest by expire_at
    for k, _ in sorted(_LOCAL_POS.items(), key=lambda kv: kv[1][0])[: len(_LOCAL_POS) - _MAX_LOCAL_SIZE]:
        _LOCAL_POS.pop(k, None)


def _bearer_token(request: Request) -> Optional[str]:
    auth_header = request.headers.get('authorization') or ''
    scheme, _, token = auth_header.partition(' ')
    if scheme.lower() != 'bearer' or not token.strip():
        return None
    return token.strip()


def resolve_user_id(claim: Any) -> Optional[int]:
    """User id from an ``id``/``userId`` claim: a number, a numeric string or an opaque id."""
    if isinstance(claim, bool):
        return None
    if isinstance(claim, int):
        return claim if claim > 0 else None
    if isinstance(claim, str):
        claim = claim.strip()
        if claim.isdigit():
            return int(claim) or None
        return get_id_codec().decrypt(claim)
    return None


def decode_access_token(token: str) -> Optional[Dict[str, Any]]:
    """Verify signature and expiry; returns ``{user_id, exp}`` or None."""
    cfg = get_app_environ_config()
    if not cfg.JWT_ACCESS_SECRET:
        logger.warning('JWT_ACCESS_SECRET not configured')
        return None
    try:
        claims = jwt.decode(token, cfg.JWT_ACCESS_SECRET, algorithms=[cfg.JWT_ALGORITHM])
    except jwt.PyJWTError as e:
        logger.debug('jwt rejected: {}', e)
        return None

    user_id = resolve_user_id(claims.get('id', claims.get('userId')))
    if not user_id:
        logger.debug('jwt has no usable user id claim')
        return None

    pos_exp = int(time()) + _MAX_POS_TTL
    return {'user_id': user_id, 'exp': min(int(claims.get('exp') or pos_exp), pos_exp)}


async def verify_token(request: Request, redis_client: Redis) -> Optional[Dict[str, Any]]:
    logger.debug('enter path={} method={}', request.url.path, request.method)
    token = _bearer_token(request)
    if not token:
        logger.debug('missing bearer token')
        return None

    token_hash = format(mmh3.hash128(token), '032x')
    neg_key = f'{SVC_KEY}:vtneg:{token_hash}'
    pos_key = f'{SVC_KEY}:vtpos:{token_hash}'

    # Negative cache check (local → redis)
    now = time()
    exp_neg = _LOCAL_NEG.get(neg_key)
    if exp_neg and exp_neg > now:
        logger.debug('neg cache local hit: {}', token_hash)
        return None
    try:
        if await redis_client.get(neg_key):
            logger.debug('neg cache redis hit: {}', token_hash)
            _LOCAL_NEG[neg_key] = now + _MAX_NEG_TTL
            return None
    except Exception as e:
        logger.warning('redis neg cache read failed: {}', e)

    # Positive cache: local first
    cached = _LOCAL_POS.get(pos_key)
    if cached and cached[0] > now:
        logger.debug('pos cache local hit: {}', token_hash)
        return cached[1]

    # Redis cache next
    try:
        packed = await redis_client.get(pos_key)
    except Exception as e:
        logger.warning('redis pos cache read failed: {}', e)
        packed = None
    if packed:
        try:
            obj = orjson.loads(packed)
            exp = int(obj.get('exp') or 0)
            ttl = max(0, min(_MAX_POS_TTL, exp - int(now)))
            if ttl > 0:
                _LOCAL_POS[pos_key] = (now + ttl, obj)
                _trim_local_cache()
                logger.debug('pos cache redis hit: {} ttl={}', token_hash, ttl)
                return obj
        except orjson.JSONDecodeError:
            logger.debug('pos cache entry unreadable: {}', token_hash)

    payload = decode_access_token(token)
    if not payload:
        # write negative cache
        _LOCAL_NEG[neg_key] = time() + _MAX_NEG_TTL
        logger.debug('write neg cache: {} ttl={}', token_hash, _MAX_NEG_TTL)
        try:
            await redis_client.setex(neg_key, _MAX_NEG_TTL, b'1')
        except Exception as e:
            logger.warning('redis neg cache write failed: {}', e)
        return None

    ttl = max(1, min(_MAX_POS_TTL, payload['exp'] - int(time())))
    _LOCAL_POS[pos_key] = (time() + ttl, payload)
    _trim_local_cache()
    logger.debug('write pos cache: {}:{} ttl={}', token_hash, payload['user_id'], ttl)
    try:
        await redis_client.setex(pos_key, ttl, orjson.dumps(payload))
    except Exception as e:
        logger.warning('redis pos cache write failed: {}', e)

    return payload
