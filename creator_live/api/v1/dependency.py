from typing import Annotated

from fastapi import Depends, Request
from loguru import logger
from pydantic import BaseModel
from redis.asyncio import Redis

from creator_live.shared.api.utils import get_redis_major_client
from creator_live.shared.domain.auth.verify_token import verify_token
from creator_live.utils.app_errors import AppError, AppErrorCode, HttpStatusCode


class User(BaseModel):
    user_id: int


async def get_current_user(
    request: Request, redis_client: Redis = Depends(get_redis_major_client)
) -> User:
    # Do not log request headers here (may include secrets like Authorization).
    user_info = await verify_token(request, redis_client)
    if not user_info or not user_info.get("user_id"):
        raise AppError(
            errcode=AppErrorCode.E_BAD_TOKEN,
            errmesg="Invalid token",
            status_code=HttpStatusCode.UNAUTHORIZED,
        )

    logger.debug("Authenticated user_id: {}", user_info["user_id"])
    return User(user_id=user_info["user_id"])


CurrentUser = Annotated[User, Depends(get_current_user)]
