import asyncio
import inspect
import pkgutil
import sys
from functools import lru_cache
from importlib import import_module
from os import environ
from pathlib import Path
from typing import Any, Literal
from uuid import uuid4

from fastapi import FastAPI, Request
from fastapi.responses import ORJSONResponse
from loguru import logger
from pydantic import BaseModel, Field
from redis.asyncio import Redis

from ..config import config

E_INTERNAL = "E_INTERNAL_ERROR"
E_INVALID_PARAMS = "E_INVALID_PARAMS"


def format_error(ex: BaseException) -> str:
    from traceback import TracebackException

    return "".join(TracebackException.from_exception(ex).format())


class ApiResponse(BaseModel):
    version: str | None = Field(default_factory=lambda: environ.get("BUILD_COMMIT", "dev"))


class ApiSuccess(ApiResponse):
    success: Literal[True] = True
    message: str = "OK"
    data: Any = None


class ApiFailure(ApiResponse):
    success: Literal[False] = False
    errcode: str = E_INTERNAL
    erresid: str = Field(default_factory=lambda: uuid4().hex[:10])
    message: str = "We are sorry, an error occurred."
    details: Any = None


def api_failure(
    errcode: str | None = None,
    errmesg: Exception | str | None = None,
    *,
    details: Any = None,
    trace: Any = None,
) -> ApiFailure:
    """Build an ApiFailure and log it together with the calling site."""
    if not errcode:
        errcode = E_INTERNAL

    if isinstance(errmesg, Exception):
        errmesg = format_error(errmesg)

    failure = ApiFailure(errcode=errcode, details=details)
    if errmesg:
        failure.message = errmesg

    caller_frame = inspect.stack()[1]
    module = inspect.getmodule(caller_frame.frame)
    module_name = module.__name__ if module else caller_frame.filename
    caller_info = f"{module_name}:{caller_frame.function}:{caller_frame.lineno}"

    logger.warning(
        "{} {}\n{} caller={} trace={}",
        failure.errcode,
        failure.erresid,
        failure.message,
        caller_info,
        trace,
    )

    return failure


def make_response(results: ApiSuccess | ApiFailure, *, status_code: int | None = None) -> ORJSONResponse:
    if status_code is None:
        if isinstance(results, ApiFailure):
            status_code = 500 if results.errcode == E_INTERNAL else 400
        else:
            status_code = 200

    return ORJSONResponse(status_code=status_code, content=results.model_dump())


@lru_cache
def get_worker_info():
    project_root = Path(__file__).parent.parent.parent.parent
    worker_name = environ.get("WORKER_NAME", project_root.name)

    parts = environ.get("BUILD_COMMIT", "").split("-")
    commit_id = parts[1] if len(parts) > 1 else "dev"

    return worker_name, commit_id


def init_logger():
    logger.remove()

    worker_name, commit_id = get_worker_info()

    if (config.get("DEBUG") or "").lower() == "true":
        logger_level = "DEBUG"
        logger_format = (
            f"<yellow>{worker_name}:{commit_id}</yellow> | "
            "<green>{time:MM-DD HH:mm:ss.SSS}</green> | "
            "<level>{level: <8}</level> | "
            "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
            "<level>{message}</level>"
        )
    else:
        logger_level = "INFO"
        logger_format = (
            f"{worker_name}:{commit_id} | "
            "{time:MM-DD HH:mm:ss.SSS} | "
            "{level: <8} | "
            "{name}:{function}:{line} | "
            "{message}"
        )
    logger.add(sys.stderr, level=logger_level, format=logger_format)


def log_taskgroup_errors(err: BaseException) -> str:
    errors = []
    subs = getattr(err, "exceptions", None)
    if subs:
        for idx, sub in enumerate(subs, 1):
            errors.append(f"TaskGroup sub-exception[{idx}]:\n{format_error(sub)}")
            logger.error(errors[-1])
    else:
        errors.append(f"TaskGroup error: {format_error(err)}")
        logger.error(errors[-1])

    return "\n".join(errors)


def ensure_coro(awaitable):
    """Wrap Future-like awaitables so TaskGroup.create_task accepts them."""
    if asyncio.iscoroutine(awaitable):
        return awaitable

    async def _wrap():
        return await awaitable

    return _wrap()


async def run_taskgroup(*funcs) -> list[Any]:
    """
    Run multiple awaitables concurrently and return their results in order.

    If any awaitable fails, the remaining ones are cancelled and the failure
    propagates as an ExceptionGroup.
    """
    async with asyncio.TaskGroup() as tg:
        tasks = [tg.create_task(ensure_coro(func)) for func in funcs]
    return [task.result() for task in tasks]


def get_redis_major_client(request: Request) -> Redis:
    return request.app.state.redis_manager.get_cache_client(config.get("REDIS_MAJOR_LABEL") or "default")


def load_routes(app: FastAPI, prefix: str, package: str = "creator_live.api.v1.routers"):
    """Include the ``router`` of every module in ``package``, skipping names listed in API_DISABLED."""
    disabled_routes = [x.strip() for x in (config.get("API_DISABLED") or "").split(",") if x.strip()]
    logger.debug("disabled routes: {}", disabled_routes)

    routers_pkg = import_module(package)
    for info in pkgutil.iter_modules(routers_pkg.__path__):
        name = f"{package}.{info.name}"
        if info.name in disabled_routes:
            logger.warning("disabled route {} in {}", info.name, name)
            continue
        module = import_module(name)
        if hasattr(module, "router"):
            app.include_router(module.router, prefix=prefix)
            logger.info("Added routes in {}", name)

    for route in app.routes:
        if hasattr(route, "methods"):
            methods = ",".join(sorted(route.methods))
            logger.info("Loaded route: {:<12} {:<60} {}", methods, route.path, route.endpoint.__name__)
