import time
import uuid
from contextlib import asynccontextmanager
from os import environ

import logfire
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import ORJSONResponse
from granian import Granian
from loguru import logger
from starlette.middleware.base import BaseHTTPMiddleware

from creator_live.api.v1.errors import app_error_handler, app_validation_exception_handler
from creator_live.schemas.init import init_schema
from creator_live.shared.api.utils import api_failure, init_logger, load_routes
from creator_live.shared.config import config
from creator_live.shared.storage.mongo import get_mongo_manager
from creator_live.shared.storage.postgres import get_postgres_manager
from creator_live.shared.storage.redis import get_redis_manager
from creator_live.utils.app_errors import AppError, AppErrorCode

REQUEST_ID_HEADER = "X-Request-ID"

DEBUG = (config.get("DEBUG") or "").lower() == "true"


class HTTPLoggingMiddleware(BaseHTTPMiddleware):
    """One log line per request, tagged with a request id that is echoed back to the client."""

    async def dispatch(self, request: Request, call_next):  # type: ignore
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex[:8]
        started = time.perf_counter()
        route = f"{request.method} {request.url.path}"

        with logger.contextualize(request_id=request_id):
            logger.info("[{}] {}", request_id, route)
            try:
                response = await call_next(request)
            except Exception:
                logger.exception(
                    "[{}] unhandled exception in {} after {:.2f}ms", request_id, route, _elapsed_ms(started)
                )
                failure = api_failure(
                    errcode=AppErrorCode.E_INTERNAL_ERROR.value,
                    errmesg=f"Internal server error (request_id: {request_id})",
                )
                response = ORJSONResponse(status_code=500, content=failure.model_dump())
            else:
                logger.info(
                    "[{}] {} status={} duration={:.2f}ms", request_id, route, response.status_code, _elapsed_ms(started)
                )

        response.headers[REQUEST_ID_HEADER] = request_id
        return response


def _elapsed_ms(started: float) -> float:
    return (time.perf_counter() - started) * 1000


def _configure_logfire(server: FastAPI) -> None:
    logger.info("Logfire initializing")
    logfire.configure(
        token=config.get("LOGFIRE_TOKEN"),
        service_name="creator-live",
        service_version=environ.get("BUILD_COMMIT") or "dev",
    )
    logfire.instrument_fastapi(server, capture_headers=True)
    logfire.instrument_asyncpg()
    logfire.instrument_pydantic()
    logger.info("Logfire instrumented fastapi, asyncpg and pydantic")


async def _close_storage(server: FastAPI) -> None:
    await server.state.redis_manager.close_all()
    await get_postgres_manager().close_all()
    get_mongo_manager().close_all()


@asynccontextmanager
async def lifespan(server: FastAPI):
    init_logger()
    logger.info("Creator live API starting")

    server.state.redis_manager = get_redis_manager()

    # Goal mirror documents live in MongoDB
    await init_schema()

    load_routes(server, config.get("API_PREFIX") or "")

    if (config.get("LOGFIRE_ENABLE") or "").lower() == "true":
        _configure_logfire(server)

    yield

    logger.info("Creator live API stopping")
    await _close_storage(server)


def cors_origins() -> list[str]:
    return [x.strip() for x in (config.get("API_CORS_ORIGINS") or "*").split(",") if x.strip()]


def create_app() -> FastAPI:
    server = FastAPI(
        version="1.0",
        title="Creator Live API",
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
        default_response_class=ORJSONResponse,
        lifespan=lifespan,
    )

    server.add_middleware(HTTPLoggingMiddleware)
    server.add_middleware(
        CORSMiddleware,  # type: ignore
        allow_origins=cors_origins(),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=[REQUEST_ID_HEADER],
    )

    server.add_exception_handler(RequestValidationError, app_validation_exception_handler)  # type: ignore
    server.add_exception_handler(AppError, app_error_handler)  # type: ignore
    return server


app = create_app()


def build_granian_kwargs():
    return {
        "interface": "asgi",
        "address": config.get("API_HOST") or "0.0.0.0",
        "port": config.get_int("API_PORT", 8000),
        "workers": config.get_int("API_WORKERS", 1),
        "reload": DEBUG,
    }


if __name__ == "__main__":
    Granian("creator_live.main:app", **build_granian_kwargs()).serve()
