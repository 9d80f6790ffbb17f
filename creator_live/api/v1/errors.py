from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from loguru import logger

from creator_live.shared.api.utils import E_INVALID_PARAMS, ApiFailure, api_failure, make_response
from creator_live.utils.app_errors import AppError, AppErrorCode, HttpStatusCode


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """
    Custom exception handler for AppError.
    Converts AppError to ApiFailure and returns via make_response.
    """
    # Log with the caller info captured when AppError was raised
    log_msg = f"{exc.errcode} {exc.erresid} msg={exc.errmesg} caller={exc.caller_info}"
    if exc.status_code >= HttpStatusCode.INTERNAL_SERVER_ERROR:
        logger.error(log_msg)
    else:
        logger.warning(log_msg)

    failure = ApiFailure(
        errcode=exc.errcode,
        erresid=exc.erresid,
        message=exc.errmesg,
        details=exc.details,
    )
    return make_response(failure, status_code=exc.status_code)


async def app_validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed JSON bodies are 400; schema violations are 422 with the field errors attached."""
    errors = exc.errors()

    logger.warning(
        "Validation error: path={} method={} errors={}",
        request.url.path,
        request.method,
        errors,
    )

    if any(err.get("type") == "json_invalid" for err in errors):
        failure = api_failure(AppErrorCode.E_INVALID_REQUEST.value, errmesg="Invalid JSON body")
        return make_response(failure, status_code=HttpStatusCode.BAD_REQUEST)

    details = {
        ".".join(str(part) for part in err.get("loc", ()) if part != "body"): err.get("msg")
        for err in errors
    }
    failure = api_failure(E_INVALID_PARAMS, errmesg="Validation failed", details=details)
    return make_response(failure, status_code=HttpStatusCode.UNPROCESSABLE_ENTITY)
