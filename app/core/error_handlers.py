import logging

from fastapi import Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from sqlalchemy.exc import IntegrityError
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.constants.error_codes import ErrorCode
from app.core.exceptions import AppException
from app.utils.response import error_response

logger = logging.getLogger(__name__)

HTTP_STATUS_TO_ERROR_CODE = {
    400: ErrorCode.VALIDATION_ERROR,
    401: ErrorCode.UNAUTHORIZED,
    403: ErrorCode.PERMISSION_DENIED,
    404: ErrorCode.NOT_FOUND,
    405: ErrorCode.VALIDATION_ERROR,
    409: ErrorCode.CONFLICT,
    422: ErrorCode.VALIDATION_ERROR,
    503: ErrorCode.SERVICE_UNAVAILABLE,
}


async def app_exception_handler(request: Request, exc: AppException):
    # Stock and state conflicts are expected traffic, but worth a trace
    if exc.status_code >= 500:
        logger.error(
            "Application error",
            extra={"path": request.url.path, "error_code": exc.error_code},
        )
    elif exc.status_code == 409:
        logger.info(
            "Conflict: %s",
            exc.detail,
            extra={"path": request.url.path, "error_code": exc.error_code},
        )

    return error_response(exc.status_code, exc.detail, exc.error_code, exc.details)


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return error_response(
        422,
        "Invalid request data",
        ErrorCode.VALIDATION_ERROR,
        jsonable_encoder(exc.errors()),
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return error_response(
        exc.status_code,
        exc.detail,
        HTTP_STATUS_TO_ERROR_CODE.get(exc.status_code, ErrorCode.INTERNAL_ERROR),
    )


async def integrity_error_handler(request: Request, exc: IntegrityError):
    # Reached only when a DB constraint catches what service validation missed
    logger.exception("DB integrity error", extra={"path": request.url.path})
    return error_response(409, "Database constraint violation", ErrorCode.CONFLICT)


async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception(
        "Unhandled exception",
        extra={"path": request.url.path, "method": request.method},
    )
    return error_response(
        500,
        "Something went wrong. Please try again.",
        ErrorCode.INTERNAL_ERROR,
    )
