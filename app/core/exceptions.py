from fastapi import HTTPException
from app.constants.error_codes import ErrorCode


class AppException(HTTPException):
    def __init__(
        self,
        status_code: int,
        message: str,
        error_code: ErrorCode,
        details: dict | None = None,
    ):
        super().__init__(status_code=status_code, detail=message)
        self.error_code = error_code
        self.details = details


class ValidationError(AppException):
    def __init__(
        self,
        message: str,
        fields: list[str] | None = None,
        error_code: ErrorCode = ErrorCode.VALIDATION_ERROR,
    ):
        super().__init__(
            400,
            message,
            error_code,
            {"fields": fields} if fields else None,
        )


class UnauthorizedError(AppException):
    def __init__(self, message: str = "Unknown or invalid actor"):
        super().__init__(401, message, ErrorCode.UNAUTHORIZED)


class ForbiddenError(AppException):
    def __init__(
        self,
        message: str = "Permission denied",
        error_code: ErrorCode = ErrorCode.PERMISSION_DENIED,
    ):
        super().__init__(403, message, error_code)


class NotFoundError(AppException):
    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.NOT_FOUND,
    ):
        super().__init__(404, message, error_code)


class ConflictError(AppException):
    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.CONFLICT,
    ):
        super().__init__(409, message, error_code)


class InsufficientStockError(AppException):
    def __init__(
        self,
        *,
        item_id: str,
        branch_id: str,
        available: int,
        requested: int,
    ):
        super().__init__(
            409,
            "Not enough stock to complete the movement",
            ErrorCode.INSUFFICIENT_STOCK,
            {
                "item_id": item_id,
                "branch_id": branch_id,
                "available": available,
                "requested": requested,
            },
        )
