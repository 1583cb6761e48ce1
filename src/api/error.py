"""API error handling

Use-case errors are raised as ClientError from routes and rendered as
{"error": {"code", "message", "reason"}}.
"""

from fastapi import Request, status
from fastapi.responses import JSONResponse
from libs.result import Error
from src.app.use_cases.prepaid.errors import ErrorCode, NOT_FOUND_CODES, CONFIGURATION_CODES


class ClientError(Exception):
    def __init__(self, error: Error, status_code: int = status.HTTP_400_BAD_REQUEST):
        self.error = error
        self.status_code = status_code
        super().__init__(error.message)


def status_for(error: Error) -> int:
    """HTTP status for a use-case error code"""
    if error.code in NOT_FOUND_CODES:
        return status.HTTP_404_NOT_FOUND
    if error.code in CONFIGURATION_CODES:
        return status.HTTP_409_CONFLICT
    if error.code == ErrorCode.TRANSIENT_FAILURE:
        return status.HTTP_503_SERVICE_UNAVAILABLE
    if error.code.endswith("_FAILED"):
        return status.HTTP_500_INTERNAL_SERVER_ERROR
    return status.HTTP_400_BAD_REQUEST


def raise_for_error(error: Error):
    raise ClientError(error, status_code=status_for(error))


async def client_error_handler(request: Request, exc: ClientError) -> JSONResponse:
    headers = {"Retry-After": "1"} if exc.error.retryable else None
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": {
                "code": exc.error.code,
                "message": exc.error.message,
                "reason": exc.error.reason,
            }
        },
        headers=headers,
    )
