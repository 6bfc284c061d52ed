"""Error taxonomy and JSON error responses."""

import logging
import traceback

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from starlette.exceptions import HTTPException as StarletteHTTPException

from tasktracker.core.config import settings


logger = logging.getLogger(__name__)


class ErrorCode:
    """Error kinds reported in the ``error`` field of a response body."""

    # Input errors
    VALIDATION_ERROR = "ValidationError"

    # Auth gate errors
    UNAUTHORIZED = "Unauthorized"
    TOKEN_EXPIRED = "TokenExpired"
    INVALID_TOKEN = "InvalidToken"

    # Resource errors
    FORBIDDEN = "Forbidden"
    NOT_FOUND = "NotFound"

    # Signup / login errors
    EMAIL_TAKEN = "EmailTaken"
    USERNAME_TAKEN = "UsernameTaken"
    INVALID_CREDENTIALS = "InvalidCredentials"
    OAUTH_ONLY_ACCOUNT = "OAuthOnlyAccount"
    ALREADY_HAS_PASSWORD = "AlreadyHasPassword"

    # Generic errors
    SERVER_ERROR = "ServerError"


class ErrorResponse(BaseModel):
    """Structured error body returned for every failed request."""

    success: bool = False
    error: str
    message: str | None = None
    errors: list[str] | None = None
    stack: str | None = None


class TaskTrackerError(Exception):
    """Base class for errors that map directly onto an HTTP response."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    code: str = ErrorCode.SERVER_ERROR
    default_message: str = "Something went wrong"

    def __init__(self, message: str | None = None, *, errors: list[str] | None = None) -> None:
        self.message = message or self.default_message
        self.errors = errors
        super().__init__(self.message)

    def to_response(self) -> ErrorResponse:
        """Build the JSON body for this error."""
        return ErrorResponse(error=self.code, message=self.message, errors=self.errors)


class InvalidInputError(TaskTrackerError):
    """Malformed or missing request input."""

    status_code = status.HTTP_400_BAD_REQUEST
    code = ErrorCode.VALIDATION_ERROR
    default_message = "Validation failed"


class UnauthorizedError(TaskTrackerError):
    status_code = status.HTTP_401_UNAUTHORIZED
    code = ErrorCode.UNAUTHORIZED
    default_message = "Authentication required"


class TokenExpiredError(TaskTrackerError):
    status_code = status.HTTP_401_UNAUTHORIZED
    code = ErrorCode.TOKEN_EXPIRED
    default_message = "Your session has expired. Please login again."


class InvalidTokenError(TaskTrackerError):
    status_code = status.HTTP_401_UNAUTHORIZED
    code = ErrorCode.INVALID_TOKEN
    default_message = "Invalid authentication token"


class ForbiddenError(TaskTrackerError):
    status_code = status.HTTP_403_FORBIDDEN
    code = ErrorCode.FORBIDDEN
    default_message = "You don't have permission to access this resource"


class NotFoundError(TaskTrackerError):
    status_code = status.HTTP_404_NOT_FOUND
    code = ErrorCode.NOT_FOUND
    default_message = "Resource not found"


class ServerError(TaskTrackerError):
    """Unexpected failure surfaced with a generic message."""


class IdentityError(TaskTrackerError):
    """Signup/login failures; the message is also reported in ``errors``."""

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message)
        self.errors = [self.message]


class EmailTakenError(IdentityError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = ErrorCode.EMAIL_TAKEN
    default_message = "An account with this email already exists"


class UsernameTakenError(IdentityError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = ErrorCode.USERNAME_TAKEN
    default_message = "Username is already taken"


class InvalidCredentialsError(IdentityError):
    status_code = status.HTTP_401_UNAUTHORIZED
    code = ErrorCode.INVALID_CREDENTIALS
    default_message = "Invalid credentials"


class OAuthOnlyAccountError(IdentityError):
    status_code = status.HTTP_401_UNAUTHORIZED
    code = ErrorCode.OAUTH_ONLY_ACCOUNT
    default_message = (
        "This account uses Google sign-in. Sign in with Google, "
        "or sign up with the same email to set a password."
    )


class AlreadyHasPasswordError(IdentityError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = ErrorCode.ALREADY_HAS_PASSWORD
    default_message = "This account already has a password"


def _format_validation_error(error: dict) -> str:
    """Turn a pydantic error entry into a single readable line."""
    location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
    message = error.get("msg", "Invalid value")
    return f"{location}: {message}" if location else message


async def handle_app_error(_request: Request, exc: TaskTrackerError) -> JSONResponse:
    """Render a TaskTrackerError as its JSON body."""
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_response().model_dump(exclude_none=True),
    )


async def handle_request_validation_error(_request: Request, exc: RequestValidationError) -> JSONResponse:
    """Report body/query validation failures as 400 ValidationError."""
    errors = [_format_validation_error(error) for error in exc.errors()]
    body = ErrorResponse(error=ErrorCode.VALIDATION_ERROR, message="Invalid request", errors=errors)
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=body.model_dump(exclude_none=True))


async def handle_http_exception(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Render routing errors; unmatched routes get the ``Route ... not found`` body."""
    if exc.status_code == status.HTTP_404_NOT_FOUND:
        content = {"error": "Not Found", "message": f"Route {request.method} {request.url.path} not found"}
    else:
        content = {"success": False, "error": str(exc.detail), "message": str(exc.detail)}
    return JSONResponse(status_code=exc.status_code, content=content, headers=getattr(exc, "headers", None))


async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    """Log unexpected failures and answer with a generic 500."""
    logger.error(
        "unhandled_exception",
        extra={"path": request.url.path, "method": request.method, "error": str(exc)},
        exc_info=exc,
    )
    body = ErrorResponse(error=ErrorCode.SERVER_ERROR, message="Something went wrong")
    if not settings.is_production:
        body.stack = "".join(traceback.format_exception(exc))
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=body.model_dump(exclude_none=True),
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Attach the JSON error handlers to an application."""
    app.add_exception_handler(TaskTrackerError, handle_app_error)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, handle_request_validation_error)  # type: ignore[arg-type]
    app.add_exception_handler(StarletteHTTPException, handle_http_exception)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, handle_unexpected_error)
