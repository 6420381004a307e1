"""Error taxonomy of the persons console and the FastAPI handlers that map it to responses."""

from typing import TYPE_CHECKING
from typing import Optional

import pydantic
from fastapi import Request
from fastapi import status
from fastapi.responses import JSONResponse
from loguru import logger

from persons_console.monitoring.logger import log_response_info

if TYPE_CHECKING:
    from persons_console.schemas.schemas import BulkDeleteReport

# Explicit exports
__all__ = [
    "PersonsConsoleError",
    "NetworkError",
    "ApiResponseError",
    "PersonValidationError",
    "PartialFailure",
    "JobFailure",
    "JobTransportError",
    "JobTimeoutError",
    "InvalidTransitionError",
    "handle_broad_exceptions",
    "handle_console_errors",
    "handle_pydantic_validation_errors",
]


class PersonsConsoleError(Exception):
    """Base class for every error raised by the console."""


class NetworkError(PersonsConsoleError):
    """The persons API could not be reached, timed out, or answered with an error status."""


class ApiResponseError(NetworkError):
    """The persons API answered with a non-success status code."""

    def __init__(self, message: str, status_code: int, body: Optional[str] = None):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class PersonValidationError(PersonsConsoleError):
    """The persons API rejected a form submission (400). Owned by the form, not the list."""

    def __init__(self, message: str, errors: Optional[dict] = None):
        super().__init__(message)
        self.errors = errors or {}


class PartialFailure(PersonsConsoleError):
    """A bulk delete aborted after its first failed delete; earlier deletes are not rolled back."""

    def __init__(self, report: "BulkDeleteReport"):
        self.report = report
        super().__init__(
            f"Bulk delete aborted: {len(report.deleted_ids)} deleted, "
            f"{len(report.failed_ids)} failed, {len(report.not_attempted_ids)} not attempted"
        )


class JobFailure(PersonsConsoleError):
    """The remote computation reported FAILURE."""

    def __init__(self, task_id: str):
        super().__init__(f"Task {task_id} failed")
        self.task_id = task_id


class JobTransportError(PersonsConsoleError):
    """Polling the status of a background job failed at the transport level."""

    def __init__(self, task_id: str, message: str):
        super().__init__(message)
        self.task_id = task_id


class JobTimeoutError(JobTransportError):
    """A background job did not reach a terminal status within its attempt budget."""


class InvalidTransitionError(PersonsConsoleError):
    """A command is not allowed in the current state of a state machine."""


# fastapi docs on middlewares: https://fastapi.tiangolo.com/tutorial/middleware/
async def handle_broad_exceptions(request: Request, call_next):
    """Handle any exception that goes unhandled by a more specific exception handler."""
    try:
        return await call_next(request)
    except Exception as err:  # pylint: disable=broad-except
        error_response = {"detail": "Internal server error", "error_type": type(err).__name__}

        logger.error(
            f"Unhandled exception: {type(err).__name__}: {str(err)}",
            http_status=500,
            http_method=request.method,
            url_path=str(request.url.path),
            error_type=type(err).__name__,
            error_message=str(err),
            exc_info=True,
        )

        response = JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=error_response,
        )
        log_response_info(response)
        return response


# fastapi docs on error handlers: https://fastapi.tiangolo.com/tutorial/handling-errors/
async def handle_pydantic_validation_errors(request: Request, exc: pydantic.ValidationError) -> JSONResponse:
    """Handle Pydantic validation errors."""
    errors = exc.errors()
    error_response = {
        "detail": [
            {
                "msg": error["msg"],
                "input": str(error.get("input")),
            }
            for error in errors
        ]
    }

    logger.warning(
        f"Validation error: {len(errors)} error(s)",
        http_status=422,
        http_method=request.method,
        url_path=str(request.url.path),
        error_type="ValidationError",
        validation_errors=error_response["detail"],
    )

    response = JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=error_response,
    )
    log_response_info(response)
    return response


async def handle_console_errors(request: Request, exc: PersonsConsoleError) -> JSONResponse:
    """
    Map console errors that escape a route to HTTP responses.

    - InvalidTransitionError -> 409 Conflict
    - PersonValidationError -> 400 Bad Request (with the API's field errors)
    - NetworkError -> 503 Service Unavailable
    - anything else -> 500
    """
    error_type = type(exc).__name__
    content = {"detail": str(exc), "error_type": error_type}

    if isinstance(exc, InvalidTransitionError):
        status_code = status.HTTP_409_CONFLICT
    elif isinstance(exc, PersonValidationError):
        status_code = status.HTTP_400_BAD_REQUEST
        content["errors"] = exc.errors
    elif isinstance(exc, NetworkError):
        status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    else:
        status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    log = logger.error if status_code >= 500 else logger.warning
    log(
        f"{error_type}: {str(exc)}",
        http_status=status_code,
        http_method=request.method,
        url_path=str(request.url.path),
        error_type=error_type,
    )

    response = JSONResponse(status_code=status_code, content=content)
    log_response_info(response)
    return response
