"""Application exception classes and handlers."""

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse


class AppException(Exception):
    """Base application exception."""

    def __init__(self, message: str, code: str, status_code: int = 400) -> None:
        self.message = message
        self.code = code
        self.status_code = status_code
        super().__init__(message)


# --- Bad Request (400) ---


class InvalidArgumentError(AppException):
    """Request argument failed validation (session id, query, page size)."""

    def __init__(self, message: str = "Invalid argument") -> None:
        super().__init__(message=message, code="INVALID_ARGUMENT", status_code=400)


# --- Not Found (404) ---


class TranscriptNotFoundError(AppException):
    """No transcript has been archived for the session."""

    def __init__(self) -> None:
        super().__init__(
            message="Transcript not found for this session",
            code="TRANSCRIPT_NOT_FOUND",
            status_code=404,
        )


# --- Upstream failures (502 / 503) ---


class AnswerGenerationError(AppException):
    """Retrieval or LLM call failed while answering a query."""

    def __init__(self, message: str = "Failed to generate response") -> None:
        super().__init__(
            message=message, code="ANSWER_GENERATION_FAILED", status_code=502
        )


class StoreUnavailableError(AppException):
    """Ephemeral session store is unreachable or timed out."""

    def __init__(self, message: str = "Session store unavailable") -> None:
        super().__init__(message=message, code="STORE_UNAVAILABLE", status_code=503)


class ArchiveWriteFailedError(AppException):
    """Durable transcript insert failed; the session stays live."""

    def __init__(self, message: str = "Failed to archive transcript") -> None:
        super().__init__(
            message=message, code="ARCHIVE_WRITE_FAILED", status_code=503
        )


class TranscriptStoreError(AppException):
    """Transcript database query failed."""

    def __init__(self, message: str = "Transcript store unavailable") -> None:
        super().__init__(
            message=message, code="TRANSCRIPT_STORE_ERROR", status_code=503
        )


# --- Internal (500) ---


class TerminationFailedError(AppException):
    """Session termination hit an error outside the store and archive taxonomy."""

    def __init__(self, message: str = "Session termination failed") -> None:
        super().__init__(message=message, code="TERMINATION_FAILED", status_code=500)


# --- Exception Handlers ---


def _error_content(status: int, message: str, code: str) -> dict:
    return {"status": status, "message": message, "code": code}


async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """Central exception handler for AppException."""
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_content(exc.status_code, exc.message, exc.code),
    )


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Report request validation failures as 400 INVALID_ARGUMENT."""
    errors = exc.errors()
    if errors:
        first = errors[0]
        location = ".".join(str(part) for part in first.get("loc", ()))
        message = f"{location}: {first.get('msg', 'invalid value')}"
    else:
        message = "Invalid request"
    return JSONResponse(
        status_code=400,
        content=_error_content(400, message, "INVALID_ARGUMENT"),
    )
