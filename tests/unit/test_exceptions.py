"""Tests for custom exception classes and handlers."""

import json
from unittest.mock import MagicMock

import pytest
from fastapi.exceptions import RequestValidationError

from app.core.exceptions import (
    AnswerGenerationError,
    AppException,
    ArchiveWriteFailedError,
    InvalidArgumentError,
    StoreUnavailableError,
    TerminationFailedError,
    TranscriptNotFoundError,
    TranscriptStoreError,
    app_exception_handler,
    validation_exception_handler,
)


class TestExceptions:
    """Verify exception status codes and codes."""

    def test_app_exception_defaults(self) -> None:
        exc = AppException(message="err", code="ERR")
        assert exc.status_code == 400
        assert exc.code == "ERR"

    @pytest.mark.parametrize(
        ("exc", "status", "code"),
        [
            (InvalidArgumentError(), 400, "INVALID_ARGUMENT"),
            (TranscriptNotFoundError(), 404, "TRANSCRIPT_NOT_FOUND"),
            (AnswerGenerationError(), 502, "ANSWER_GENERATION_FAILED"),
            (TerminationFailedError(), 500, "TERMINATION_FAILED"),
            (StoreUnavailableError(), 503, "STORE_UNAVAILABLE"),
            (ArchiveWriteFailedError(), 503, "ARCHIVE_WRITE_FAILED"),
            (TranscriptStoreError(), 503, "TRANSCRIPT_STORE_ERROR"),
        ],
    )
    def test_taxonomy(self, exc: AppException, status: int, code: str) -> None:
        assert exc.status_code == status
        assert exc.code == code


class TestHandlers:
    """Verify error response bodies."""

    @pytest.mark.asyncio
    async def test_app_exception_handler(self) -> None:
        response = await app_exception_handler(
            MagicMock(), InvalidArgumentError(message="Invalid session id")
        )
        assert response.status_code == 400
        assert json.loads(response.body) == {
            "status": 400,
            "message": "Invalid session id",
            "code": "INVALID_ARGUMENT",
        }

    @pytest.mark.asyncio
    async def test_validation_handler_reports_first_error(self) -> None:
        exc = RequestValidationError(
            [{"loc": ("body", "query"), "msg": "Field required", "type": "missing"}]
        )
        response = await validation_exception_handler(MagicMock(), exc)
        body = json.loads(response.body)
        assert response.status_code == 400
        assert body["code"] == "INVALID_ARGUMENT"
        assert body["message"] == "body.query: Field required"
