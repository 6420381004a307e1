"""Unit tests for errors.py error handlers."""

import json
from unittest.mock import MagicMock
from unittest.mock import patch

import pydantic
import pytest
from fastapi import Request

from persons_console.errors import ApiResponseError
from persons_console.errors import InvalidTransitionError
from persons_console.errors import JobFailure
from persons_console.errors import JobTimeoutError
from persons_console.errors import JobTransportError
from persons_console.errors import NetworkError
from persons_console.errors import PartialFailure
from persons_console.errors import PersonValidationError
from persons_console.errors import handle_broad_exceptions
from persons_console.errors import handle_console_errors
from persons_console.errors import handle_pydantic_validation_errors
from persons_console.schemas.enums import DeleteOutcomeStatus
from persons_console.schemas.schemas import BulkDeleteReport
from persons_console.schemas.schemas import DeleteOutcome


class TestHandleBroadExceptions:
    """Tests for handle_broad_exceptions middleware."""

    @pytest.mark.asyncio
    @patch("persons_console.errors.log_response_info")
    async def test_successful_request(self, mock_log):
        """Test middleware passes through successful requests."""
        mock_request = MagicMock(spec=Request)
        mock_response = MagicMock()

        async def mock_call_next(request):
            return mock_response

        result = await handle_broad_exceptions(mock_request, mock_call_next)

        assert result == mock_response
        mock_log.assert_not_called()

    @pytest.mark.asyncio
    @patch("persons_console.errors.log_response_info")
    async def test_exception_returns_500(self, mock_log):
        """Test middleware catches exceptions and returns 500."""
        mock_request = MagicMock(spec=Request)

        async def mock_call_next(request):
            raise ValueError("Test error")

        result = await handle_broad_exceptions(mock_request, mock_call_next)

        assert result.status_code == 500
        assert json.loads(result.body) == {"detail": "Internal server error", "error_type": "ValueError"}
        mock_log.assert_called_once()


class TestHandlePydanticValidationErrors:
    """Tests for handle_pydantic_validation_errors handler."""

    @pytest.mark.asyncio
    @patch("persons_console.errors.log_response_info")
    async def test_validation_error(self, mock_log):
        """Test handling pydantic validation errors."""
        mock_request = MagicMock(spec=Request)

        class TestModel(pydantic.BaseModel):
            name: str
            value: int

        with pytest.raises(pydantic.ValidationError) as exc_info:
            TestModel(name=123, value="not_int")

        result = await handle_pydantic_validation_errors(mock_request, exc_info.value)

        assert result.status_code == 422
        assert len(json.loads(result.body)["detail"]) == 2
        mock_log.assert_called_once()


class TestHandleConsoleErrors:
    """Tests for handle_console_errors handler."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "exc,expected_status",
        [
            (InvalidTransitionError("not confirming"), 409),
            (PersonValidationError("rejected", errors={"age": ["invalid"]}), 400),
            (NetworkError("unreachable"), 503),
            (ApiResponseError("boom", status_code=500), 503),
            (JobFailure("task-1"), 500),
        ],
        ids=["invalid_transition", "validation", "network", "api_response", "job_failure"],
    )
    @patch("persons_console.errors.log_response_info")
    async def test_error_mapping(self, mock_log, exc, expected_status: int):
        """Test console errors are mapped to the expected HTTP status codes."""
        mock_request = MagicMock(spec=Request)
        mock_request.url.path = "/api/view"

        result = await handle_console_errors(mock_request, exc)

        assert result.status_code == expected_status
        assert json.loads(result.body)["error_type"] == type(exc).__name__
        mock_log.assert_called_once()

    @pytest.mark.asyncio
    @patch("persons_console.errors.log_response_info")
    async def test_validation_error_carries_field_errors(self, mock_log):
        """Test the API's field errors are forwarded to the form."""
        mock_request = MagicMock(spec=Request)
        mock_request.url.path = "/api/persons"

        exc = PersonValidationError("rejected", errors={"person_name": ["This field may not be blank."]})
        result = await handle_console_errors(mock_request, exc)

        assert json.loads(result.body)["errors"] == {"person_name": ["This field may not be blank."]}


class TestErrorTaxonomy:
    """Tests for the error classes themselves."""

    def test_api_response_error_is_network_error(self):
        exc = ApiResponseError("Persons API returned 500", status_code=500, body="oops")

        assert isinstance(exc, NetworkError)
        assert exc.status_code == 500
        assert exc.body == "oops"

    def test_timeout_is_transport_error(self):
        exc = JobTimeoutError("task-9", "did not finish")

        assert isinstance(exc, JobTransportError)
        assert exc.task_id == "task-9"

    def test_partial_failure_message_counts_outcomes(self):
        report = BulkDeleteReport(
            outcomes=[
                DeleteOutcome(person_id=1, status=DeleteOutcomeStatus.DELETED),
                DeleteOutcome(person_id=2, status=DeleteOutcomeStatus.FAILED, reason="500"),
                DeleteOutcome(person_id=3, status=DeleteOutcomeStatus.NOT_ATTEMPTED),
            ]
        )

        exc = PartialFailure(report)

        assert exc.report is report
        assert str(exc) == "Bulk delete aborted: 1 deleted, 1 failed, 1 not attempted"
