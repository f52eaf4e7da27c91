"""
Tests for exception handling in projectflow.

Tests verify that the exception family carries context, serializes, and
converts to HTTPException with the right status codes.
"""
import sqlite3

import pytest
from fastapi import HTTPException

from projectflow.exceptions import (
    InvalidArgumentError,
    NotConnectedError,
    NotFoundError,
    ServiceError,
    StorageError,
    TaskNotFoundError,
    ValidationError,
    to_http_exception,
)
from projectflow.models.task_models import Violation


# ============================================================================
# Test Exception Initialization
# ============================================================================

class TestServiceErrorInitialization:
    """Test ServiceError base class initialization."""

    def test_basic_initialization(self):
        exc = ServiceError("Test error message")
        assert exc.message == "Test error message"
        assert exc.request_id is None
        assert exc.context == {}
        assert exc.original_error is None
        assert str(exc) == "Test error message"

    def test_with_context_and_original_error(self):
        original = sqlite3.OperationalError("disk I/O error")
        exc = ServiceError("Failed", request_id="req-1", context={"task_id": 5}, original_error=original)
        assert exc.request_id == "req-1"
        assert exc.context == {"task_id": 5}
        assert exc.original_error is original


class TestSubclasses:

    def test_not_connected_default_message(self):
        assert NotConnectedError().message == "Database not connected"
        assert NotConnectedError("Database not initialized").message == "Database not initialized"

    def test_not_found_message_and_context(self):
        exc = NotFoundError("Project", "default-project")
        assert exc.message == "Project with ID default-project not found"
        assert exc.context == {"resource_type": "Project", "resource_id": "default-project"}

    def test_task_not_found(self):
        exc = TaskNotFoundError(42)
        assert isinstance(exc, NotFoundError)
        assert exc.task_id == 42
        assert exc.message == "Task with ID 42 not found"

    def test_validation_error_lists_every_violation(self):
        exc = ValidationError([Violation.TITLE_REQUIRED, Violation.INVALID_STATUS])
        assert exc.message == "Validation failed: Title is required, Status must be pending or completed"
        assert exc.messages == ["Title is required", "Status must be pending or completed"]
        assert exc.context["violations"] == ["title_required", "invalid_status"]

    def test_validation_error_plain_strings(self):
        exc = ValidationError(["custom rule"])
        assert exc.message == "Validation failed: custom rule"

    @pytest.mark.parametrize("exc_class", [
        NotConnectedError, TaskNotFoundError, ValidationError, InvalidArgumentError, StorageError,
    ])
    def test_all_inherit_from_service_error(self, exc_class):
        assert issubclass(exc_class, ServiceError)


# ============================================================================
# Test Serialization
# ============================================================================

class TestToDict:

    def test_minimal(self):
        assert InvalidArgumentError("Search term is required").to_dict() == {
            "error_type": "InvalidArgumentError",
            "message": "Search term is required",
        }

    def test_full(self):
        exc = StorageError(
            "Database error: locked",
            request_id="abc",
            context={"query": "UPDATE"},
            original_error=sqlite3.OperationalError("database is locked"),
        )
        assert exc.to_dict() == {
            "error_type": "StorageError",
            "message": "Database error: locked",
            "request_id": "abc",
            "context": {"query": "UPDATE"},
            "original_error": {"type": "OperationalError", "message": "database is locked"},
        }


# ============================================================================
# Test HTTP Conversion
# ============================================================================

class TestToHttpException:

    @pytest.mark.parametrize("exc, status_code", [
        (NotConnectedError(), 503),
        (TaskNotFoundError(1), 404),
        (InvalidArgumentError("No valid fields to update"), 400),
        (StorageError("Database error"), 500),
        (ServiceError("generic"), 500),
    ])
    def test_status_codes(self, exc, status_code):
        http_exc = to_http_exception(exc)
        assert isinstance(http_exc, HTTPException)
        assert http_exc.status_code == status_code
        assert http_exc.detail == exc.message

    def test_validation_detail_carries_violations(self):
        http_exc = to_http_exception(ValidationError([Violation.INVALID_PRIORITY]))
        assert http_exc.status_code == 422
        assert http_exc.detail == {
            "message": "Validation failed: Priority must be high, medium, or low",
            "violations": ["invalid_priority"],
        }
