"""
Standard exceptions for the ProjectFlow task store.

Every failure the store, the sync adapter or the HTTP layer reports is a
ServiceError subclass, so callers can catch the whole family or a single
condition. Exceptions carry optional context and the original error and
convert to HTTPException for the API layer.
"""
from typing import Any, Dict, List, Optional

from fastapi import HTTPException


class ServiceError(Exception):
    """Base class for all ProjectFlow errors."""

    status_code = 500

    def __init__(
        self,
        message: str,
        request_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        original_error: Optional[BaseException] = None,
    ):
        super().__init__(message)
        self.message = message
        self.request_id = request_id
        self.context = context or {}
        self.original_error = original_error

    def to_dict(self) -> Dict[str, Any]:
        """Serialize the error for logging and JSON responses."""
        result: Dict[str, Any] = {
            "error_type": type(self).__name__,
            "message": self.message,
        }
        if self.request_id:
            result["request_id"] = self.request_id
        if self.context:
            result["context"] = self.context
        if self.original_error is not None:
            result["original_error"] = {
                "type": type(self.original_error).__name__,
                "message": str(self.original_error),
            }
        return result


class NotConnectedError(ServiceError):
    """Raised when the store is used before connect() or after close()."""

    status_code = 503

    def __init__(self, message: str = "Database not connected", **kwargs: Any):
        super().__init__(message, **kwargs)


class NotFoundError(ServiceError):
    """Raised when a requested resource does not exist."""

    status_code = 404

    def __init__(self, resource_type: str, resource_id: Any, **kwargs: Any):
        self.resource_type = resource_type
        self.resource_id = resource_id
        context = kwargs.pop("context", None) or {}
        context.setdefault("resource_type", resource_type)
        context.setdefault("resource_id", resource_id)
        super().__init__(
            f"{resource_type} with ID {resource_id} not found", context=context, **kwargs
        )


class TaskNotFoundError(NotFoundError):
    """Raised when no task row has the given identifier."""

    def __init__(self, task_id: Any, **kwargs: Any):
        self.task_id = task_id
        super().__init__("Task", task_id, **kwargs)


class ValidationError(ServiceError):
    """
    Raised when a task payload violates one or more rules.

    ``violations`` keeps every failed rule (as Violation codes or plain
    strings) so callers can tell them apart without parsing the message.
    """

    status_code = 422

    def __init__(self, violations: List[Any], **kwargs: Any):
        self.violations = list(violations)
        messages = [getattr(v, "message", str(v)) for v in self.violations]
        context = kwargs.pop("context", None) or {}
        context.setdefault("violations", [getattr(v, "value", str(v)) for v in self.violations])
        super().__init__(f"Validation failed: {', '.join(messages)}", context=context, **kwargs)

    @property
    def messages(self) -> List[str]:
        return [getattr(v, "message", str(v)) for v in self.violations]


class InvalidArgumentError(ServiceError):
    """Raised for malformed call arguments (empty search term, no update fields, bad ids)."""

    status_code = 400


class StorageError(ServiceError):
    """Raised when the underlying SQLite call fails."""

    status_code = 500


def to_http_exception(exc: ServiceError) -> HTTPException:
    """Convert a ServiceError to a FastAPI HTTPException with the matching status code."""
    detail: Any = exc.message
    if isinstance(exc, ValidationError):
        detail = {"message": exc.message, "violations": exc.context.get("violations", [])}
    return HTTPException(status_code=exc.status_code, detail=detail)


__all__ = [
    "ServiceError",
    "NotConnectedError",
    "NotFoundError",
    "TaskNotFoundError",
    "ValidationError",
    "InvalidArgumentError",
    "StorageError",
    "to_http_exception",
]
