from typing import Any, Dict, Optional

from fastapi import status


class ServiceError(Exception):
    """Base exception for service layer errors."""

    code = "service_error"

    def __init__(
        self,
        message: str,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.details: Dict[str, Any] = dict(details or {})
        self.state_unchanged = False

    def mark_rolled_back(self) -> "ServiceError":
        """Flag that the surrounding transaction was rolled back before raising."""
        self.state_unchanged = True
        return self

    def to_detail(self) -> Dict[str, Any]:
        detail: Dict[str, Any] = {"code": self.code, "message": self.message}
        if self.details:
            detail["details"] = self.details
        if self.state_unchanged:
            detail["note"] = "No changes were saved."
        return detail


class NotFoundError(ServiceError):
    """A referenced entity does not exist (or is tombstoned)."""

    code = "not_found"

    def __init__(self, entity: str, entity_id: Any = None, **details: Any) -> None:
        message = f"{entity} not found" if entity_id is None else f"{entity} {entity_id} not found"
        super().__init__(
            message,
            status.HTTP_404_NOT_FOUND,
            {"entity": entity, "id": str(entity_id) if entity_id is not None else None, **details},
        )


class ConflictError(ServiceError):
    code = "conflict"

    def __init__(self, message: str, **details: Any) -> None:
        super().__init__(message, status.HTTP_409_CONFLICT, details)


class ValidationFailedError(ServiceError):
    code = "validation_failed"

    def __init__(self, message: str, **details: Any) -> None:
        super().__init__(message, status.HTTP_422_UNPROCESSABLE_ENTITY, details)


class PreconditionFailedError(ServiceError):
    code = "precondition_failed"

    def __init__(self, message: str, **details: Any) -> None:
        super().__init__(message, status.HTTP_412_PRECONDITION_FAILED, details)


class PermissionDeniedError(ServiceError):
    code = "permission_denied"

    def __init__(self, message: str, **details: Any) -> None:
        super().__init__(message, status.HTTP_403_FORBIDDEN, details)


class TransactionAbortedError(ServiceError):
    """Storage failed mid-transaction. Reported apart from domain errors."""

    code = "transaction_aborted"

    def __init__(self, message: str = "The storage layer failed; the operation was rolled back", **details: Any) -> None:
        super().__init__(message, status.HTTP_503_SERVICE_UNAVAILABLE, details)
        self.state_unchanged = True
