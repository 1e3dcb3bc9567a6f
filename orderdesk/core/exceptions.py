"""
Custom Exceptions for OrderDesk
===============================

Every failure in the client is one of these. Controllers, form editors and
the export pipeline catch them at the operation boundary and expose the
message as observable error state; none of them is fatal.

Usage:
    from orderdesk.core.exceptions import RequestFailedError

    response = await client.list_users()
    if not response.success:
        raise RequestFailedError.from_response(response)
"""

from typing import Optional, Any, Dict


class OrderDeskError(Exception):
    """Base exception for all OrderDesk errors"""

    def __init__(
        self,
        message: str,
        code: str = "INTERNAL_ERROR",
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details
        }


# ============================================
# Validation Errors (raised before any request)
# ============================================

class ValidationError(OrderDeskError):
    """Draft field missing or unparsable"""

    def __init__(self, message: str, field: Optional[str] = None):
        details = {"field": field} if field else {}
        super().__init__(message, code="VALIDATION_ERROR", details=details)
        self.field = field


class WireFormatError(ValidationError):
    """A value cannot be carried by the delimited wire format"""

    def __init__(self, value: str, field: Optional[str] = None):
        super().__init__(
            f"Value '{value}' contains a reserved delimiter ('|' or ';')",
            field=field
        )
        self.code = "WIRE_FORMAT_ERROR"


# ============================================
# Request Errors
# ============================================

def extract_error_message(data: Any, status: int = 0) -> str:
    """
    Derive a human-readable message from a failed response body.

    Server-supplied messages win over transport messages, which win over
    the bare status code.
    """
    if isinstance(data, dict):
        for key in ("message", "error", "detail"):
            value = data.get(key)
            if value:
                return str(value)
    elif isinstance(data, str) and data.strip():
        return data.strip()
    if status:
        return f"Request failed with status code {status}"
    return "Request failed"


class RequestFailedError(OrderDeskError):
    """Network or server error on any remote call"""

    def __init__(self, message: str, status: int = 0):
        super().__init__(message, code="REQUEST_FAILED", details={"status": status})
        self.status = status

    @classmethod
    def from_response(cls, response: Any) -> "RequestFailedError":
        return cls(extract_error_message(response.data, response.status), status=response.status)


# ============================================
# Empty Results
# ============================================

class EmptyResultError(OrderDeskError):
    """An operation needed records that do not exist"""

    def __init__(self, message: str, resource_type: Optional[str] = None):
        details = {"resource_type": resource_type} if resource_type else {}
        super().__init__(message, code="EMPTY_RESULT", details=details)


# ============================================
# Document Generation Errors
# ============================================

class DocumentGenerationError(OrderDeskError):
    """Generation endpoint failed or returned no document"""

    def __init__(self, message: str, doc_type: Optional[str] = None, status: int = 0):
        super().__init__(message, code="DOCUMENT_GENERATION_FAILED")
        self.status = status
        if doc_type:
            self.details["doc_type"] = doc_type
        if status:
            self.details["status"] = status


__all__ = [
    "OrderDeskError",
    "ValidationError",
    "WireFormatError",
    "RequestFailedError",
    "EmptyResultError",
    "DocumentGenerationError",
    "extract_error_message",
]
