# common/errors.py
"""
Error taxonomy shared by the store, the model client and the conversation
orchestrator. Each error carries the HTTP status it maps to, but nothing here
imports the web framework; `api.errors` does the rendering.
"""

from enum import Enum
from typing import Optional, Dict, Any


class ErrorType(Enum):
    """Standard error types"""
    VALIDATION = "validation_error"
    NOT_FOUND = "not_found"
    FORBIDDEN = "forbidden"
    EXTERNAL_SERVICE = "external_service_error"


class TherapyChatError(Exception):
    """Base exception for the backend"""

    def __init__(
        self,
        message: str,
        error_type: ErrorType,
        status_code: int = 500,
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.error_type = error_type
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)


class ValidationError(TherapyChatError):
    """Malformed create/update payload, rejected before touching the store"""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, ErrorType.VALIDATION, status_code=400, details=details)


class NotFoundError(TherapyChatError):
    """Referenced user/session/message does not exist"""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, ErrorType.NOT_FOUND, status_code=404, details=details)


class ForbiddenError(TherapyChatError):
    """Authenticated identity does not own the referenced session"""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, ErrorType.FORBIDDEN, status_code=403, details=details)


class ExternalServiceError(TherapyChatError):
    """The language model call failed (timeout, transport, malformed response)"""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, ErrorType.EXTERNAL_SERVICE, status_code=503, details=details)
