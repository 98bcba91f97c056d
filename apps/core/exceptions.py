"""
Error taxonomy for the service manual publisher.

    ValidationError       - bad input, nothing written
    WorkflowGuardError    - illegal edition state transition
    NotFoundError         - record missing or not in the required state
    ExternalServiceError  - the publishing API rejected or failed a call

Every error reaching the API is rendered as

    {"error": {"code": ..., "message": ..., "field": ..., "details": ...},
     "request_id": ...}
"""

import logging
import uuid
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple
from dataclasses import dataclass, field as dc_field

from django.core.exceptions import ObjectDoesNotExist, ValidationError as DjangoValidationError
from django.http import Http404
from rest_framework import status
from rest_framework.exceptions import APIException
from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_exception_handler

logger = logging.getLogger(__name__)


class ErrorCode(str, Enum):
    VALIDATION_ERROR = "VALIDATION_ERROR"

    AUTHENTICATION_REQUIRED = "AUTHENTICATION_REQUIRED"
    PERMISSION_DENIED = "PERMISSION_DENIED"

    NOT_FOUND = "NOT_FOUND"
    INVALID_TRANSITION = "INVALID_TRANSITION"
    CONFLICT = "CONFLICT"

    PUBLISHING_API_ERROR = "PUBLISHING_API_ERROR"
    NETWORK_ERROR = "NETWORK_ERROR"

    INTERNAL_ERROR = "INTERNAL_ERROR"


# DRF exceptions that are not ours are classified by status alone
STATUS_ERROR_CODES = {
    status.HTTP_401_UNAUTHORIZED: ErrorCode.AUTHENTICATION_REQUIRED,
    status.HTTP_403_FORBIDDEN: ErrorCode.PERMISSION_DENIED,
    status.HTTP_404_NOT_FOUND: ErrorCode.NOT_FOUND,
    status.HTTP_409_CONFLICT: ErrorCode.CONFLICT,
}


@dataclass
class ErrorBody:
    code: ErrorCode
    message: str
    field: Optional[str] = None
    details: Optional[Dict[str, Any]] = None
    request_id: str = dc_field(default_factory=lambda: str(uuid.uuid4()))

    def to_dict(self) -> Dict[str, Any]:
        error = {"code": ErrorCode(self.code).value, "message": self.message}
        if self.field:
            error["field"] = self.field
        if self.details:
            error["details"] = self.details
        return {"error": error, "request_id": self.request_id}

    def respond(self, status_code: int) -> Response:
        return Response(self.to_dict(), status=status_code)


class ManualException(APIException):
    """
    Base class for errors the publisher raises on purpose.

    Subclasses pick the HTTP status and error code; callers only pass a
    message and, where it helps, the offending field or extra details.
    """

    status_code = status.HTTP_400_BAD_REQUEST
    error_code = ErrorCode.INTERNAL_ERROR
    default_detail = "Something went wrong"

    def __init__(
        self,
        message: Optional[str] = None,
        code: Optional[ErrorCode] = None,
        field: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        status_code: Optional[int] = None,
    ):
        self.message = message or self.default_detail
        self.error_code = code or self.error_code
        self.field = field
        self.error_details = details or {}
        if status_code:
            self.status_code = status_code
        super().__init__(detail=self.message)

    def __str__(self):
        return self.message

    def as_body(self, request_id: str) -> ErrorBody:
        return ErrorBody(
            code=self.error_code,
            message=self.message,
            field=self.field,
            details=self.error_details or None,
            request_id=request_id,
        )


def humanize_field(name: str) -> str:
    """'topic_section_id' -> 'Topic section'"""
    if name.endswith('_id'):
        name = name[:-3]
    return name.replace('_', ' ').capitalize()


class ValidationError(ManualException):
    """
    Every (field, message) problem found in one pass.

    Raised before anything is written. `full_messages` reads like
    "Title can't be blank"; non-field problems use the `__all__` key.
    """
    status_code = status.HTTP_400_BAD_REQUEST
    error_code = ErrorCode.VALIDATION_ERROR
    default_detail = "Validation failed"

    def __init__(self, errors: Optional[List[Tuple[str, str]]] = None, message: Optional[str] = None):
        self.errors = list(errors or [])
        super().__init__(
            message=message or (self.full_messages[0] if self.errors else None),
            details={"errors": self.as_dict()} if self.errors else None,
        )

    @property
    def full_messages(self) -> List[str]:
        return [
            message if name == '__all__' else f"{humanize_field(name)} {message}"
            for name, message in self.errors
        ]

    def as_dict(self) -> Dict[str, List[str]]:
        grouped: Dict[str, List[str]] = {}
        for name, message in self.errors:
            grouped.setdefault(name, []).append(message)
        return grouped


class WorkflowGuardError(ManualException):
    """An edition cannot move to the requested state; `guard` names the rule."""
    status_code = status.HTTP_409_CONFLICT
    error_code = ErrorCode.INVALID_TRANSITION
    default_detail = "Transition not allowed"

    def __init__(self, message: Optional[str] = None, guard: Optional[str] = None):
        self.guard = guard
        super().__init__(message=message, details={"guard": guard} if guard else None)


class NotFoundError(ManualException):
    status_code = status.HTTP_404_NOT_FOUND
    error_code = ErrorCode.NOT_FOUND
    default_detail = "Not found"


class ExternalServiceError(ManualException):
    """The publishing API rejected a request or could not be reached."""
    status_code = status.HTTP_502_BAD_GATEWAY
    error_code = ErrorCode.PUBLISHING_API_ERROR
    default_detail = "Publishing API error"


def _django_validation_body(exc: DjangoValidationError, request_id: str) -> ErrorBody:
    if hasattr(exc, 'message_dict'):
        return ErrorBody(ErrorCode.VALIDATION_ERROR, "Validation failed",
                         details=exc.message_dict, request_id=request_id)
    messages = exc.messages
    return ErrorBody(ErrorCode.VALIDATION_ERROR, messages[0] if messages else "Validation failed",
                     details={"errors": messages}, request_id=request_id)


def _drf_body(data, status_code: int, request_id: str) -> ErrorBody:
    if status_code >= 500:
        code = ErrorCode.INTERNAL_ERROR
    else:
        code = STATUS_ERROR_CODES.get(status_code, ErrorCode.VALIDATION_ERROR)

    if isinstance(data, dict) and 'detail' in data:
        return ErrorBody(code, str(data['detail']), request_id=request_id)
    details = data if isinstance(data, dict) else {"errors": data}
    return ErrorBody(code, "Validation failed", details=details, request_id=request_id)


def publisher_exception_handler(exc, context):
    """
    DRF EXCEPTION_HANDLER rendering every known error in the shared shape.

    Anything unrecognised is logged and left to Django's 500 handling.
    """
    request = context.get('request')
    request_id = getattr(request, 'request_id', None) or str(uuid.uuid4())

    if isinstance(exc, ManualException):
        logger.warning(
            "%s: %s", exc.error_code.value, exc.message,
            extra={"error_code": exc.error_code.value, "status_code": exc.status_code},
        )
        return exc.as_body(request_id).respond(exc.status_code)

    if isinstance(exc, DjangoValidationError):
        return _django_validation_body(exc, request_id).respond(status.HTTP_400_BAD_REQUEST)

    if isinstance(exc, (Http404, ObjectDoesNotExist)):
        body = ErrorBody(ErrorCode.NOT_FOUND, str(exc) or "Not found", request_id=request_id)
        return body.respond(status.HTTP_404_NOT_FOUND)

    response = drf_exception_handler(exc, context)
    if response is not None:
        return _drf_body(response.data, response.status_code, request_id).respond(response.status_code)

    logger.exception("Unhandled %s", type(exc).__name__)
    return None
