"""
Request tracing for the publisher.

Every API request and every background task runs with a request ID, so a
guide save, the publishing API calls it makes and the tagging jobs it
queues can be followed through the logs.

    X-Request-ID (if a valid UUID) -> thread-local context -> log records
                                                          -> Celery headers
"""

import logging
import threading
import uuid
from typing import Optional

from django.utils.deprecation import MiddlewareMixin

logger = logging.getLogger(__name__)

_context = threading.local()

CONTEXT_FIELDS = ('request_id', 'user_id', 'path')


def _new_request_id() -> str:
    return str(uuid.uuid4())


def _valid_request_id(value) -> Optional[str]:
    try:
        return str(uuid.UUID(str(value)))
    except (ValueError, TypeError):
        return None


def get_request_id() -> Optional[str]:
    """Request ID of the current request or task, None outside one."""
    return getattr(_context, 'request_id', None)


def get_acting_user_id() -> Optional[str]:
    return getattr(_context, 'user_id', None)


def set_request_context(request_id, user_id=None, path=None):
    _context.request_id = request_id
    _context.user_id = user_id
    _context.path = path


def clear_request_context():
    for name in CONTEXT_FIELDS:
        setattr(_context, name, None)


class RequestIDMiddleware(MiddlewareMixin):
    """
    Tag each request with an ID and echo it back in X-Request-ID.

    An incoming ID is kept only if it is a UUID.
    """

    REQUEST_ID_HEADER = 'HTTP_X_REQUEST_ID'
    RESPONSE_HEADER = 'X-Request-ID'

    def process_request(self, request):
        incoming = request.META.get(self.REQUEST_ID_HEADER)
        request_id = _valid_request_id(incoming) if incoming else None
        if request_id is None:
            request_id = _new_request_id()

        user = getattr(request, 'user', None)
        user_id = str(user.pk) if user is not None and user.is_authenticated else None

        set_request_context(request_id, user_id=user_id, path=request.path)
        request.request_id = request_id

    def process_response(self, request, response):
        request_id = getattr(request, 'request_id', None)
        if request_id:
            response[self.RESPONSE_HEADER] = request_id
        clear_request_context()
        return response


class RequestIDFilter(logging.Filter):
    """Adds `request_id` and `user_id` to every log record."""

    def filter(self, record):
        record.request_id = get_request_id() or '-'
        record.user_id = get_acting_user_id() or '-'
        return True


def celery_request_id_headers() -> dict:
    """
    Headers that carry the current request ID into a Celery task.

    Usage:
        tag_guide_to_topic.apply_async(args=[...], headers=celery_request_id_headers())
    """
    request_id = get_request_id()
    return {'request_id': request_id} if request_id else {}


def setup_celery_request_context(headers):
    """Restore the request ID inside a task, or start a fresh one."""
    set_request_context(headers.get('request_id') or _new_request_id())
