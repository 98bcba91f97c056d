"""
Publishing API client.

Thin wrapper over the publishing API's v2 endpoints using a requests
session. Every non-2xx response is raised; nothing is swallowed.

    put_content(content_id, payload)    PUT   /v2/content/:id
    publish(content_id, update_type)    POST  /v2/content/:id/publish
    unpublish(content_id, type)         POST  /v2/content/:id/unpublish
    patch_links(content_id, payload)    PATCH /v2/links/:id
    put_links(content_id, payload)      PUT   /v2/links/:id
"""

import logging
from typing import Any, Dict, Optional

import requests
from django.conf import settings
from requests.adapters import HTTPAdapter
from rest_framework import status
from urllib3.util.retry import Retry

from apps.core.exceptions import ErrorCode, ExternalServiceError

logger = logging.getLogger(__name__)


class PublishingApiError(ExternalServiceError):
    """Base class for publishing API failures."""

    def __init__(self, message: Optional[str] = None, code: Optional[int] = None, error_details: Optional[dict] = None):
        self.code = code
        self.response_details = error_details or {}
        super().__init__(message=message, details={'status': code} if code else None)


class PublishingApiClientError(PublishingApiError):
    """4xx from the publishing API; the message is shown to the user verbatim."""
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY


class PublishingApiServerError(PublishingApiError):
    """5xx from the publishing API."""


class PublishingApiConnectionError(PublishingApiError):
    """The publishing API could not be reached or timed out."""
    error_code = ErrorCode.NETWORK_ERROR


class PublishingApiClient:
    """
    Client for the publishing API.

    Only idempotent verbs are retried, so a publish is never sent twice
    by the transport layer.
    """

    DEFAULT_TIMEOUT = 10
    DEFAULT_MAX_RETRIES = 2

    def __init__(
        self,
        base_url: str,
        bearer_token: str = '',
        timeout: int = DEFAULT_TIMEOUT,
        max_retries: int = DEFAULT_MAX_RETRIES,
    ):
        self.base_url = base_url.rstrip('/')
        self.bearer_token = bearer_token
        self.timeout = timeout
        self.max_retries = max_retries
        self.session = self._create_session()

    def _create_session(self) -> requests.Session:
        session = requests.Session()

        retry_strategy = Retry(
            total=self.max_retries,
            backoff_factor=0.5,
            status_forcelist=[502, 503, 504],
            allowed_methods=["GET", "PUT"],
            raise_on_status=False,
        )

        adapter = HTTPAdapter(max_retries=retry_strategy)
        session.mount("http://", adapter)
        session.mount("https://", adapter)

        session.headers.update({
            'Accept': 'application/json',
            'Content-Type': 'application/json',
            'User-Agent': f"{settings.PUBLISHING_APP} (python-requests)",
        })
        if self.bearer_token:
            session.headers['Authorization'] = f"Bearer {self.bearer_token}"

        return session

    # -------------------------------------------------------------------------
    # Endpoints
    # -------------------------------------------------------------------------

    def put_content(self, content_id: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        return self._request('PUT', f"/v2/content/{content_id}", payload)

    def publish(self, content_id: str, update_type: str) -> Dict[str, Any]:
        return self._request('POST', f"/v2/content/{content_id}/publish", {'update_type': update_type})

    def unpublish(self, content_id: str, unpublishing_type: str = 'gone', explanation: str = '') -> Dict[str, Any]:
        payload = {'type': unpublishing_type}
        if explanation:
            payload['explanation'] = explanation
        return self._request('POST', f"/v2/content/{content_id}/unpublish", payload)

    def patch_links(self, content_id: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        return self._request('PATCH', f"/v2/links/{content_id}", payload)

    def put_links(self, content_id: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        return self._request('PUT', f"/v2/links/{content_id}", payload)

    # -------------------------------------------------------------------------
    # Transport
    # -------------------------------------------------------------------------

    def _request(self, method: str, path: str, payload: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        url = f"{self.base_url}{path}"
        logger.debug("Publishing API %s %s", method, url)

        try:
            response = self.session.request(method, url, json=payload, timeout=self.timeout)
        except requests.exceptions.Timeout as exc:
            logger.warning("Publishing API timeout: %s %s", method, url)
            raise PublishingApiConnectionError(f"Publishing API timed out: {exc}") from exc
        except requests.exceptions.RequestException as exc:
            logger.warning("Publishing API unreachable: %s %s: %s", method, url, exc)
            raise PublishingApiConnectionError(f"Could not connect to the publishing API: {exc}") from exc

        if response.status_code >= 400:
            raise self._error_for(response)

        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError:
            return {}

    @staticmethod
    def _error_for(response: requests.Response) -> PublishingApiError:
        try:
            body = response.json()
        except ValueError:
            body = {}

        message = None
        if isinstance(body, dict):
            error = body.get('error')
            if isinstance(error, dict):
                message = error.get('message')
            elif isinstance(error, str):
                message = error
        message = message or f"Publishing API returned {response.status_code}"

        logger.warning(
            "Publishing API error %s for %s %s: %s",
            response.status_code, response.request.method if response.request else '?', response.url, message,
        )

        error_class = PublishingApiClientError if response.status_code < 500 else PublishingApiServerError
        return error_class(message, code=response.status_code, error_details=body if isinstance(body, dict) else None)


def get_publishing_api() -> PublishingApiClient:
    """Build a client from settings."""
    return PublishingApiClient(
        base_url=settings.PUBLISHING_API_URL,
        bearer_token=settings.PUBLISHING_API_BEARER_TOKEN,
        timeout=settings.PUBLISHING_API_TIMEOUT,
        max_retries=settings.PUBLISHING_API_MAX_RETRIES,
    )
