"""Low-level HTTP client for the Identity Toolkit Admin API.

Handles credentials, retries, cancellation and error translation.
"""
from __future__ import annotations
import concurrent.futures
import logging
import threading
from typing import Optional, Dict, Any

import requests
from authlib.integrations.requests_client import OAuth2Session, OAuthError
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from identity_admin import __version__
from .exceptions import (
    IdentityAPIError,
    InsufficientPermissionError,
    OperationCancelledError,
    TenantNotFoundError,
)

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT = 10
CLIENT_VERSION_HEADER = "X-Client-Version"
CLIENT_VERSION = f"Python/Admin/{__version__}"

# How often a cancellable request checks its cancellation event (seconds)
CANCEL_POLL_INTERVAL = 0.05

DEFAULT_RETRY = Retry(
    connect=1,
    read=1,
    status=4,
    status_forcelist=[500, 503],
    backoff_factor=0.5,
    allowed_methods=None,
    raise_on_status=False,
)

# Server error code -> (library code, message, exception type)
_SERVER_ERRORS = {
    "TENANT_NOT_FOUND": (
        "tenant-not-found",
        "No tenant found for the given identifier",
        TenantNotFoundError,
    ),
    "INSUFFICIENT_PERMISSION": (
        "insufficient-permission",
        "Credential used to initialize the client has insufficient permission to perform "
        "the requested operation",
        InsufficientPermissionError,
    ),
    "CONFIGURATION_NOT_FOUND": (
        "configuration-not-found",
        "No auth configuration found for the given identifier",
        IdentityAPIError,
    ),
    "INVALID_PAGE_SELECTION": (
        "invalid-page-token",
        "Invalid page token",
        IdentityAPIError,
    ),
    "INVALID_TENANT_ID": (
        "invalid-tenant-id",
        "The specified tenant ID is invalid",
        IdentityAPIError,
    ),
    "QUOTA_EXCEEDED": (
        "quota-exceeded",
        "The project quota for the requested operation has been exceeded",
        IdentityAPIError,
    ),
}

_STATUS_CODES = {
    400: "invalid-argument",
    401: "unauthenticated",
    403: "permission-denied",
    404: "not-found",
    409: "conflict",
    429: "resource-exhausted",
    500: "internal",
    503: "unavailable",
}


class IdentityToolkitClient:
    """HTTP client for the Identity Toolkit Admin API.

    Features:
    - Static bearer token or OAuth2 client-credentials authentication
      (token refresh handled by authlib)
    - Retry on transient failures via urllib3
    - Cooperative cancellation through a threading.Event
    - Centralized error translation into IdentityAPIError

    Usage:
        client = IdentityToolkitClient(access_token="ya29...")
        body = client.get("https://identitytoolkit.googleapis.com/v2/projects/p/tenants/t1")
        client.close()
    """

    def __init__(
        self,
        access_token: Optional[str] = None,
        *,
        token_url: Optional[str] = None,
        client_id: Optional[str] = None,
        client_secret: Optional[str] = None,
        scope: Optional[str] = None,
        timeout: float = REQUEST_TIMEOUT,
        retry: Retry = DEFAULT_RETRY,
    ):
        """Initialize the client.

        Args:
            access_token: Pre-obtained bearer token
            token_url: OAuth2 token endpoint for the client-credentials grant
            client_id: OAuth2 client ID (with token_url)
            client_secret: OAuth2 client secret (with token_url)
            scope: Optional OAuth2 scope to request
            timeout: Per-request timeout in seconds
            retry: urllib3 retry policy mounted on the session

        Raises:
            ValueError: If neither a token nor client credentials are supplied
        """
        if token_url:
            if not client_id or not client_secret:
                raise ValueError("client_id and client_secret are required with token_url")
            self.session: requests.Session = OAuth2Session(
                client_id,
                client_secret,
                scope=scope,
                token_endpoint=token_url,
                grant_type="client_credentials",
            )
        elif access_token:
            self.session = requests.Session()
            self.session.headers["Authorization"] = f"Bearer {access_token}"
        else:
            raise ValueError("An access token or OAuth2 client credentials are required")

        adapter = HTTPAdapter(max_retries=retry)
        self.session.mount("https://", adapter)
        self.session.mount("http://", adapter)

        self.timeout = timeout
        self._token_url = token_url
        self._executor: Optional[concurrent.futures.ThreadPoolExecutor] = None
        self._executor_lock = threading.Lock()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def get(self, url: str, params: Optional[Dict] = None, **kwargs) -> Dict[str, Any]:
        """Execute a GET request and return the decoded JSON body."""
        return self.request("GET", url, params=params, **kwargs)

    def post(self, url: str, json: Optional[Dict] = None, **kwargs) -> Dict[str, Any]:
        """Execute a POST request and return the decoded JSON body."""
        return self.request("POST", url, json=json, **kwargs)

    def patch(
        self, url: str, json: Optional[Dict] = None, params: Optional[Dict] = None, **kwargs
    ) -> Dict[str, Any]:
        """Execute a PATCH request and return the decoded JSON body."""
        return self.request("PATCH", url, json=json, params=params, **kwargs)

    def delete(self, url: str, **kwargs) -> Dict[str, Any]:
        """Execute a DELETE request and return the decoded JSON body."""
        return self.request("DELETE", url, **kwargs)

    def request(
        self,
        method: str,
        url: str,
        *,
        params: Optional[Dict] = None,
        json: Optional[Dict] = None,
        headers: Optional[Dict[str, str]] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> Dict[str, Any]:
        """Send a request and return the decoded JSON response body.

        Args:
            method: HTTP method
            url: Absolute request URL
            params: Query parameters
            json: JSON payload
            headers: Extra request headers
            cancel_event: Event that aborts the call when set

        Returns:
            Decoded JSON object ({} for an empty body)

        Raises:
            RuntimeError: If the client has been closed
            OperationCancelledError: If cancel_event fires before completion
            IdentityAPIError: On any transport, HTTP or parsing failure
        """
        if self._closed:
            raise RuntimeError("IdentityToolkitClient has been closed")
        if cancel_event is not None and cancel_event.is_set():
            raise OperationCancelledError(f"{method} {url} cancelled before dispatch")

        self._ensure_authenticated()
        if cancel_event is not None and cancel_event.is_set():
            raise OperationCancelledError(f"{method} {url} cancelled before dispatch")
        kwargs ={"params": params, "json": json, "headers": headers}
        logger.debug(f"{method} {url} params={params}")

        if cancel_event is None:
            resp = self._send(method, url, **kwargs)
        else:
            resp = self._send_cancellable(method, url, cancel_event, **kwargs)

        self._handle_error(resp)
        return self._parse_body(resp)

    def close(self) -> None:
        """Release the session and worker threads. Safe to call more than once."""
        with self._executor_lock:
            if self._closed:
                return
            self._closed = True
            self.session.close()
            if self._executor is not None:
                self._executor.shutdown(wait=False)
                self._executor = None

    def __enter__(self) -> "IdentityToolkitClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def _ensure_authenticated(self) -> None:
        """Fetch the first client-credentials token; authlib refreshes it afterwards."""
        if not isinstance(self.session, OAuth2Session) or self.session.token:
            return
        try:
            self.session.fetch_token(self._token_url, grant_type="client_credentials")
        except (OAuthError, requests.RequestException) as e:
            raise IdentityAPIError(
                f"Failed to obtain access token: {e}",
                code="unauthenticated",
                endpoint=self._token_url or "",
            ) from e

    def _send(self, method: str, url: str, **kwargs) -> requests.Response:
        try:
            return self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.Timeout as e:
            raise IdentityAPIError(
                f"Timed out while making an API call: {e}", code="deadline-exceeded", endpoint=url
            ) from e
        except requests.ConnectionError as e:
            raise IdentityAPIError(
                f"Failed to establish a connection: {e}", code="unavailable", endpoint=url
            ) from e
        except requests.RequestException as e:
            raise IdentityAPIError(
                f"Unknown error while making a remote service call: {e}", endpoint=url
            ) from e
        except OAuthError as e:
            raise IdentityAPIError(
                f"Failed to refresh access token: {e}", code="unauthenticated", endpoint=url
            ) from e

    def _send_cancellable(
        self, method: str, url: str, cancel_event: threading.Event, **kwargs
    ) -> requests.Response:
        future = self._get_executor().submit(self._send, method, url, **kwargs)
        while True:
            done, _ = concurrent.futures.wait([future], timeout=CANCEL_POLL_INTERVAL)
            if done:
                return future.result()
            if cancel_event.is_set():
                # The worker may still be blocked on the socket; its result is dropped.
                future.cancel()
                logger.info(f"{method} {url} cancelled by caller")
                raise OperationCancelledError(f"{method} {url} cancelled")

    def _get_executor(self) -> concurrent.futures.ThreadPoolExecutor:
        with self._executor_lock:
            if self._closed:
                raise RuntimeError("IdentityToolkitClient has been closed")
            if self._executor is None:
                self._executor = concurrent.futures.ThreadPoolExecutor(
                    max_workers=4, thread_name_prefix="idtoolkit"
                )
            return self._executor

    def _handle_error(self, resp: requests.Response) -> None:
        """Centralized error handling for HTTP responses.

        Args:
            resp: Response object to check

        Raises:
            IdentityAPIError: If response status indicates error
        """
        if resp.status_code < 400:
            return
        error = error_from_response(resp)
        logger.warning(f"[{resp.status_code}] {resp.url}: {error.message}")
        raise error

    @staticmethod
    def _parse_body(resp: requests.Response) -> Dict[str, Any]:
        if not resp.content:
            return {}
        try:
            body = resp.json()
        except ValueError as e:
            raise IdentityAPIError(
                f"Error while parsing response: {resp.text}",
                status_code=resp.status_code,
                endpoint=resp.url,
            ) from e
        if not isinstance(body, dict):
            raise IdentityAPIError(
                f"Error while parsing response: expected a JSON object, got {type(body).__name__}",
                status_code=resp.status_code,
                endpoint=resp.url,
            )
        return body


def _parse_server_error(resp: requests.Response) -> tuple[Optional[str], Optional[str]]:
    """Extract (server_code, detail) from a '{"error": {"message": "CODE : detail"}}' body."""
    try:
        error = resp.json().get("error", {})
    except (ValueError, AttributeError):
        return None, None
    if not isinstance(error, dict):
        return None, None

    message = error.get("message") or ""
    if not message:
        return None, None
    server_code, _, detail = message.partition(":")
    return server_code.strip(), (detail.strip() or None)


def error_from_response(resp: requests.Response) -> IdentityAPIError:
    """Translate an HTTP error response into an IdentityAPIError.

    Known service codes map to a dedicated library code and exception type;
    anything else falls back to a code derived from the HTTP status.
    """
    server_code, detail = _parse_server_error(resp)
    known = _SERVER_ERRORS.get(server_code or "")
    if known:
        code, message, exc_type = known
        message = f"{message} ({server_code})."
        if detail:
            message = f"{message} {detail}"
        return exc_type(
            message,
            status_code=resp.status_code,
            code=code,
            endpoint=resp.url,
            server_code=server_code,
        )

    return IdentityAPIError(
        f"Unexpected error response: {resp.text}",
        status_code=resp.status_code,
        code=_STATUS_CODES.get(resp.status_code, "unknown"),
        endpoint=resp.url,
        server_code=server_code,
    )
