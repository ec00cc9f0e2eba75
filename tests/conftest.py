"""Pytest shared fixtures for the identity admin client."""
import json
import pathlib
import sys
import threading
from typing import Optional

# Add project root to Python path
ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import pytest
import requests
from requests.adapters import BaseAdapter

from identity_admin.core.idtoolkit import ID_TOOLKIT_URL, TenantManager

PROJECT_ID = "mock-project-id"
TENANT_MGT_URL_PREFIX = f"{ID_TOOLKIT_URL}/projects/{PROJECT_ID}"


# ─────────────────────────────────────────────────────────────────────────────
# HTTP Stubs
# ─────────────────────────────────────────────────────────────────────────────
class RecordingAdapter(BaseAdapter):
    """Transport adapter that records requests and replays canned responses.

    Each queued item is either (status, body) or an exception instance to
    raise. Running out of responses fails the test loudly.
    """

    def __init__(self, responses, release: Optional[threading.Event] = None):
        super().__init__()
        self._responses = list(responses)
        self._release = release
        self.requests = []

    def send(self, request, **kwargs):
        self.requests.append(request)
        if self._release is not None:
            self._release.wait(timeout=5)
        if not self._responses:
            raise RuntimeError(f"Unexpected HTTP {request.method} in unit test: {request.url}")
        item = self._responses.pop(0)
        if isinstance(item, Exception):
            raise item

        status, body = item
        resp = requests.Response()
        resp.status_code = status
        if body is None:
            resp._content = b""
        elif isinstance(body, (dict, list)):
            resp._content = json.dumps(body).encode("utf-8")
        else:
            resp._content = body.encode("utf-8")
        resp.headers["Content-Type"] = "application/json"
        resp.encoding = "utf-8"
        resp.url = request.url
        resp.request = request
        return resp

    def close(self):
        pass


@pytest.fixture()
def mock_api():
    """Install a RecordingAdapter on a client's session for the API prefix."""

    def _install(client, *responses, release: Optional[threading.Event] = None) -> RecordingAdapter:
        adapter = RecordingAdapter(responses, release=release)
        client.session.mount(ID_TOOLKIT_URL, adapter)
        return adapter

    return _install


@pytest.fixture()
def tenant_manager():
    """TenantManager with a static token; closed after the test."""
    manager = TenantManager(PROJECT_ID, access_token="test-token")
    yield manager
    manager.close()


# ─────────────────────────────────────────────────────────────────────────────
# Resource Helpers
# ─────────────────────────────────────────────────────────────────────────────
def tenant_resource(tenant_id: str, **fields) -> dict:
    """Tenant JSON as returned by the service."""
    resource = {"name": f"projects/{PROJECT_ID}/tenants/{tenant_id}"}
    resource.update(fields)
    return resource
