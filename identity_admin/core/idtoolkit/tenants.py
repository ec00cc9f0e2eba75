"""Tenant management operations (multitenancy administration)."""
from __future__ import annotations
import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, TYPE_CHECKING
from urllib.parse import quote

from ..validators import (
    validate_boolean,
    validate_display_name,
    validate_page_size,
    validate_page_token,
    validate_tenant_id,
)
from .client import CLIENT_VERSION, CLIENT_VERSION_HEADER, IdentityToolkitClient
from .exceptions import IdentityAPIError

if TYPE_CHECKING:
    from identity_admin.config.settings import AdminConfig

logger = logging.getLogger(__name__)

ID_TOOLKIT_URL = "https://identitytoolkit.googleapis.com/v2"

# Python attribute -> wire field name
_TENANT_FIELDS = {
    "display_name": "displayName",
    "allow_password_sign_up": "allowPasswordSignup",
    "enable_email_link_sign_in": "enableEmailLinkSignin",
    "enable_anonymous_user": "enableAnonymousUser",
}


@dataclass(frozen=True)
class Tenant:
    """A tenant in a multi-tenant project, as reported by the service."""

    tenant_id: str
    display_name: Optional[str] = None
    allow_password_sign_up: bool = False
    enable_email_link_sign_in: bool = False
    enable_anonymous_user: bool = False

    @classmethod
    def from_dict(cls, data: Any) -> "Tenant":
        """Build a Tenant from a tenant resource.

        The tenant ID is the last segment of the resource name
        (``projects/{project}/tenants/{tenant_id}``).

        Raises:
            ValueError: If data is not a dict with a non-empty name
        """
        if not isinstance(data, dict):
            raise ValueError(f"Invalid data argument in Tenant constructor: {data!r}")
        name = data.get("name")
        if not isinstance(name, str) or not name:
            raise ValueError("Tenant response missing required keys: name")
        return cls(
            tenant_id=name.rsplit("/", 1)[-1],
            display_name=data.get("displayName"),
            allow_password_sign_up=bool(data.get("allowPasswordSignup", False)),
            enable_email_link_sign_in=bool(data.get("enableEmailLinkSignin", False)),
            enable_anonymous_user=bool(data.get("enableAnonymousUser", False)),
        )


@dataclass
class TenantArgs:
    """Properties to set on a tenant when creating or updating it.

    Fields left as None are omitted from the request; on update they are not
    part of the update mask and keep their current value on the server.
    """

    display_name: Optional[str] = None
    allow_password_sign_up: Optional[bool] = None
    enable_email_link_sign_in: Optional[bool] = None
    enable_anonymous_user: Optional[bool] = None

    def to_payload(self) -> Dict[str, Any]:
        """Return the set fields keyed by wire name.

        Raises:
            ValueError: If a set field has an invalid type or value
        """
        payload: Dict[str, Any] = {}
        if self.display_name is not None:
            payload["displayName"] = validate_display_name(self.display_name)
        for attr in ("allow_password_sign_up", "enable_email_link_sign_in", "enable_anonymous_user"):
            value = getattr(self, attr)
            if value is not None:
                wire_name = _TENANT_FIELDS[attr]
                payload[wire_name] = validate_boolean(value, wire_name)
        return payload

    def update_mask(self) -> List[str]:
        """Sorted wire names of the fields that are set."""
        return sorted(self.to_payload())


@dataclass
class ListTenantsOptions:
    """Starting point and page size for listing tenants."""

    page_size: Optional[int] = None
    page_token: Optional[str] = None

    def __post_init__(self):
        validate_page_size(self.page_size)
        validate_page_token(self.page_token)

    def to_params(self) -> Dict[str, Any]:
        params: Dict[str, Any] = {}
        if self.page_size is not None:
            params["pageSize"] = self.page_size
        if self.page_token is not None:
            params["pageToken"] = self.page_token
        return params


@dataclass
class TenantsPage:
    """One page of list results and the token for the next page."""

    tenants: List[Tenant] = field(default_factory=list)
    next_page_token: str = ""

    @property
    def has_next_page(self) -> bool:
        return bool(self.next_page_token)


def _response_error(err: Exception, url: str) -> IdentityAPIError:
    return IdentityAPIError(f"Error while parsing response: {err}", code="unknown", endpoint=url)


def _parse_tenant(body: Any, url: str) -> Tenant:
    """Build a Tenant from a response body, reporting bad data as a service error."""
    try:
        return Tenant.from_dict(body)
    except ValueError as e:
        raise _response_error(e, url) from e


def _parse_tenants_page(body: Dict[str, Any], url: str) -> TenantsPage:
    """Build a TenantsPage from a list response body.

    Raises:
        IdentityAPIError: If ``tenants`` is not a list, ``nextPageToken`` is
            not a string, or an entry is not a tenant resource
    """
    items = body.get("tenants")
    if items is None:
        items = []
    if not isinstance(items, list):
        raise _response_error(ValueError(f"tenants must be a list: {items!r}"), url)
    token = body.get("nextPageToken")
    if token is None:
        token = ""
    if not isinstance(token, str):
        raise _response_error(ValueError(f"nextPageToken must be a string: {token!r}"), url)
    return TenantsPage(tenants=[_parse_tenant(item, url) for item in items], next_page_token=token)


class TenantManager:
    """Create, update, retrieve, delete and list tenants of a project.

    Usage:
        with TenantManager("my-project", access_token=token) as tenants:
            tenant = tenants.create_tenant(TenantArgs(display_name="Acme-Corp"))
            for t in tenants.list_tenants():
                print(t.tenant_id)

    Every operation accepts an optional ``cancel_event``; setting it makes the
    pending call raise OperationCancelledError. A request already on the wire
    is abandoned rather than aborted, so a cancelled create, update or delete
    may still be applied server-side.
    """

    def __init__(
        self,
        project_id: str,
        client: Optional[IdentityToolkitClient] = None,
        *,
        base_url: str = ID_TOOLKIT_URL,
        **client_kwargs: Any,
    ):
        """Initialize tenant manager.

        Args:
            project_id: Project whose tenants are managed
            client: Existing client to use (not closed by this manager)
            base_url: API root, overridable for emulators and tests
            **client_kwargs: Arguments for a new IdentityToolkitClient when
                client is not given (owned and closed by this manager)

        Raises:
            ValueError: If project_id is missing
        """
        if not isinstance(project_id, str) or not project_id:
            raise ValueError(
                "A project ID is required to manage tenants. Set IDENTITY_PROJECT_ID or "
                "pass project_id explicitly."
            )
        self.project_id = project_id
        self.base_url = f"{base_url.rstrip('/')}/projects/{project_id}"
        self._owns_client = client is None
        self.client = client if client is not None else IdentityToolkitClient(**client_kwargs)
        self._closed = False

    @classmethod
    def from_settings(cls, config: "AdminConfig") -> "TenantManager":
        """Build a manager (and its client) from loaded settings."""
        if config.token_url:
            client = IdentityToolkitClient(
                token_url=config.token_url,
                client_id=config.client_id,
                client_secret=config.client_secret_resolved,
                scope=config.scope or None,
                timeout=config.request_timeout,
            )
        else:
            client = IdentityToolkitClient(
                access_token=config.access_token_resolved,
                timeout=config.request_timeout,
            )
        manager = cls(config.project_id, client, base_url=config.api_base_url)
        manager._owns_client = True
        return manager

    def get_tenant(self, tenant_id: str, *, cancel_event: Optional[threading.Event] = None) -> Tenant:
        """Get the tenant with the given ID.

        Raises:
            ValueError: If tenant_id is not a non-empty string
            TenantNotFoundError: If no tenant exists with that ID
            IdentityAPIError: On any other service failure
        """
        validate_tenant_id(tenant_id)
        self._check_open()
        url = self._tenant_url(tenant_id)
        body = self.client.get(url, headers=self._headers(), cancel_event=cancel_event)
        return _parse_tenant(body, url)

    def create_tenant(self, args: TenantArgs, *, cancel_event: Optional[threading.Event] = None) -> Tenant:
        """Create a new tenant.

        Args:
            args: Configuration of the new tenant

        Returns:
            The created tenant, including its server-assigned ID

        Raises:
            ValueError: If args is missing or holds invalid values
            IdentityAPIError: If the service rejects the request
        """
        if args is None or not isinstance(args, TenantArgs):
            raise ValueError("Tenant args must be a TenantArgs instance.")
        payload = args.to_payload()
        self._check_open()
        url = f"{self.base_url}/tenants"
        body = self.client.post(url, json=payload, headers=self._headers(), cancel_event=cancel_event)
        tenant = _parse_tenant(body, url)
        logger.info(f"[tenants] Created tenant '{tenant.tenant_id}' in project '{self.project_id}'")
        return tenant

    def update_tenant(
        self, tenant_id: str, args: TenantArgs, *, cancel_event: Optional[threading.Event] = None
    ) -> Tenant:
        """Update the fields set on args for an existing tenant.

        The request carries an ``updateMask`` listing exactly the fields set
        on args, sorted by wire name.

        Raises:
            ValueError: If tenant_id is invalid, args is missing or sets no field
            TenantNotFoundError: If no tenant exists with that ID
            IdentityAPIError: On any other service failure
        """
        validate_tenant_id(tenant_id)
        if args is None or not isinstance(args, TenantArgs):
            raise ValueError("Tenant args must be a TenantArgs instance.")
        update_mask = args.update_mask()
        if not update_mask:
            raise ValueError("At least one parameter must be specified for update.")
        self._check_open()

        url = self._tenant_url(tenant_id)
        body = self.client.patch(
            url,
            json=args.to_payload(),
            params={"updateMask": ",".join(update_mask)},
            headers=self._headers(),
            cancel_event=cancel_event,
        )
        tenant = _parse_tenant(body, url)
        logger.info(f"[tenants] Updated tenant '{tenant_id}' fields={update_mask}")
        return tenant

    def delete_tenant(self, tenant_id: str, *, cancel_event: Optional[threading.Event] = None) -> None:
        """Delete the tenant with the given ID.

        Raises:
            ValueError: If tenant_id is not a non-empty string
            TenantNotFoundError: If no tenant exists with that ID
        """
        validate_tenant_id(tenant_id)
        self._check_open()
        self.client.delete(self._tenant_url(tenant_id), headers=self._headers(), cancel_event=cancel_event)
        logger.info(f"[tenants] Deleted tenant '{tenant_id}' from project '{self.project_id}'")

    def list_tenants_page(
        self,
        options: Optional[ListTenantsOptions] = None,
        *,
        cancel_event: Optional[threading.Event] = None,
    ) -> TenantsPage:
        """Fetch a single page of tenants.

        Args:
            options: Page size and starting token (None: first page, service default size)

        Returns:
            The page and the token of the following page ("" on the last page)

        Raises:
            IdentityAPIError: If the call fails or the response is malformed
        """
        options = options or ListTenantsOptions()
        self._check_open()
        url = f"{self.base_url}/tenants"
        body = self.client.get(
            url,
            params=options.to_params(),
            headers=self._headers(),
            cancel_event=cancel_event,
        )
        return _parse_tenants_page(body, url)

    def list_tenants(
        self,
        options: Optional[ListTenantsOptions] = None,
        *,
        cancel_event: Optional[threading.Event] = None,
    ) -> Iterator[Tenant]:
        """Iterate over all tenants, fetching pages lazily.

        One request is made per page, only when the consumer reaches it. The
        iterator ends after the page without a ``nextPageToken``; call again
        for a fresh iteration.

        Raises:
            RuntimeError: If the manager has been closed
        """
        options = options or ListTenantsOptions()
        self._check_open()
        return self._iterate_tenants(options, cancel_event)

    def close(self) -> None:
        """Release the underlying client if this manager created it."""
        if self._closed:
            return
        self._closed = True
        if self._owns_client:
            self.client.close()

    def __enter__(self) -> "TenantManager":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def _iterate_tenants(
        self, options: ListTenantsOptions, cancel_event: Optional[threading.Event]
    ) -> Iterator[Tenant]:
        page = self.list_tenants_page(options, cancel_event=cancel_event)
        while True:
            yield from page.tenants
            if not page.has_next_page:
                return
            next_options = ListTenantsOptions(page_size=options.page_size, page_token=page.next_page_token)
            page = self.list_tenants_page(next_options, cancel_event=cancel_event)

    def _tenant_url(self, tenant_id: str) -> str:
        return f"{self.base_url}/tenants/{quote(tenant_id, safe='')}"

    def _check_open(self) -> None:
        if self._closed or self.client.closed:
            raise RuntimeError("TenantManager has been closed")

    @staticmethod
    def _headers() -> Dict[str, str]:
        return {CLIENT_VERSION_HEADER: CLIENT_VERSION}
