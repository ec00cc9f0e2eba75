"""Identity Toolkit Admin API client library.

Architecture:
- client.py: HTTP client with credentials, retry, cancellation and error translation
- tenants.py: Tenant DTOs and the TenantManager (CRUD + paginated listing)
- exceptions.py: Typed exceptions for error handling

Usage:
    from identity_admin.core.idtoolkit import TenantManager, TenantArgs

    with TenantManager("my-project", access_token=token) as manager:
        tenant = manager.create_tenant(TenantArgs(display_name="Acme-Corp"))
        manager.update_tenant(tenant.tenant_id, TenantArgs(enable_anonymous_user=True))
"""
from .client import (
    IdentityToolkitClient,
    error_from_response,
    CLIENT_VERSION,
    CLIENT_VERSION_HEADER,
    REQUEST_TIMEOUT,
)
from .exceptions import (
    IdentityError,
    IdentityAPIError,
    TenantNotFoundError,
    InsufficientPermissionError,
    OperationCancelledError,
)
from .tenants import (
    ID_TOOLKIT_URL,
    Tenant,
    TenantArgs,
    ListTenantsOptions,
    TenantsPage,
    TenantManager,
)

__all__ = [
    # Client
    "IdentityToolkitClient",
    "error_from_response",
    "CLIENT_VERSION",
    "CLIENT_VERSION_HEADER",
    "REQUEST_TIMEOUT",

    # Exceptions
    "IdentityError",
    "IdentityAPIError",
    "TenantNotFoundError",
    "InsufficientPermissionError",
    "OperationCancelledError",

    # Tenants
    "ID_TOOLKIT_URL",
    "Tenant",
    "TenantArgs",
    "ListTenantsOptions",
    "TenantsPage",
    "TenantManager",
]
