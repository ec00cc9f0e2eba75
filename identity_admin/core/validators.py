"""Input validation helpers for tenant management arguments."""
from __future__ import annotations
import re
from typing import Any, Optional

MAX_LIST_PAGE_SIZE = 100

_DISPLAY_NAME_PATTERN = re.compile(r"^[a-zA-Z][a-zA-Z0-9-]{3,19}$")


def validate_tenant_id(tenant_id: Any) -> str:
    """Validate a tenant identifier.

    Args:
        tenant_id: Candidate tenant ID

    Returns:
        The tenant ID unchanged

    Raises:
        ValueError: If the ID is not a non-empty string
    """
    if not isinstance(tenant_id, str) or not tenant_id:
        raise ValueError(f"Invalid tenant ID: {tenant_id!r}. Tenant ID must be a non-empty string.")
    return tenant_id


def validate_display_name(display_name: Any) -> str:
    """Validate a tenant display name.

    Display names start with a letter and contain 4-20 letters, digits or hyphens.

    Raises:
        ValueError: If the display name is not a string or has an invalid format
    """
    if not isinstance(display_name, str):
        raise ValueError(f"Invalid type for displayName: {display_name!r}.")
    if not _DISPLAY_NAME_PATTERN.match(display_name):
        raise ValueError(
            "displayName must start with a letter and only consist of letters, digits and "
            f"hyphens with 4-20 characters: {display_name!r}."
        )
    return display_name


def validate_boolean(value: Any, label: str) -> bool:
    """Validate a flag that must be a real bool (not 0/1 or a string)."""
    if not isinstance(value, bool):
        raise ValueError(f"Invalid type for {label}: {value!r}. Must be a boolean.")
    return value


def validate_page_size(page_size: Any) -> Optional[int]:
    """Validate a list page size (None means service default).

    Raises:
        ValueError: If page_size is not an int in [1, MAX_LIST_PAGE_SIZE]
    """
    if page_size is None:
        return None
    if isinstance(page_size, bool) or not isinstance(page_size, int):
        raise ValueError(f"Page size must be an integer: {page_size!r}.")
    if page_size < 1 or page_size > MAX_LIST_PAGE_SIZE:
        raise ValueError(f"Page size must be between 1 and {MAX_LIST_PAGE_SIZE} (inclusive).")
    return page_size


def validate_page_token(page_token: Any) -> Optional[str]:
    """Validate a list page token (None means first page)."""
    if page_token is None:
        return None
    if not isinstance(page_token, str) or not page_token:
        raise ValueError("Page token must be a non-empty string.")
    return page_token
