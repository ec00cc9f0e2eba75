"""Settings loader with environment variable and Docker secrets integration."""
from __future__ import annotations
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from identity_admin.core.idtoolkit.tenants import ID_TOOLKIT_URL

logger = logging.getLogger(__name__)

SECRETS_DIR = "/run/secrets"


def _load_secret_from_file(secret_name: str, env_var: str | None = None) -> str | None:
    """
    Load secret from /run/secrets (Docker secrets pattern).

    Priority:
    1. /run/secrets/{secret_name} (Docker secrets mount)
    2. Environment variable (fallback)

    Args:
        secret_name: Name of the secret file in /run/secrets
        env_var: Optional environment variable name to check as fallback

    Returns:
        Secret value or None if not found
    """
    secret_file = Path(SECRETS_DIR) / secret_name

    if secret_file.exists() and secret_file.is_file():
        try:
            secret_value = secret_file.read_text().strip()
            if secret_value:
                logger.debug(f"[settings] Loaded {secret_name} from {SECRETS_DIR}")
                return secret_value
        except OSError as e:
            logger.warning(f"[settings] Failed to read {SECRETS_DIR}/{secret_name}: {e}")

    if env_var:
        secret_value = os.getenv(env_var)
        if secret_value:
            logger.debug(f"[settings] Loaded {env_var} from environment (fallback)")
            return secret_value

    return None


@dataclass
class AdminConfig:
    """Identity Toolkit admin configuration container."""
    project_id: str
    api_base_url: str = ID_TOOLKIT_URL

    # Static bearer token (used when token_url is empty)
    access_token: str = ""

    # OAuth2 client credentials
    token_url: str = ""
    client_id: str = ""
    client_secret: str = ""
    scope: str = ""

    request_timeout: float = 10.0

    @property
    def access_token_resolved(self) -> str:
        """Get the bearer token with fallback.

        Priority:
        1. Configured value in access_token
        2. Docker secrets: /run/secrets/identity_access_token
        3. Environment variable: IDENTITY_ACCESS_TOKEN

        Raises:
            ValueError: If no token is available
        """
        if self.access_token:
            return self.access_token
        token = _load_secret_from_file("identity_access_token", "IDENTITY_ACCESS_TOKEN")
        if token:
            return token
        raise ValueError(
            "IDENTITY_ACCESS_TOKEN not found. Provide it via Docker secrets or environment "
            "variable, or configure IDENTITY_TOKEN_URL for client credentials."
        )

    @property
    def client_secret_resolved(self) -> str:
        """Get the OAuth2 client secret (config, then /run/secrets, then env).

        Raises:
            ValueError: If no secret is available
        """
        if self.client_secret:
            return self.client_secret
        for secret_name in ["identity_client_secret", "identity-client-secret"]:
            secret = _load_secret_from_file(secret_name)
            if secret:
                return secret
        secret = os.environ.get("IDENTITY_CLIENT_SECRET")
        if secret:
            return secret
        raise ValueError(
            "IDENTITY_CLIENT_SECRET not found. Provide it via Docker secrets or environment variable."
        )


def _get_float(var_name: str, default: float) -> float:
    raw = os.environ.get(var_name)
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError:
        raise RuntimeError(f"Environment variable {var_name} must be a number, got {raw!r}.")
    if value <= 0:
        raise RuntimeError(f"Environment variable {var_name} must be positive, got {raw!r}.")
    return value


def load_settings(project_id: Optional[str] = None) -> AdminConfig:
    """Load admin settings from environment and /run/secrets.

    Args:
        project_id: Explicit project ID (overrides the environment)

    Raises:
        RuntimeError: If no project ID is configured or a value is malformed
    """
    project_id = project_id or os.environ.get("IDENTITY_PROJECT_ID") or os.environ.get("GOOGLE_CLOUD_PROJECT")
    if not project_id:
        raise RuntimeError("Environment variable IDENTITY_PROJECT_ID is required.")

    return AdminConfig(
        project_id=project_id,
        api_base_url=os.environ.get("IDENTITY_API_BASE_URL", ID_TOOLKIT_URL).rstrip("/"),
        access_token=_load_secret_from_file("identity_access_token", "IDENTITY_ACCESS_TOKEN") or "",
        token_url=os.environ.get("IDENTITY_TOKEN_URL", ""),
        client_id=os.environ.get("IDENTITY_CLIENT_ID", ""),
        client_secret=_load_secret_from_file("identity_client_secret", "IDENTITY_CLIENT_SECRET") or "",
        scope=os.environ.get("IDENTITY_SCOPE", ""),
        request_timeout=_get_float("IDENTITY_REQUEST_TIMEOUT", 10.0),
    )
