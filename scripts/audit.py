"""Audit logging utilities for tenant administration events."""

from __future__ import annotations
import datetime
import hashlib
import hmac
import json
import logging
import os
from pathlib import Path
from typing import Any, Literal

logger = logging.getLogger(__name__)

AUDIT_LOG_DIR = Path(os.environ.get("AUDIT_LOG_DIR", ".runtime/audit"))
AUDIT_LOG_FILE = AUDIT_LOG_DIR / "tenant-events.jsonl"
_default_secret_paths: list[Path] = [
    Path(".runtime/secrets/audit_log_signing_key"),
    Path(".runtime/audit/audit_log_signing_key"),
]


def _get_signing_key() -> bytes:
    """Get the audit signing key (env var, then key file, then demo default)."""
    key_file = os.environ.get("AUDIT_LOG_SIGNING_KEY_FILE")
    if key_file and Path(key_file).exists():
        try:
            return Path(key_file).read_text(encoding="utf-8").strip().encode("utf-8")
        except OSError:
            pass
    if "AUDIT_LOG_SIGNING_KEY" in os.environ:
        return os.environ.get("AUDIT_LOG_SIGNING_KEY", "").strip().encode("utf-8")
    for path in _default_secret_paths:
        if path.exists():
            try:
                return path.read_text(encoding="utf-8").strip().encode("utf-8")
            except OSError:
                continue
    return os.environ.get("AUDIT_LOG_SIGNING_KEY_DEMO", "demo-audit-signing-key-change-in-production").encode("utf-8")


EventType = Literal["tenant_create", "tenant_update", "tenant_delete"]


def _ensure_audit_dir() -> None:
    """Create audit directory with restricted permissions."""
    AUDIT_LOG_DIR.mkdir(parents=True, exist_ok=True)
    AUDIT_LOG_DIR.chmod(0o700)


def _sign_event(event: dict[str, Any]) -> str:
    """Generate HMAC-SHA256 signature for audit event."""
    signing_key = _get_signing_key()
    if not signing_key:
        return ""
    canonical = json.dumps(event, sort_keys=True, separators=(",", ":"))
    return hmac.new(signing_key, canonical.encode("utf-8"), hashlib.sha256).hexdigest()


def log_tenant_event(
    event_type: EventType,
    tenant_id: str,
    *,
    operator: str = "system",
    project_id: str = "",
    details: dict[str, Any] | None = None,
    success: bool = True,
) -> None:
    """Append a tenant event to the audit trail with timestamp and signature.

    Args:
        event_type: Type of tenant operation
        tenant_id: Tenant affected by the operation ("" when creation failed)
        operator: Who performed the operation
        project_id: Project that owns the tenant
        details: Additional context (changed fields, error message)
        success: Whether the operation succeeded
    """
    _ensure_audit_dir()

    event = {
        "timestamp": datetime.datetime.now(datetime.timezone.utc).isoformat(),
        "event_type": event_type,
        "project_id": project_id,
        "tenant_id": tenant_id,
        "operator": operator,
        "success": success,
        "details": details or {},
    }

    signature = _sign_event(event)
    if signature:
        event["signature"] = signature

    with AUDIT_LOG_FILE.open("a", encoding="utf-8") as f:
        f.write(json.dumps(event, ensure_ascii=False) + "\n")

    AUDIT_LOG_FILE.chmod(0o600)


def safe_log_tenant_event(event_type: EventType, tenant_id: str, **kwargs: Any) -> bool:
    """Log a tenant event, never raising.

    Audit failures are reported through logging so they cannot break the
    administrative operation that already happened.

    Returns:
        True if event was logged successfully, False if logging failed
    """
    try:
        log_tenant_event(event_type, tenant_id, **kwargs)
        return True
    except (OSError, TypeError, ValueError) as e:
        logger.warning(f"[audit] Failed to log {event_type} event for tenant '{tenant_id}': {e}")
        return False


def verify_audit_log() -> tuple[int, int]:
    """Verify all signatures in the audit log.

    Returns:
        Tuple of (total_events, valid_signatures)
    """
    if not AUDIT_LOG_FILE.exists():
        return 0, 0

    total = 0
    valid = 0

    with AUDIT_LOG_FILE.open("r", encoding="utf-8") as f:
        for line in f:
            if not line.strip():
                continue
            total += 1
            try:
                event = json.loads(line)
            except json.JSONDecodeError:
                continue
            stored_sig = event.pop("signature", "")
            if not stored_sig:
                continue
            if hmac.compare_digest(stored_sig, _sign_event(event)):
                valid += 1

    return total, valid


if __name__ == "__main__":
    import sys
    total, valid = verify_audit_log()
    print(f"Audit log: {valid}/{total} events with valid signatures")
    sys.exit(0 if total == valid else 1)
