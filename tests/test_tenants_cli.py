"""Tests for the tenant administration CLI (scripts/tenants.py)."""
import json
from unittest.mock import MagicMock

import pytest

import scripts.tenants as tenants_cli
from identity_admin.core.idtoolkit import Tenant, TenantArgs, TenantNotFoundError, TenantsPage


@pytest.fixture(autouse=True)
def cli_env(monkeypatch, tmp_path):
    monkeypatch.setenv("IDENTITY_PROJECT_ID", "mock-project-id")
    monkeypatch.setenv("IDENTITY_ACCESS_TOKEN", "test-token")
    monkeypatch.delenv("IDENTITY_TOKEN_URL", raising=False)
    monkeypatch.setattr("identity_admin.config.settings.SECRETS_DIR", str(tmp_path / "secrets"))


@pytest.fixture()
def manager(monkeypatch):
    """Replace TenantManager.from_settings with a mock manager."""
    mock = MagicMock()
    mock.__enter__.return_value = mock
    mock.__exit__.return_value = False
    monkeypatch.setattr(tenants_cli.TenantManager, "from_settings", MagicMock(return_value=mock))
    return mock


@pytest.fixture()
def audit_log(monkeypatch):
    mock = MagicMock(return_value=True)
    monkeypatch.setattr(tenants_cli.audit, "safe_log_tenant_event", mock)
    return mock


def test_no_command_prints_help(capsys):
    assert tenants_cli.main([]) == 0
    assert "usage" in capsys.readouterr().out


def test_missing_project_id_aborts(monkeypatch, manager):
    monkeypatch.delenv("IDENTITY_PROJECT_ID", raising=False)
    monkeypatch.delenv("GOOGLE_CLOUD_PROJECT", raising=False)
    with pytest.raises(SystemExit):
        tenants_cli.main(["list"])
    tenants_cli.TenantManager.from_settings.assert_not_called()


def test_get_prints_tenant(manager, capsys):
    manager.get_tenant.return_value = Tenant(tenant_id="t1", display_name="Acme")
    assert tenants_cli.main(["get", "t1"]) == 0

    manager.get_tenant.assert_called_once_with("t1")
    out = json.loads(capsys.readouterr().out)
    assert out["tenant_id"] == "t1"
    assert out["display_name"] == "Acme"


def test_get_not_found_exits_nonzero(manager, capsys):
    manager.get_tenant.side_effect = TenantNotFoundError("No tenant found", status_code=404)
    assert tenants_cli.main(["get", "missing"]) == 1
    assert "[get] Error" in capsys.readouterr().err


def test_create_logs_audit_event(manager, audit_log):
    manager.create_tenant.return_value = Tenant(tenant_id="acme-k3x9", display_name="Acme-Corp")
    assert tenants_cli.main(["--operator", "alice", "create", "--display-name", "Acme-Corp",
                             "--allow-password-sign-up"]) == 0

    manager.create_tenant.assert_called_once_with(
        TenantArgs(display_name="Acme-Corp", allow_password_sign_up=True))
    audit_log.assert_called_once_with(
        "tenant_create", "acme-k3x9",
        details={"fields": ["allowPasswordSignup", "displayName"]},
        operator="alice", project_id="mock-project-id",
    )


def test_update_passes_negated_flags(manager, audit_log):
    manager.update_tenant.return_value = Tenant(tenant_id="t1")
    assert tenants_cli.main(["update", "t1", "--no-enable-anonymous-user"]) == 0

    manager.update_tenant.assert_called_once_with("t1", TenantArgs(enable_anonymous_user=False))
    assert audit_log.call_args.kwargs["details"] == {"update_mask": ["enableAnonymousUser"]}


def test_update_failure_is_audited(manager, audit_log):
    manager.update_tenant.side_effect = ValueError("At least one parameter must be specified for update.")
    assert tenants_cli.main(["update", "t1"]) == 1
    assert audit_log.call_args.kwargs["success"] is False


def test_delete(manager, audit_log):
    assert tenants_cli.main(["delete", "t1"]) == 0
    manager.delete_tenant.assert_called_once_with("t1")
    audit_log.assert_called_once_with("tenant_delete", "t1", operator="cli", project_id="mock-project-id")


def test_list_iterates_all(manager, capsys):
    manager.list_tenants.return_value = iter([Tenant(tenant_id="A"), Tenant(tenant_id="B")])
    assert tenants_cli.main(["list", "--page-size", "10"]) == 0

    options = manager.list_tenants.call_args.args[0]
    assert options.page_size == 10
    out = json.loads(capsys.readouterr().out)
    assert [t["tenant_id"] for t in out] == ["A", "B"]


def test_list_single_page(manager, capsys):
    manager.list_tenants_page.return_value = TenantsPage(tenants=[Tenant(tenant_id="A")], next_page_token="p2")
    assert tenants_cli.main(["list", "--single-page"]) == 0

    out = json.loads(capsys.readouterr().out)
    assert out["next_page_token"] == "p2"


def test_list_invalid_page_size(manager, capsys):
    assert tenants_cli.main(["list", "--page-size", "500"]) == 1
    assert "[list] Error" in capsys.readouterr().err
