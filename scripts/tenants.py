"""Command-line helper for tenant administration.

This module serves as a CLI wrapper around identity_admin.core.idtoolkit.

Examples:
    python -m scripts.tenants --project-id my-project list --page-size 50
    python -m scripts.tenants create --display-name Acme-Corp --allow-password-sign-up
    python -m scripts.tenants update acme-k3x9 --no-enable-anonymous-user
"""
from __future__ import annotations
import argparse
import dataclasses
import json
import logging
import os
import sys
from pathlib import Path
from typing import Optional, Sequence

SCRIPT_DIR = Path(__file__).parent
PROJECT_ROOT = SCRIPT_DIR.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from identity_admin.config import load_settings
from identity_admin.core.idtoolkit import (
    IdentityError,
    ListTenantsOptions,
    TenantArgs,
    TenantManager,
)
from scripts import audit


def _add_tenant_flags(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--display-name")
    parser.add_argument("--allow-password-sign-up", action=argparse.BooleanOptionalAction, default=None)
    parser.add_argument("--enable-email-link-sign-in", action=argparse.BooleanOptionalAction, default=None)
    parser.add_argument("--enable-anonymous-user", action=argparse.BooleanOptionalAction, default=None)


def _tenant_args(args: argparse.Namespace) -> TenantArgs:
    return TenantArgs(
        display_name=args.display_name,
        allow_password_sign_up=args.allow_password_sign_up,
        enable_email_link_sign_in=args.enable_email_link_sign_in,
        enable_anonymous_user=args.enable_anonymous_user,
    )


def _print_json(payload) -> None:
    print(json.dumps(payload, indent=2, sort_keys=True))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Tenant administration helper")
    parser.add_argument("--project-id", default=os.environ.get("IDENTITY_PROJECT_ID"))
    parser.add_argument("--base-url", default=os.environ.get("IDENTITY_API_BASE_URL"))
    parser.add_argument("--operator", default="cli",
                        help="Operator identifier for audit logs (default: cli)")
    parser.add_argument("-v", "--verbose", action="store_true")

    sub = parser.add_subparsers(dest="cmd")

    sg = sub.add_parser("get")
    sg.add_argument("tenant_id")

    sc = sub.add_parser("create")
    _add_tenant_flags(sc)

    su = sub.add_parser("update")
    su.add_argument("tenant_id")
    _add_tenant_flags(su)

    sd = sub.add_parser("delete")
    sd.add_argument("tenant_id")

    sl = sub.add_parser("list")
    sl.add_argument("--page-size", type=int)
    sl.add_argument("--page-token")
    sl.add_argument("--single-page", action="store_true",
                    help="Print one page and its next page token instead of iterating")

    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Command-line entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.cmd:
        parser.print_help()
        return 0

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s [%(name)s] %(levelname)s %(message)s",
    )

    try:
        config = load_settings(args.project_id)
        if args.base_url:
            config.api_base_url = args.base_url.rstrip("/")
        manager = TenantManager.from_settings(config)
    except (RuntimeError, ValueError) as e:
        parser.error(str(e))

    audit_ctx = {"operator": args.operator, "project_id": config.project_id}

    with manager:
        if args.cmd == "get":
            try:
                _print_json(dataclasses.asdict(manager.get_tenant(args.tenant_id)))
            except (IdentityError, ValueError) as e:
                print(f"[get] Error: {e}", file=sys.stderr)
                return 1
        elif args.cmd == "create":
            tenant_args = _tenant_args(args)
            try:
                tenant = manager.create_tenant(tenant_args)
            except (IdentityError, ValueError) as e:
                print(f"[create] Error: {e}", file=sys.stderr)
                audit.safe_log_tenant_event(
                    "tenant_create", "", details={"error": str(e)}, success=False, **audit_ctx
                )
                return 1
            audit.safe_log_tenant_event(
                "tenant_create", tenant.tenant_id,
                details={"fields": tenant_args.update_mask()}, **audit_ctx
            )
            _print_json(dataclasses.asdict(tenant))
        elif args.cmd == "update":
            tenant_args = _tenant_args(args)
            try:
                tenant = manager.update_tenant(args.tenant_id, tenant_args)
            except (IdentityError, ValueError) as e:
                print(f"[update] Error: {e}", file=sys.stderr)
                audit.safe_log_tenant_event(
                    "tenant_update", args.tenant_id, details={"error": str(e)}, success=False, **audit_ctx
                )
                return 1
            audit.safe_log_tenant_event(
                "tenant_update", args.tenant_id,
                details={"update_mask": tenant_args.update_mask()}, **audit_ctx
            )
            _print_json(dataclasses.asdict(tenant))
        elif args.cmd == "delete":
            try:
                manager.delete_tenant(args.tenant_id)
            except (IdentityError, ValueError) as e:
                print(f"[delete] Error: {e}", file=sys.stderr)
                audit.safe_log_tenant_event(
                    "tenant_delete", args.tenant_id, details={"error": str(e)}, success=False, **audit_ctx
                )
                return 1
            audit.safe_log_tenant_event("tenant_delete", args.tenant_id, **audit_ctx)
            print(f"[delete] Tenant '{args.tenant_id}' deleted", file=sys.stderr)
        elif args.cmd == "list":
            try:
                options = ListTenantsOptions(page_size=args.page_size, page_token=args.page_token)
                if args.single_page:
                    page = manager.list_tenants_page(options)
                    _print_json({
                        "tenants": [dataclasses.asdict(t) for t in page.tenants],
                        "next_page_token": page.next_page_token,
                    })
                else:
                    _print_json([dataclasses.asdict(t) for t in manager.list_tenants(options)])
            except (IdentityError, ValueError) as e:
                print(f"[list] Error: {e}", file=sys.stderr)
                return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
