"""Operator commands that have no HTTP surface.

Usage::

    marketplace-admin create-admin --email ops@example.com --name "Ops"
    marketplace-admin release-due
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Any

from marketplace.app import configure_logging, initialize_services
from marketplace.config import get_settings
from marketplace.domain.types import UserRole


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Marketplace administration")
    parser.add_argument(
        "--db",
        type=str,
        default=None,
        help="Path to the marketplace database (defaults to DATABASE_PATH)",
    )
    commands = parser.add_subparsers(dest="command", required=True)

    create_admin = commands.add_parser(
        "create-admin", help="Create an admin user and print a token"
    )
    create_admin.add_argument("--email", required=True)
    create_admin.add_argument("--name", required=True, help="Display name")

    commands.add_parser("release-due", help="Release escrows whose review window has lapsed")
    return parser


def create_admin(services: dict[str, Any], email: str, name: str) -> str:
    """Register an admin profile and return its bearer token."""
    profile, token = services["users"].register(
        {"email": email, "role": UserRole.ADMIN, "display_name": name},
        allow_admin=True,
    )
    print(f"Created admin {profile.id} <{profile.email}>")
    return token


def main(argv: list[str] | None = None) -> None:
    args = build_parser().parse_args(argv)

    settings = get_settings()
    if args.db:
        settings = settings.model_copy(update={"database_path": Path(args.db)})
    # stdout carries only command output
    configure_logging(production=settings.production, log_file=sys.stderr, cache_loggers=False)
    services = initialize_services(settings)

    try:
        if args.command == "create-admin":
            print(create_admin(services, args.email, args.name))
        elif args.command == "release-due":
            released = services["submissions"].release_due_escrows()
            print(f"Released {len(released)} escrow account(s)")
            for escrow_id in released:
                print(f"  {escrow_id}")
    finally:
        services["db"].close()


if __name__ == "__main__":
    main()
