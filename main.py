#!/usr/bin/env python3
"""
tokengate -- credential login and stateless bearer tokens.

Usage:
  python main.py add-user alice@example.com hunter2 --display-name alice
  python main.py login alice@example.com hunter2
  python main.py login alice@example.com hunter2 --json
  python main.py verify <token>

Environment variables (see core/config.py):
  SECRET_KEY            Signing secret, at least 32 characters. Required unless DEBUG=true.
  JWT_ALGORITHM         HS256 (default), HS384 or HS512.
  TOKEN_EXPIRE_SECONDS  Token lifetime in seconds (default 3600).
  SECRET_SCHEME         "plain" (default) or "bcrypt" -- stored form of user secrets.
  DATABASE_URL          SQLAlchemy URL of the user store.
"""

import argparse
import json
import logging
import sys
from dataclasses import asdict

from sqlalchemy.exc import IntegrityError

from auth.errors import AuthError
from auth.passwords import stored_form
from auth.service import AuthService
from auth.store import UserStore
from core.config import ConfigurationError, Settings, get_settings


def _add_user(args: argparse.Namespace, settings: Settings, store: UserStore) -> int:
    try:
        record = store.create_user(
            args.identifier,
            stored_form(settings.secret_scheme, args.secret),
            display_name=args.display_name,
        )
    except IntegrityError:
        print(f"  [!] User '{args.identifier}' already exists.")
        return 1
    except ValueError as exc:
        print(f"  [!] Cannot store secret: {exc}")
        return 1
    print(f"  Created user '{record.identifier}' (subject {record.subject_id})")
    return 0


def _login(args: argparse.Namespace, settings: Settings, store: UserStore) -> int:
    service = AuthService.from_settings(settings, store)
    try:
        issued = service.login(args.identifier, args.secret)
    except AuthError as exc:
        print(f"  [!] Login failed: {exc.code}")
        return 1
    if args.json:
        print(json.dumps(asdict(issued), indent=2))
    else:
        print(issued.access_token)
    return 0


def _verify(args: argparse.Namespace, settings: Settings, store: UserStore) -> int:
    service = AuthService.from_settings(settings, store)
    try:
        identity = service.authenticate(args.token)
    except AuthError as exc:
        print(f"  [!] Token rejected: {exc.code}")
        return 1
    print(json.dumps(asdict(identity), indent=2))
    return 0


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tokengate",
        description="Credential login and stateless bearer tokens.",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging.")
    sub = parser.add_subparsers(dest="command", required=True)

    add = sub.add_parser("add-user", help="Create a user in the user store.")
    add.add_argument("identifier")
    add.add_argument("secret")
    add.add_argument("--display-name", default=None)
    add.set_defaults(func=_add_user)

    login = sub.add_parser("login", help="Check credentials and print an access token.")
    login.add_argument("identifier")
    login.add_argument("secret")
    login.add_argument("--json", action="store_true", help="Print the full login result as JSON.")
    login.set_defaults(func=_login)

    verify = sub.add_parser("verify", help="Verify a token and print the identity it carries.")
    verify.add_argument("token")
    verify.set_defaults(func=_verify)
    return parser


def main(argv: list[str] | None = None, settings: Settings | None = None) -> int:
    args = _build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)-5s %(name)s %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    try:
        settings = settings or get_settings()
        store = UserStore(settings.database_url)
    except ValueError as exc:  # pydantic ValidationError is a ValueError
        print(f"  [!] Configuration error: {exc}")
        return 2
    try:
        return args.func(args, settings, store)
    except ConfigurationError as exc:
        print(f"  [!] Configuration error: {exc}")
        return 2
    finally:
        store.close()


if __name__ == "__main__":
    sys.exit(main())
