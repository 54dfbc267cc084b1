"""CLI for learner and API key management.

Usage::

    uv run python -m scripts.manage_users <command> [options]

Commands:
    create-user       Create a new user
    create-key        Generate an API key for a user
    list-users        List all users
    revoke-key        Revoke an API key by prefix
    deactivate-user   Deactivate a user (all keys become invalid)
"""

from __future__ import annotations

import argparse
import sys
from collections.abc import Callable
from datetime import UTC, datetime, timedelta

from sqlalchemy import create_engine, func, select
from sqlalchemy.orm import Session

from lesson_assistant.auth.keys import generate_api_key
from lesson_assistant.config import settings
from lesson_assistant.storage.orm import APIKey, User


def get_sync_session() -> Session:
    """Create sync session for CLI operations.

    psycopg v3 serves both the async app and this sync engine from the
    same database URL.
    """
    engine = create_engine(settings.database_url)
    return Session(engine)


def _find_user(session: Session, email: str) -> User:
    user = session.execute(
        select(User).where(User.email == email)
    ).scalar_one_or_none()
    if user is None:
        print(f"User not found: {email}", file=sys.stderr)
        sys.exit(1)
    return user


def create_user(args: argparse.Namespace) -> None:
    """Create a new user."""
    with get_sync_session() as session:
        existing = session.execute(
            select(User).where(User.email == args.email)
        ).scalar_one_or_none()
        if existing is not None:
            print(f"User already exists: {args.email}", file=sys.stderr)
            sys.exit(1)

        user = User(name=args.name, email=args.email)
        session.add(user)
        session.commit()
        print(f"User created: {args.name} <{args.email}> (id: {user.id})")


def create_key(args: argparse.Namespace) -> None:
    """Generate an API key for a user."""
    with get_sync_session() as session:
        user = _find_user(session, args.email)

        full_key, key_hash, key_prefix = generate_api_key(args.environment)
        expires_at = (
            datetime.now(UTC) + timedelta(days=args.expires_days)
            if args.expires_days
            else None
        )
        session.add(
            APIKey(
                user_id=user.id,
                key_hash=key_hash,
                key_prefix=key_prefix,
                label=args.label,
                expires_at=expires_at,
            )
        )
        session.commit()

        print(f"API key created for {args.email}:")
        print(f"   Key:     {full_key}")
        print(f"   Prefix:  {key_prefix}")
        print(f"   Label:   {args.label}")
        if expires_at is not None:
            print(f"   Expires: {expires_at.isoformat(timespec='seconds')}")
        print()
        print("Save this key now -- it cannot be retrieved later!")


def list_users(_args: argparse.Namespace) -> None:
    """List all users with active key counts."""
    with get_sync_session() as session:
        stmt = (
            select(
                User.name,
                User.email,
                User.is_active,
                func.count(APIKey.id).label("key_count"),
            )
            .outerjoin(
                APIKey, (User.id == APIKey.user_id) & APIKey.is_active.is_(True)
            )
            .group_by(User.id)
            .order_by(User.name)
        )
        rows = session.execute(stmt).all()

        if not rows:
            print("No users found.")
            return

        print("Users:")
        for i, row in enumerate(rows, 1):
            status = "active" if row.is_active else "inactive"
            keys = row.key_count
            print(
                f"  {i}. {row.name} <{row.email}> "
                f"({status}, {keys} key{'s' if keys != 1 else ''})"
            )


def revoke_key(args: argparse.Namespace) -> None:
    """Revoke an API key by its prefix."""
    with get_sync_session() as session:
        key = session.execute(
            select(APIKey).where(APIKey.key_prefix == args.prefix)
        ).scalar_one_or_none()
        if key is None:
            print(f"Key not found: {args.prefix}", file=sys.stderr)
            sys.exit(1)

        if not key.is_active:
            print(f"Key already revoked: {args.prefix}", file=sys.stderr)
            sys.exit(1)

        key.is_active = False
        session.commit()
        print(f"Key revoked: {args.prefix}")


def deactivate_user(args: argparse.Namespace) -> None:
    """Deactivate a user (all keys become invalid)."""
    with get_sync_session() as session:
        user = _find_user(session, args.email)
        if not user.is_active:
            print(f"User already inactive: {args.email}", file=sys.stderr)
            sys.exit(1)

        user.is_active = False
        session.commit()
        print(f"User deactivated: {args.email}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="User management CLI")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("create-user", help="Create a new user")
    p.add_argument("--name", required=True, help="Display name")
    p.add_argument("--email", required=True, help="Unique email address")

    p = sub.add_parser("create-key", help="Generate API key for a user")
    p.add_argument("--email", required=True, help="User email")
    p.add_argument("--label", default="default", help="Key label")
    p.add_argument("--environment", default="live", help="live or test")
    p.add_argument(
        "--expires-days", type=int, default=None, help="Expire after N days"
    )

    sub.add_parser("list-users", help="List all users")

    p = sub.add_parser("revoke-key", help="Revoke an API key")
    p.add_argument("--prefix", required=True, help="Key prefix to revoke")

    p = sub.add_parser("deactivate-user", help="Deactivate a user")
    p.add_argument("--email", required=True, help="User email")

    return parser


COMMANDS: dict[str, Callable[[argparse.Namespace], None]] = {
    "create-user": create_user,
    "create-key": create_key,
    "list-users": list_users,
    "revoke-key": revoke_key,
    "deactivate-user": deactivate_user,
}


def main() -> None:
    """Parse arguments and dispatch to command handler."""
    args = build_parser().parse_args()
    COMMANDS[args.command](args)


if __name__ == "__main__":
    main()
