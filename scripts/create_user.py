"""Provision a user account.

Self-service registration is not exposed over HTTP; accounts are created
here through the same fastapi-users manager the API uses, so passwords are
hashed identically.

Usage:
  uv run scripts/create_user.py --email someone@example.com
"""

from __future__ import annotations

import argparse
import asyncio
import getpass
import sys
from pathlib import Path

# Ensure project root is on sys.path so `app` package imports resolve
sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from fastapi_users.exceptions import InvalidPasswordException, UserAlreadyExists
from fastapi_users_db_sqlalchemy import SQLAlchemyUserDatabase

from app.core.db.base import async_session_maker
from app.core.db.schemas.auth import User
from app.modules.auth import UserCreate, UserManager


async def create_user(email: str, password: str, superuser: bool = False) -> int:
    async with async_session_maker() as session:
        manager = UserManager(SQLAlchemyUserDatabase(session, User))
        try:
            user = await manager.create(
                UserCreate(email=email, password=password, is_superuser=superuser)
            )
        except UserAlreadyExists:
            print(f"User {email} already exists", file=sys.stderr)
            return 1
        except InvalidPasswordException as e:
            print(f"Invalid password: {e.reason}", file=sys.stderr)
            return 1
        print(f"Created user {user.email} (id={user.id})")
        return 0


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Create a flashcards user")
    parser.add_argument("--email", required=True)
    parser.add_argument("--password", help="Prompted for when omitted")
    parser.add_argument("--superuser", action="store_true")
    args = parser.parse_args(argv)

    password = args.password or getpass.getpass("Password: ")
    if not password:
        print("Password must not be empty", file=sys.stderr)
        return 2
    return asyncio.run(create_user(args.email, password, args.superuser))


if __name__ == "__main__":
    raise SystemExit(main())
