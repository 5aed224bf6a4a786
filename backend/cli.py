#!/usr/bin/env python3
"""
Atelier Catalog management CLI.

    python cli.py init-db
    python cli.py create-user --name Admin --email admin@example.com --password secret --role admin
    python cli.py serve
"""

import argparse
import asyncio
import os
import sys

sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))


class Colors:
    """ANSI colors for terminal"""

    RESET = "\033[0m"
    RED = "\033[91m"
    GREEN = "\033[92m"
    BLUE = "\033[94m"


def info(msg):
    print(f"{Colors.BLUE}[INFO]{Colors.RESET} {msg}")


def success(msg):
    print(f"{Colors.GREEN}[OK]{Colors.RESET} {msg}")


def error(msg):
    print(f"{Colors.RED}[ERROR]{Colors.RESET} {msg}", file=sys.stderr)


async def _init_db() -> None:
    from db.database import init_db

    await init_db()


async def _create_user(name: str, email: str, password: str, roles: list[str]) -> int:
    from sqlalchemy import select

    from db.database import AsyncSessionLocal, init_db
    from models import Role
    from services.auth import hash_password
    from services.repository import UserRepository

    await init_db()
    async with AsyncSessionLocal() as db:
        repo = UserRepository(db)
        email = email.strip().lower()
        if await repo.email_taken(email):
            raise ValueError(f"The email {email} has already been taken.")

        user = await repo.create(name=name, email=email, password=hash_password(password))
        user = await repo.get_or_fail(user.id, load=UserRepository.WITH_ROLES)
        for role_name in roles:
            result = await db.execute(select(Role).where(Role.name == role_name))
            role = result.scalar_one_or_none()
            if role is None:
                role = Role(name=role_name)
                db.add(role)
            user.roles.append(role)

        await db.commit()
        return user.id


def cmd_init_db(args) -> int:
    info("Creating tables...")
    asyncio.run(_init_db())
    success("Database ready")
    return 0


def cmd_create_user(args) -> int:
    if len(args.password) < 6:
        error("The password field must be at least 6 characters.")
        return 1
    try:
        user_id = asyncio.run(_create_user(args.name, args.email, args.password, args.role))
    except ValueError as exc:
        error(str(exc))
        return 1
    success(f"Created user {user_id} <{args.email}>")
    return 0


def cmd_serve(args) -> int:
    import uvicorn

    from config import get_settings

    settings = get_settings()
    uvicorn.run(
        "main:app",
        host=args.host or settings.HOST,
        port=args.port or settings.PORT,
        reload=args.reload,
    )
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="atelier-catalog", description="Atelier Catalog management commands"
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    init_db = subparsers.add_parser("init-db", help="Create database tables")
    init_db.set_defaults(func=cmd_init_db)

    create_user = subparsers.add_parser("create-user", help="Create a user who can log in")
    create_user.add_argument("--name", required=True)
    create_user.add_argument("--email", required=True)
    create_user.add_argument("--password", required=True)
    create_user.add_argument(
        "--role", action="append", default=[], help="Role name (repeatable, created if missing)"
    )
    create_user.set_defaults(func=cmd_create_user)

    serve = subparsers.add_parser("serve", help="Run the API with uvicorn")
    serve.add_argument("--host")
    serve.add_argument("--port", type=int)
    serve.add_argument("--reload", action="store_true")
    serve.set_defaults(func=cmd_serve)

    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
