#!/usr/bin/env python3
"""
Admin Account Tool
Creates an admin account for the admin panel, or resets its password.
Run this after `alembic upgrade head`.

Usage:
    python create_admin.py <username>
"""
import asyncio
import getpass
import sys

from sqlalchemy import select

from wedding_api.database import AsyncSessionLocal, close_db
from wedding_api.models import Admin
from wedding_api.utils.auth import hash_password


async def upsert_admin(username: str, password: str) -> bool:
    """
    Create the admin or replace its password.

    Returns:
        True if a new account was created, False if an existing one was updated
    """
    async with AsyncSessionLocal() as db:
        result = await db.execute(select(Admin).where(Admin.username == username))
        admin = result.scalar_one_or_none()
        created = admin is None
        if created:
            admin = Admin(username=username, password=hash_password(password))
            db.add(admin)
        else:
            admin.password = hash_password(password)
        await db.commit()
    await close_db()
    return created


def main():
    """Main function to create or update an admin account."""
    print("=" * 60)
    print("Admin Account Tool")
    print("=" * 60)
    print()

    if len(sys.argv) != 2:
        print("Usage: python create_admin.py <username>")
        return 1

    username = sys.argv[1].strip()
    password = getpass.getpass("Enter admin password: ")
    if not password:
        print("\n❌ Error: Password cannot be empty")
        return 1

    if password != getpass.getpass("Confirm password: "):
        print("\n❌ Error: Passwords do not match")
        return 1

    try:
        created = asyncio.run(upsert_admin(username, password))
    except Exception as e:
        print(f"\n❌ Error saving admin account: {str(e)}")
        print("   Did you run `alembic upgrade head` and set DATABASE_URL?")
        return 1

    if created:
        print(f"\n✅ Admin account '{username}' created")
    else:
        print(f"\n✅ Password updated for admin '{username}'")
    return 0


if __name__ == "__main__":
    sys.exit(main())
