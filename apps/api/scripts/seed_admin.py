"""
Seed Admin User

Creates a login identity and the Admin row that grants it the admin role.
Run once per administrator.

Usage:
    cd apps/api
    SEED_ADMIN_PASSWORD='...' python scripts/seed_admin.py admin@example.org "Nombre Apellido"

The password is read from SEED_ADMIN_PASSWORD, or prompted for when unset.
"""

import argparse
import asyncio
import getpass
import os
import sys
from pathlib import Path

# Add the src directory to the path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from portal.core.database import async_session_maker, close_db
from portal.modules.admins.repository import AdminRepository
from portal.modules.credentials import CredentialStore, EmailAlreadyRegisteredError
from portal.modules.credentials.repository import IdentityRepository
from portal.modules.credentials.service import normalize_email


async def seed_admin(email: str, full_name: str | None, password: str) -> None:
    """Create the admin identity and row if they don't exist."""
    email = normalize_email(email)
    store = CredentialStore()

    try:
        identity = await store.create_identity(email, password)
        print(f"Identity created: {identity.id}")
    except EmailAlreadyRegisteredError:
        async with async_session_maker() as db:
            identity = await IdentityRepository.get_by_email(db, email)
        print(f"Identity already exists: {identity.id}")

    async with async_session_maker() as db:
        existing = await AdminRepository.get_by_credential_id(db, identity.id)
        if existing:
            print(f"Admin already exists for {email}")
            print(f"  ID: {existing.id}")
            return

        admin = await AdminRepository.create(db, credential_id=identity.id, full_name=full_name)
        await db.commit()

        print("Admin created successfully!")
        print(f"  Email: {email}")
        print(f"  Name: {full_name or '-'}")
        print(f"  ID: {admin.id}")


def main() -> None:
    parser = argparse.ArgumentParser(description="Create a portal administrator")
    parser.add_argument("email")
    parser.add_argument("full_name", nargs="?", default=None)
    args = parser.parse_args()

    password = os.environ.get("SEED_ADMIN_PASSWORD") or getpass.getpass("Password: ")
    if not password:
        parser.error("a password is required")

    async def run() -> None:
        try:
            await seed_admin(args.email, args.full_name, password)
        finally:
            await close_db()

    asyncio.run(run())


if __name__ == "__main__":
    main()
