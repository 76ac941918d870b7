#!/usr/bin/env python
"""
Seed data script for development and testing.

Usage:
    python scripts/seed_data.py

This script creates:
- Default admin account
- Two regular accounts

No sessions are opened: every seeded account starts with an empty refresh
token slot and has to log in.
"""

import asyncio
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from sqlalchemy import select
from authsession.database import async_session_maker, init_db
from authsession.models.account import Account, AccountRole
from authsession.schemas.account import AccountCreate
from authsession.services.account import AccountService


ACCOUNTS = [
    {
        "username": "admin",
        "email": "admin@example.com",
        "password": "AdminPass123!",
        "role": AccountRole.ADMIN,
    },
    {
        "username": "alice",
        "email": "alice@example.com",
        "password": "UserPass123!",
        "role": AccountRole.USER,
    },
    {
        "username": "bob",
        "email": "bob@example.com",
        "password": "UserPass123!",
        "role": AccountRole.USER,
    },
]


async def seed_database():
    """Seed the database with sample accounts."""
    print("Initializing database...")
    await init_db()

    async with async_session_maker() as session:
        result = await session.execute(select(Account.id).limit(1))
        if result.scalar_one_or_none():
            print("Database already seeded. Skipping...")
            return

        print("Creating accounts...")
        accounts = AccountService(session)
        for account_data in ACCOUNTS:
            await accounts.create(AccountCreate(**account_data))

        await session.commit()

    print("\nDatabase seeded successfully!")
    print(f"  - {len(ACCOUNTS)} accounts")
    print("\nDefault credentials:")
    print("  Admin: admin / AdminPass123!")
    print("  User:  alice / UserPass123!")


if __name__ == "__main__":
    asyncio.run(seed_database())
