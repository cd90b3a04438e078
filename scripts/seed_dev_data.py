#!/usr/bin/env python3
"""Seed a development database with establishments for a test user.

Usage:
    python scripts/seed_dev_data.py [--user-id dev_user_0001] [--create-tables]

Requires LOGBOOK_DATABASE_URL (or defaults to localhost). Prints a bearer token
for the seeded user so the API and the `logbook` CLI can be exercised at once.
"""

import argparse
import asyncio
from datetime import timedelta

from sqlmodel import select

from logbook_api.core.auth import create_jwt
from logbook_api.core.database import engine, get_session_context, init_db
from logbook_api.models.establishment import Establishment
from logbook_api.models.subscription import Subscription
from logbook_api.services.establishments import create_establishment

DEV_USER_ID = "dev_user_0001"

ESTABLISHMENTS = [
    {
        "name": "Acme Machine Works",
        "address": "1200 Industrial Pkwy",
        "city": "Fresno",
        "state": "CA",
        "zip_code": "93706",
        "naics_code": "332710",
        "industry_description": "Machine Shops",
        "average_employees": 42,
    },
    {
        "name": "Acme Fabrication East",
        "address": "77 Foundry Rd",
        "city": "Dayton",
        "state": "OH",
        "zip_code": "45402-1234",
        "naics_code": "332312",
        "industry_description": "Fabricated Structural Metal Manufacturing",
        "average_employees": 18,
    },
    {
        "name": "Acme Warehouse",
        "address": "5 Depot St",
        "city": "Austin",
        "state": "TX",
        "zip_code": "78701",
        "average_employees": 0,
    },
]


async def seed(user_id: str, create_tables: bool) -> None:
    if create_tables:
        await init_db()

    async with get_session_context() as session:
        result = await session.execute(
            select(Establishment.name).where(Establishment.user_id == user_id)
        )
        existing = set(result.scalars().all())

        created = 0
        for payload in ESTABLISHMENTS:
            if payload["name"] in existing:
                continue
            establishment = await create_establishment(user_id, payload, session)
            session.add(
                Subscription(
                    establishment_id=establishment.id,
                    year=2026,
                    external_subscription_id=f"sub_dev_{created:04d}",
                )
            )
            created += 1

    await engine.dispose()
    token = create_jwt(user_id, expires_delta=timedelta(days=7))
    print(f"✅ Seeded {created} establishment(s) for '{user_id}'.")
    print(f"export LOGBOOK_TOKEN={token}")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Seed development establishments.")
    parser.add_argument("--user-id", default=DEV_USER_ID, help="Owner identity to seed for")
    parser.add_argument("--create-tables", action="store_true", help="Create tables first (dev only)")
    args = parser.parse_args()

    asyncio.run(seed(args.user_id, args.create_tables))
