#!/usr/bin/env python3
"""
Seed the database with a demo merchant.

Any merchant previously seeded under the same name is soft-deleted first so
the seed can be re-run without phone number conflicts.
"""
import asyncio
import asyncpg
import sys

from loyalty.config import settings
from loyalty.models.merchant import MerchantCreate
from loyalty.services.merchant_service import MerchantService
from loyalty.store import PostgresLoyaltyStore

DEMO_MERCHANT = {
    "name": "Test Merchant",
    "address": "123 Test Street, Test City, TS 12345",
    "phoneNumber": "1234567890",
    "pointsPerVisit": 10,
    "pointsPerDollar": 1,
    "welcomeBonus": 50,
    "isActive": True,
}


async def seed():
    conn = await asyncpg.connect(dsn=settings.DB_DSN)
    try:
        async with conn.transaction():
            retired = await conn.execute("""
                UPDATE merchants
                SET deleted_at = NOW(), is_active = FALSE, updated_at = NOW()
                WHERE name = $1 AND deleted_at IS NULL
            """, DEMO_MERCHANT["name"])
            print(f"[INFO] Retired previous seed merchants: {retired}")

            service = MerchantService(PostgresLoyaltyStore(conn))
            merchant = await service.create_merchant(MerchantCreate.model_validate(DEMO_MERCHANT))
    finally:
        await conn.close()

    print(f"[OK] Created merchant with ID: {merchant.id}")
    print(merchant.model_dump_json(by_alias=True, indent=2))
    return True


if __name__ == "__main__":
    sys.exit(0 if asyncio.run(seed()) else 1)
