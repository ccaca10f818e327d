#!/usr/bin/env python3
"""
Database Setup Diagnostic Script
Run this to check if the database is properly configured for the loyalty service.
"""

import asyncio
import asyncpg
import sys
from loyalty.config import settings

REQUIRED_TABLES = {'merchants', 'customers', 'transactions'}
REQUIRED_INDEXES = {'uq_merchants_phone_live', 'uq_customers_phone'}


async def check_database_setup():
    """Check if database is properly set up with all required components"""

    print("=" * 70)
    print("Loyalty Service Database Diagnostic")
    print("=" * 70)
    print()

    print("1. Checking Environment Variables...")
    print(f"   ✓ DB_DSN: {'Set' if settings.DB_DSN else 'NOT SET ❌'}")
    print(f"   ✓ ENVIRONMENT: {settings.ENVIRONMENT}")
    print()

    try:
        print("2. Testing Database Connection...")
        conn = await asyncpg.connect(dsn=settings.DB_DSN)
        print("   ✓ Successfully connected to database")
        print()

        try:
            # gen_random_uuid() comes from pgcrypto on PostgreSQL < 13
            print("3. Checking pgcrypto Extension...")
            pgcrypto_exists = await conn.fetchval("""
                SELECT EXISTS(
                    SELECT 1 FROM pg_extension WHERE extname = 'pgcrypto'
                )
            """)

            if pgcrypto_exists:
                print("   ✓ pgcrypto extension is installed")
            else:
                print("   ❌ pgcrypto extension is NOT installed")
                print("      Run: python run_migration.py")
                return False
            print()

            print("4. Checking Database Tables...")
            tables = await conn.fetch("""
                SELECT table_name
                FROM information_schema.tables
                WHERE table_schema = current_schema()
                ORDER BY table_name
            """)
            existing_tables = {row['table_name'] for row in tables}

            for table in sorted(REQUIRED_TABLES):
                if table in existing_tables:
                    print(f"   ✓ Table '{table}' exists")
                else:
                    print(f"   ❌ Table '{table}' does NOT exist")

            if not REQUIRED_TABLES.issubset(existing_tables):
                print("      Run migrations to create missing tables")
                return False
            print()

            print("5. Checking Phone Number Unique Indexes...")
            indexes = await conn.fetch("""
                SELECT indexname
                FROM pg_indexes
                WHERE schemaname = current_schema()
            """)
            existing_indexes = {row['indexname'] for row in indexes}

            for index in sorted(REQUIRED_INDEXES):
                if index in existing_indexes:
                    print(f"   ✓ Index '{index}' exists")
                else:
                    print(f"   ❌ Index '{index}' does NOT exist")

            if not REQUIRED_INDEXES.issubset(existing_indexes):
                print("      Phone uniqueness is not enforced; run migrations")
                return False
            print()
        finally:
            await conn.close()

        print("=" * 70)
        print("✅ All checks passed! Database is properly configured.")
        print("=" * 70)
        return True

    except asyncpg.exceptions.InvalidPasswordError:
        print("❌ Database authentication failed. Check your DB_DSN credentials.")
        return False
    except asyncpg.exceptions.InvalidCatalogNameError:
        print("❌ Database does not exist. Check your DB_DSN.")
        return False
    except (OSError, asyncpg.PostgresError) as e:
        print(f"❌ Unexpected error: {e}")
        return False


if __name__ == "__main__":
    success = asyncio.run(check_database_setup())
    sys.exit(0 if success else 1)
