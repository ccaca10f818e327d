#!/usr/bin/env python3
"""
Database migration script for the loyalty service
Runs the SQL migration file using asyncpg
"""
import asyncio
import asyncpg
import sys

from loyalty.config import settings
from loyalty.db import MIGRATIONS_FILE

async def run_migration():
    """Run the database migration"""
    db_dsn = settings.DB_DSN

    if not db_dsn:
        print("[ERROR] DB_DSN not found in environment variables")
        return False

    print("[INFO] Connecting to database...")

    try:
        conn = await asyncpg.connect(db_dsn)
        print("[OK] Database connection successful")

        try:
            print(f"\n[INFO] Reading migration file: {MIGRATIONS_FILE}")
            migration_sql = MIGRATIONS_FILE.read_text(encoding='utf-8')

            print("\n[INFO] Running migration...")
            await conn.execute(migration_sql)
            print("[OK] Migration completed successfully!")

            print("\n[INFO] Verifying schema...")
            tables = await conn.fetch("""
                SELECT table_name
                FROM information_schema.tables
                WHERE table_schema = current_schema()
                  AND table_name IN ('merchants', 'customers', 'transactions')
                ORDER BY table_name;
            """)

            print("\n[OK] Tables present:")
            for table in tables:
                print(f"     - {table['table_name']}")
        finally:
            await conn.close()

        print("\n[NEXT] Seed demo data with: python seed.py")
        print("       Start the service with: python run.py")

        return True

    except asyncpg.exceptions.InvalidPasswordError:
        print("[ERROR] Invalid database password")
        return False
    except asyncpg.exceptions.InvalidCatalogNameError:
        print("[ERROR] Database named in DB_DSN does not exist")
        return False
    except (OSError, asyncpg.PostgresError) as e:
        print(f"[ERROR] {e}")
        return False

if __name__ == "__main__":
    sys.exit(0 if asyncio.run(run_migration()) else 1)
