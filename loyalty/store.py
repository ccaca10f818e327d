"""
Persistence gateway for merchants, customers and the points ledger.

``LoyaltyStore`` is the contract the lifecycle services depend on. Rows are
plain dicts keyed by snake_case column name. ``PostgresLoyaltyStore`` is the
asyncpg implementation used by the API; it relies on the unique indexes in
``models.sql`` for phone number uniqueness.
"""
from abc import ABC, abstractmethod
from typing import Any, AsyncContextManager, Dict, List, Optional, Tuple
from uuid import UUID
import logging

import asyncpg
from asyncpg import Connection

from .models.customer import CustomerFilters
from .models.merchant import MerchantFilters

logger = logging.getLogger(__name__)

Row = Dict[str, Any]

MERCHANT_COLUMNS = (
    "id", "name", "address", "phone_number", "points_per_visit",
    "points_per_dollar", "welcome_bonus", "is_active",
    "created_at", "updated_at", "deleted_at",
)
CUSTOMER_COLUMNS = (
    "id", "phone_number", "name", "total_points", "last_check_in",
    "merchant_id", "created_at", "updated_at", "deleted_at",
)
TRANSACTION_COLUMNS = (
    "id", "merchant_id", "customer_id", "date_time", "points_change",
    "activity_type", "notes", "purchase_amount", "reward_id",
)

MERCHANT_WRITABLE = frozenset({
    "name", "address", "phone_number", "points_per_visit",
    "points_per_dollar", "welcome_bonus", "is_active",
})
CUSTOMER_WRITABLE = frozenset({
    "phone_number", "name", "total_points", "last_check_in", "merchant_id",
})
TRANSACTION_WRITABLE = frozenset({
    "merchant_id", "customer_id", "points_change", "activity_type",
    "notes", "purchase_amount", "reward_id",
})


class DuplicatePhoneNumber(Exception):
    """Raised when a write collides with a phone number unique index"""

    def __init__(self, table: str, phone_number: Optional[str] = None):
        self.table = table
        self.phone_number = phone_number
        super().__init__(f"Duplicate phone number in {table}")


class LoyaltyStore(ABC):
    """Contract for the relational store behind the lifecycle services"""

    @abstractmethod
    def transaction(self) -> AsyncContextManager:
        """All-or-nothing unit of work; exceptions roll back every write"""

    # Merchants

    @abstractmethod
    async def get_merchant(self, merchant_id: UUID) -> Optional[Row]:
        """Merchant by id, soft-deleted rows included"""

    @abstractmethod
    async def get_merchant_by_phone(self, phone_number: str) -> Optional[Row]:
        """Live (non-deleted) merchant holding the phone number"""

    @abstractmethod
    async def insert_merchant(self, values: Row) -> Row:
        pass

    @abstractmethod
    async def update_merchant(self, merchant_id: UUID, values: Row) -> Row:
        pass

    @abstractmethod
    async def soft_delete_merchant(self, merchant_id: UUID) -> Row:
        """Set deleted_at and clear is_active"""

    @abstractmethod
    async def list_merchants(
        self, filters: MerchantFilters, skip: int, limit: int
    ) -> Tuple[List[Row], int]:
        """Live merchants matching filters, newest first, plus the total match count"""

    # Customers

    @abstractmethod
    async def get_customer(self, customer_id: UUID) -> Optional[Row]:
        pass

    @abstractmethod
    async def get_customer_by_phone(self, phone_number: str, for_update: bool = False) -> Optional[Row]:
        """Customer by phone, soft-deleted rows included"""

    @abstractmethod
    async def insert_customer(self, values: Row) -> Row:
        pass

    @abstractmethod
    async def update_customer(self, customer_id: UUID, values: Row) -> Row:
        pass

    @abstractmethod
    async def add_customer_points(
        self, customer_id: UUID, points: int, name: Optional[str] = None
    ) -> Row:
        """Increment points, stamp last_check_in and fill name only if empty"""

    @abstractmethod
    async def soft_delete_customer(self, customer_id: UUID) -> Row:
        pass

    @abstractmethod
    async def list_customers(
        self, filters: CustomerFilters, skip: int, limit: int
    ) -> Tuple[List[Row], int]:
        pass

    # Ledger

    @abstractmethod
    async def insert_transaction(self, values: Row) -> Row:
        pass

    @abstractmethod
    async def recent_transactions(self, customer_id: UUID, limit: int) -> List[Row]:
        """Newest ledger entries for a customer"""


def like_pattern(value: str) -> str:
    """Substring pattern for LIKE/ILIKE with wildcards in the input escaped"""
    escaped = value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def _check_columns(values: Row, allowed: frozenset) -> None:
    unknown = set(values) - allowed
    if unknown:
        raise ValueError(f"Unknown columns: {sorted(unknown)}")


class PostgresLoyaltyStore(LoyaltyStore):
    """asyncpg implementation bound to a single pooled connection"""

    def __init__(self, conn: Connection):
        self.conn = conn

    def transaction(self):
        return self.conn.transaction()

    async def _fetch_one(self, query: str, *params) -> Optional[Row]:
        row = await self.conn.fetchrow(query, *params)
        return dict(row) if row else None

    async def _write(self, table: str, query: str, *params) -> Row:
        try:
            row = await self.conn.fetchrow(query, *params)
        except asyncpg.UniqueViolationError as e:
            logger.warning(f"Unique violation on {table}: {e.constraint_name}")
            raise DuplicatePhoneNumber(table) from e
        if row is None:
            raise LookupError(f"No {table} row affected")
        return dict(row)

    async def _insert(self, table: str, columns: tuple, values: Row) -> Row:
        names = list(values)
        placeholders = ", ".join(f"${i}" for i in range(1, len(names) + 1))
        query = f"""
            INSERT INTO {table} ({', '.join(names)})
            VALUES ({placeholders})
            RETURNING {', '.join(columns)}
        """
        return await self._write(table, query, *values.values())

    async def _update(self, table: str, columns: tuple, row_id: UUID, values: Row) -> Row:
        update_fields = []
        params = []
        param_idx = 1

        for name, value in values.items():
            update_fields.append(f"{name} = ${param_idx}")
            params.append(value)
            param_idx += 1

        update_fields.append("updated_at = NOW()")
        params.append(row_id)

        query = f"""
            UPDATE {table}
            SET {', '.join(update_fields)}
            WHERE id = ${param_idx}
            RETURNING {', '.join(columns)}
        """
        return await self._write(table, query, *params)

    async def _page(
        self, table: str, columns: tuple, conditions: List[str], params: list, skip: int, limit: int
    ) -> Tuple[List[Row], int]:
        where = f"WHERE {' AND '.join(conditions)}" if conditions else ""

        total = await self.conn.fetchval(f"SELECT COUNT(*) FROM {table} {where}", *params)

        rows = await self.conn.fetch(f"""
            SELECT {', '.join(columns)}
            FROM {table}
            {where}
            ORDER BY created_at DESC
            OFFSET ${len(params) + 1}
            LIMIT ${len(params) + 2}
        """, *params, skip, limit)

        return [dict(row) for row in rows], total

    # Merchants

    async def get_merchant(self, merchant_id: UUID) -> Optional[Row]:
        return await self._fetch_one(
            f"SELECT {', '.join(MERCHANT_COLUMNS)} FROM merchants WHERE id = $1",
            merchant_id
        )

    async def get_merchant_by_phone(self, phone_number: str) -> Optional[Row]:
        return await self._fetch_one(
            f"""
            SELECT {', '.join(MERCHANT_COLUMNS)}
            FROM merchants
            WHERE phone_number = $1 AND deleted_at IS NULL
            """,
            phone_number
        )

    async def insert_merchant(self, values: Row) -> Row:
        _check_columns(values, MERCHANT_WRITABLE)
        return await self._insert("merchants", MERCHANT_COLUMNS, values)

    async def update_merchant(self, merchant_id: UUID, values: Row) -> Row:
        _check_columns(values, MERCHANT_WRITABLE)
        return await self._update("merchants", MERCHANT_COLUMNS, merchant_id, values)

    async def soft_delete_merchant(self, merchant_id: UUID) -> Row:
        return await self._write("merchants", f"""
            UPDATE merchants
            SET deleted_at = NOW(), is_active = FALSE, updated_at = NOW()
            WHERE id = $1
            RETURNING {', '.join(MERCHANT_COLUMNS)}
        """, merchant_id)

    async def list_merchants(
        self, filters: MerchantFilters, skip: int, limit: int
    ) -> Tuple[List[Row], int]:
        conditions = ["deleted_at IS NULL"]
        params: list = []

        if filters.name:
            params.append(like_pattern(filters.name))
            conditions.append(f"name ILIKE ${len(params)}")
        if filters.phone_number:
            params.append(like_pattern(filters.phone_number))
            conditions.append(f"phone_number LIKE ${len(params)}")
        if filters.is_active is not None:
            params.append(filters.is_active)
            conditions.append(f"is_active = ${len(params)}")

        return await self._page("merchants", MERCHANT_COLUMNS, conditions, params, skip, limit)

    # Customers

    async def get_customer(self, customer_id: UUID) -> Optional[Row]:
        return await self._fetch_one(
            f"SELECT {', '.join(CUSTOMER_COLUMNS)} FROM customers WHERE id = $1",
            customer_id
        )

    async def get_customer_by_phone(self, phone_number: str, for_update: bool = False) -> Optional[Row]:
        lock = "FOR UPDATE" if for_update else ""
        return await self._fetch_one(
            f"SELECT {', '.join(CUSTOMER_COLUMNS)} FROM customers WHERE phone_number = $1 {lock}",
            phone_number
        )

    async def insert_customer(self, values: Row) -> Row:
        _check_columns(values, CUSTOMER_WRITABLE)
        return await self._insert("customers", CUSTOMER_COLUMNS, values)

    async def update_customer(self, customer_id: UUID, values: Row) -> Row:
        _check_columns(values, CUSTOMER_WRITABLE)
        return await self._update("customers", CUSTOMER_COLUMNS, customer_id, values)

    async def add_customer_points(
        self, customer_id: UUID, points: int, name: Optional[str] = None
    ) -> Row:
        return await self._write("customers", f"""
            UPDATE customers
            SET total_points = total_points + $1,
                last_check_in = NOW(),
                name = CASE
                    WHEN (name IS NULL OR name = '') AND $2::text IS NOT NULL THEN $2::text
                    ELSE name
                END,
                updated_at = NOW()
            WHERE id = $3
            RETURNING {', '.join(CUSTOMER_COLUMNS)}
        """, points, name, customer_id)

    async def soft_delete_customer(self, customer_id: UUID) -> Row:
        return await self._write("customers", f"""
            UPDATE customers
            SET deleted_at = NOW(), updated_at = NOW()
            WHERE id = $1
            RETURNING {', '.join(CUSTOMER_COLUMNS)}
        """, customer_id)

    async def list_customers(
        self, filters: CustomerFilters, skip: int, limit: int
    ) -> Tuple[List[Row], int]:
        conditions = ["deleted_at IS NULL"]
        params: list = []

        if filters.phone_number:
            params.append(like_pattern(filters.phone_number))
            conditions.append(f"phone_number LIKE ${len(params)}")
        if filters.name:
            params.append(like_pattern(filters.name))
            conditions.append(f"name ILIKE ${len(params)}")
        if filters.total_points_min is not None:
            params.append(filters.total_points_min)
            conditions.append(f"total_points >= ${len(params)}")
        if filters.total_points_max is not None:
            params.append(filters.total_points_max)
            conditions.append(f"total_points <= ${len(params)}")
        if filters.merchant_id is not None:
            params.append(filters.merchant_id)
            conditions.append(f"merchant_id = ${len(params)}")

        return await self._page("customers", CUSTOMER_COLUMNS, conditions, params, skip, limit)

    # Ledger

    async def insert_transaction(self, values: Row) -> Row:
        _check_columns(values, TRANSACTION_WRITABLE)
        return await self._insert("transactions", TRANSACTION_COLUMNS, values)

    async def recent_transactions(self, customer_id: UUID, limit: int) -> List[Row]:
        rows = await self.conn.fetch(f"""
            SELECT {', '.join(TRANSACTION_COLUMNS)}
            FROM transactions
            WHERE customer_id = $1
            ORDER BY date_time DESC, seq DESC
            LIMIT $2
        """, customer_id, limit)
        return [dict(row) for row in rows]
