"""Customer lifecycle: check-in, lookup, update, soft delete and listing"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Tuple, Union
from uuid import UUID
import logging

from ..exceptions import ConflictError, InvalidStateError, NotFoundError
from ..models.customer import (
    RECENT_TRANSACTIONS_LIMIT,
    CheckInResponse,
    CustomerDetailResponse,
    CustomerFilters,
    CustomerResponse,
    CustomerUpdate,
    TransactionResponse,
    TransactionType,
)
from ..response_models import ErrorCodes
from ..store import DuplicatePhoneNumber, LoyaltyStore, Row
from .pagination import PaginationOptions, envelope

logger = logging.getLogger(__name__)

WELCOME_BONUS_NOTE = "Welcome bonus"
CHECK_IN_NOTE = "Check-in points"

# One retry after losing a first check-in race on the phone number index
CHECK_IN_ATTEMPTS = 2


@dataclass(frozen=True)
class NewCustomer:
    """No customer holds the phone number yet"""
    phone_number: str


@dataclass(frozen=True)
class ExistingCustomer:
    """The locked customer row for the phone number"""
    row: Row


CheckInTarget = Union[NewCustomer, ExistingCustomer]


def _customer_not_found() -> NotFoundError:
    return NotFoundError("Customer not found", error_code=ErrorCodes.CUSTOMER_NOT_FOUND)


def _phone_conflict() -> ConflictError:
    return ConflictError(
        "Phone number already exists for another customer",
        error_code=ErrorCodes.CUSTOMER_PHONE_EXISTS
    )


class CustomerService:
    """
    Owns every write to customer records and the points ledger.

    Each points change made here is paired with exactly one ledger entry
    written in the same store transaction.
    """

    def __init__(self, store: LoyaltyStore):
        self.store = store

    async def _resolve_target(self, phone_number: str) -> CheckInTarget:
        row = await self.store.get_customer_by_phone(phone_number, for_update=True)
        if row is None:
            return NewCustomer(phone_number)
        return ExistingCustomer(row)

    async def _record(self, merchant_id: UUID, customer_id: UUID, points: int, notes: str) -> Row:
        return await self.store.insert_transaction({
            "merchant_id": merchant_id,
            "customer_id": customer_id,
            "points_change": points,
            "activity_type": TransactionType.EARN.value,
            "notes": notes,
        })

    async def _with_history(self, customer: Row) -> CustomerDetailResponse:
        transactions = await self.store.recent_transactions(customer["id"], RECENT_TRANSACTIONS_LIMIT)
        return CustomerDetailResponse.model_validate({**customer, "transactions": transactions})

    async def _get_live_by_phone(self, phone_number: str) -> Row:
        customer = await self.store.get_customer_by_phone(phone_number)
        if customer is None or customer["deleted_at"] is not None:
            raise _customer_not_found()
        return customer

    async def check_in(
        self,
        phone_number: str,
        merchant_id: UUID,
        name: Optional[str] = None
    ) -> CheckInResponse:
        """
        Award visit points to a customer at a merchant.

        First-time phone numbers create the customer with the visit points
        plus the merchant's welcome bonus (recorded as its own ledger entry).
        Known customers get the visit points added and an empty name
        backfilled. Every call appends one "Check-in points" entry. Losing the
        race against a concurrent first check-in for the same phone number
        retries once as an existing-customer check-in.

        Raises:
            NotFoundError: If the merchant is missing or soft-deleted
            InvalidStateError: If the merchant is inactive or the customer was deleted
        """
        merchant = await self.store.get_merchant(merchant_id)
        if merchant is None or merchant["deleted_at"] is not None:
            raise NotFoundError(
                "Merchant not found",
                error_code=ErrorCodes.MERCHANT_NOT_FOUND,
                details={"merchantId": str(merchant_id)}
            )

        if not merchant["is_active"]:
            logger.warning(f"Check-in rejected: merchant {merchant_id} is not active")
            raise InvalidStateError("Merchant is not active", error_code=ErrorCodes.MERCHANT_INACTIVE)

        points = merchant["points_per_visit"]
        welcome_bonus = merchant["welcome_bonus"]

        for attempt in range(1, CHECK_IN_ATTEMPTS + 1):
            try:
                target, customer, transaction = await self._apply_check_in(
                    phone_number, merchant_id, name, points, welcome_bonus
                )
                break
            except DuplicatePhoneNumber:
                # A concurrent first check-in inserted the customer after our lookup;
                # the retry resolves to that row and increments it
                if attempt == CHECK_IN_ATTEMPTS:
                    raise _phone_conflict()
                logger.warning(f"Check-in for {phone_number} raced a first check-in, retrying")

        logger.info(
            f"Check-in: customer={customer['id']}, merchant={merchant_id}, "
            f"new={isinstance(target, NewCustomer)}, points=+{points}, total={customer['total_points']}"
        )

        return CheckInResponse(
            customer=CustomerResponse.model_validate(customer),
            transaction=TransactionResponse.model_validate(transaction)
        )

    async def _apply_check_in(
        self,
        phone_number: str,
        merchant_id: UUID,
        name: Optional[str],
        points: int,
        welcome_bonus: int
    ) -> Tuple[CheckInTarget, Row, Row]:
        async with self.store.transaction():
            target = await self._resolve_target(phone_number)

            if isinstance(target, NewCustomer):
                customer = await self.store.insert_customer({
                    "phone_number": target.phone_number,
                    "name": name,
                    "total_points": points + welcome_bonus,
                    "merchant_id": merchant_id,
                    "last_check_in": datetime.now(timezone.utc),
                })
                if welcome_bonus > 0:
                    await self._record(merchant_id, customer["id"], welcome_bonus, WELCOME_BONUS_NOTE)
            else:
                if target.row["deleted_at"] is not None:
                    raise InvalidStateError(
                        "Customer account has been deleted",
                        error_code=ErrorCodes.CUSTOMER_DELETED
                    )
                customer = await self.store.add_customer_points(target.row["id"], points, name)

            transaction = await self._record(merchant_id, customer["id"], points, CHECK_IN_NOTE)

        return target, customer, transaction

    async def get_customer_by_phone(self, phone_number: str) -> CustomerDetailResponse:
        """Live customer with the most recent ledger entries"""
        return await self._with_history(await self._get_live_by_phone(phone_number))

    async def get_customer_by_id(self, customer_id: UUID) -> CustomerDetailResponse:
        customer = await self.store.get_customer(customer_id)
        if customer is None or customer["deleted_at"] is not None:
            raise _customer_not_found()
        return await self._with_history(customer)

    async def update_customer(self, current_phone_number: str, data: CustomerUpdate) -> CustomerDetailResponse:
        """
        Apply a partial update to a customer identified by phone number.

        Raises:
            NotFoundError: If no customer has the phone number
            InvalidStateError: If the customer was soft-deleted
            ConflictError: If the new phone number is held by another customer
        """
        customer = await self.store.get_customer_by_phone(current_phone_number)
        if customer is None:
            raise _customer_not_found()

        if customer["deleted_at"] is not None:
            raise InvalidStateError("Cannot update deleted customer", error_code=ErrorCodes.CUSTOMER_DELETED)

        changes = data.changes()
        new_phone = changes.get("phone_number")
        if new_phone and new_phone != current_phone_number:
            # Deleted customers keep their phone number reserved
            if await self.store.get_customer_by_phone(new_phone) is not None:
                logger.warning(f"Customer phone change rejected: {new_phone} already in use")
                raise _phone_conflict()

        if changes:
            try:
                customer = await self.store.update_customer(customer["id"], changes)
            except DuplicatePhoneNumber:
                raise _phone_conflict()
            logger.info(f"Customer updated: id={customer['id']}, fields={sorted(changes)}")

        return await self._with_history(customer)

    async def delete_customer(self, phone_number: str) -> CustomerResponse:
        """Soft delete; points and history are kept"""
        customer = await self.store.get_customer_by_phone(phone_number)
        if customer is None:
            raise _customer_not_found()

        if customer["deleted_at"] is not None:
            raise InvalidStateError("Customer already deleted", error_code=ErrorCodes.CUSTOMER_DELETED)

        row = await self.store.soft_delete_customer(customer["id"])
        logger.info(f"Customer soft-deleted: id={row['id']}")
        return CustomerResponse.model_validate(row)

    async def get_all_customers(
        self, filters: CustomerFilters, pagination: PaginationOptions
    ) -> Dict[str, Any]:
        rows, total = await self.store.list_customers(filters, pagination.skip, pagination.limit)
        items = [CustomerResponse.model_validate(row) for row in rows]
        return envelope(items, total, pagination)
