"""Merchant lifecycle: create, update, soft delete, lookup and listing"""

from decimal import Decimal
from typing import Any, Dict, Optional
from uuid import UUID
import logging

from ..exceptions import ConflictError, InvalidStateError, NotFoundError
from ..models.merchant import (
    DEFAULT_POINTS_PER_VISIT,
    DEFAULT_WELCOME_BONUS,
    MerchantCreate,
    MerchantFilters,
    MerchantResponse,
    MerchantUpdate,
)
from ..response_models import ErrorCodes
from ..store import DuplicatePhoneNumber, LoyaltyStore, Row
from .pagination import PaginationOptions, envelope

logger = logging.getLogger(__name__)


def _phone_conflict() -> ConflictError:
    return ConflictError(
        "Phone number already exists for another merchant",
        error_code=ErrorCodes.MERCHANT_PHONE_EXISTS
    )


def _merchant_not_found(merchant_id: Any = None) -> NotFoundError:
    details = {"merchantId": str(merchant_id)} if merchant_id is not None else None
    return NotFoundError("Merchant not found", error_code=ErrorCodes.MERCHANT_NOT_FOUND, details=details)


def _to_numeric(values: Row) -> Row:
    if values.get("points_per_dollar") is not None:
        values["points_per_dollar"] = Decimal(str(values["points_per_dollar"]))
    return values


class MerchantService:
    """
    Owns every write to merchant records.

    Soft-deleted merchants are invisible to lookups and listings; phone
    numbers only have to be unique among live merchants.
    """

    def __init__(self, store: LoyaltyStore):
        self.store = store

    async def _get_live(self, merchant_id: UUID) -> Row:
        merchant = await self.store.get_merchant(merchant_id)
        if merchant is None or merchant["deleted_at"] is not None:
            raise _merchant_not_found(merchant_id)
        return merchant

    async def _ensure_phone_available(self, phone_number: str, merchant_id: Optional[UUID] = None) -> None:
        holder = await self.store.get_merchant_by_phone(phone_number)
        if holder is not None and holder["id"] != merchant_id:
            logger.warning(f"Merchant phone {phone_number} already held by {holder['id']}")
            raise _phone_conflict()

    async def create_merchant(self, data: MerchantCreate) -> MerchantResponse:
        """
        Create a merchant, applying defaults for unset settings.

        Raises:
            ConflictError: If the phone number belongs to a live merchant
        """
        if data.phone_number:
            await self._ensure_phone_available(data.phone_number)

        values = {
            "name": data.name,
            "address": data.address,
            "phone_number": data.phone_number,
            "points_per_visit": (
                data.points_per_visit if data.points_per_visit is not None else DEFAULT_POINTS_PER_VISIT
            ),
            "points_per_dollar": data.points_per_dollar,
            "welcome_bonus": (
                data.welcome_bonus if data.welcome_bonus is not None else DEFAULT_WELCOME_BONUS
            ),
            "is_active": data.is_active if data.is_active is not None else True,
        }

        try:
            row = await self.store.insert_merchant(_to_numeric(values))
        except DuplicatePhoneNumber:
            raise _phone_conflict()

        logger.info(f"Merchant created: id={row['id']}, name={row['name']}")
        return MerchantResponse.model_validate(row)

    async def update_merchant(self, merchant_id: UUID, data: MerchantUpdate) -> MerchantResponse:
        """
        Apply a partial update to a live merchant.

        Raises:
            NotFoundError: If the merchant does not exist
            InvalidStateError: If the merchant was soft-deleted
            ConflictError: If the new phone number belongs to another live merchant
        """
        merchant = await self.store.get_merchant(merchant_id)
        if merchant is None:
            raise _merchant_not_found(merchant_id)

        if merchant["deleted_at"] is not None:
            raise InvalidStateError("Cannot update deleted merchant", error_code=ErrorCodes.MERCHANT_DELETED)

        changes = data.changes()
        new_phone = changes.get("phone_number")
        if new_phone and new_phone != merchant["phone_number"]:
            await self._ensure_phone_available(new_phone, merchant_id)

        if not changes:
            return MerchantResponse.model_validate(merchant)

        try:
            row = await self.store.update_merchant(merchant_id, _to_numeric(changes))
        except DuplicatePhoneNumber:
            raise _phone_conflict()

        logger.info(f"Merchant updated: id={merchant_id}, fields={sorted(changes)}")
        return MerchantResponse.model_validate(row)

    async def delete_merchant(self, merchant_id: UUID) -> MerchantResponse:
        """Soft delete: stamp deleted_at and deactivate"""
        merchant = await self.store.get_merchant(merchant_id)
        if merchant is None:
            raise _merchant_not_found(merchant_id)

        if merchant["deleted_at"] is not None:
            raise InvalidStateError("Merchant already deleted", error_code=ErrorCodes.MERCHANT_DELETED)

        row = await self.store.soft_delete_merchant(merchant_id)
        logger.info(f"Merchant soft-deleted: id={merchant_id}")
        return MerchantResponse.model_validate(row)

    async def get_merchant_by_id(self, merchant_id: UUID) -> MerchantResponse:
        return MerchantResponse.model_validate(await self._get_live(merchant_id))

    async def get_merchant_by_phone(self, phone_number: str) -> MerchantResponse:
        merchant = await self.store.get_merchant_by_phone(phone_number)
        if merchant is None:
            raise _merchant_not_found()
        return MerchantResponse.model_validate(merchant)

    async def get_all_merchants(
        self, filters: MerchantFilters, pagination: PaginationOptions
    ) -> Dict[str, Any]:
        """Live merchants matching the filters, newest first, wrapped in a page envelope"""
        rows, total = await self.store.list_merchants(filters, pagination.skip, pagination.limit)
        items = [MerchantResponse.model_validate(row) for row in rows]
        return envelope(items, total, pagination)
