"""Pydantic models for customers, check-ins and ledger entries"""
from datetime import datetime
from enum import Enum
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from .merchant import CamelModel, PHONE_MIN_LENGTH, PHONE_MAX_LENGTH
from ..validation import strip_markup

RECENT_TRANSACTIONS_LIMIT = 5


class TransactionType(str, Enum):
    """Kinds of points ledger entries"""
    EARN = "EARN"
    REDEEM = "REDEEM"
    ADJUSTMENT = "ADJUSTMENT"


class CheckInRequest(CamelModel):
    """Request body for a customer check-in"""
    phone_number: str = Field(
        ...,
        min_length=PHONE_MIN_LENGTH,
        max_length=PHONE_MAX_LENGTH,
        description="Customer phone number (primary identifier)"
    )
    merchant_id: UUID = Field(..., description="ID of the merchant")
    name: Optional[str] = Field(None, description="Customer name (optional)")

    @field_validator("name")
    @classmethod
    def _strip_markup(cls, value):
        return strip_markup(value) or None


class CustomerUpdate(CamelModel):
    """Model for updating a customer; only supplied fields are applied"""
    name: Optional[str] = None
    phone_number: Optional[str] = Field(
        None, min_length=PHONE_MIN_LENGTH, max_length=PHONE_MAX_LENGTH
    )
    total_points: Optional[int] = Field(None, ge=0)

    @field_validator("name")
    @classmethod
    def _strip_markup(cls, value):
        return strip_markup(value)

    def changes(self) -> dict:
        return self.model_dump(exclude_unset=True, exclude_none=True)


class CustomerFilters(BaseModel):
    """Filters accepted by the customer listing"""
    phone_number: Optional[str] = None
    name: Optional[str] = None
    total_points_min: Optional[int] = None
    total_points_max: Optional[int] = None
    merchant_id: Optional[UUID] = None


class TransactionResponse(CamelModel):
    id: UUID
    merchant_id: UUID
    customer_id: UUID
    date_time: datetime
    points_change: int
    activity_type: TransactionType
    notes: Optional[str] = None
    purchase_amount: Optional[float] = None
    reward_id: Optional[UUID] = None


class CustomerResponse(CamelModel):
    """Customer projection used by listings"""
    id: UUID
    phone_number: str
    name: Optional[str] = None
    total_points: int
    last_check_in: Optional[datetime] = None
    merchant_id: Optional[UUID] = None
    created_at: datetime
    updated_at: datetime
    deleted_at: Optional[datetime] = None


class CustomerDetailResponse(CustomerResponse):
    """Customer with the most recent ledger entries, newest first"""
    transactions: List[TransactionResponse] = Field(default_factory=list)


class CheckInResponse(CamelModel):
    customer: CustomerResponse
    transaction: TransactionResponse
