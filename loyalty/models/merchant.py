"""Pydantic models for merchant-related operations"""
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel
from typing import Optional
from datetime import datetime
from uuid import UUID

from ..validation import strip_markup

PHONE_MIN_LENGTH = 10
PHONE_MAX_LENGTH = 15

DEFAULT_POINTS_PER_VISIT = 10
DEFAULT_WELCOME_BONUS = 0


class CamelModel(BaseModel):
    """Base model exposing camelCase JSON names while keeping snake_case attributes"""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True
    )


class MerchantCreate(CamelModel):
    """Model for creating a merchant"""
    name: str = Field(..., min_length=1, description="Merchant business name")
    address: Optional[str] = None
    phone_number: Optional[str] = Field(
        None, min_length=PHONE_MIN_LENGTH, max_length=PHONE_MAX_LENGTH
    )
    points_per_visit: Optional[int] = Field(None, ge=0, description="Points awarded per visit")
    points_per_dollar: Optional[float] = Field(None, ge=0, description="Points awarded per dollar spent")
    welcome_bonus: Optional[int] = Field(None, ge=0, description="Bonus points for new customers")
    is_active: Optional[bool] = None

    @field_validator("name", "address")
    @classmethod
    def _strip_markup(cls, value):
        return strip_markup(value)

    @field_validator("name")
    @classmethod
    def _name_not_blank(cls, value):
        if not value:
            raise ValueError("Merchant name is required")
        return value


class MerchantUpdate(CamelModel):
    """Model for updating a merchant; only supplied fields are applied"""
    name: Optional[str] = Field(None, min_length=1)
    address: Optional[str] = None
    phone_number: Optional[str] = Field(
        None, min_length=PHONE_MIN_LENGTH, max_length=PHONE_MAX_LENGTH
    )
    points_per_visit: Optional[int] = Field(None, ge=0)
    points_per_dollar: Optional[float] = Field(None, ge=0)
    welcome_bonus: Optional[int] = Field(None, ge=0)
    is_active: Optional[bool] = None

    @field_validator("name", "address")
    @classmethod
    def _strip_markup(cls, value):
        return strip_markup(value)

    @field_validator("name")
    @classmethod
    def _name_not_blank(cls, value):
        if value is not None and not value:
            raise ValueError("Merchant name cannot be empty")
        return value

    def changes(self) -> dict:
        """Fields explicitly supplied by the caller (nulls ignored)"""
        return self.model_dump(exclude_unset=True, exclude_none=True)


class MerchantFilters(BaseModel):
    """Filters accepted by the merchant listing"""
    name: Optional[str] = None
    phone_number: Optional[str] = None
    is_active: Optional[bool] = None


class MerchantResponse(CamelModel):
    """Merchant response model"""
    id: UUID
    name: str
    address: Optional[str] = None
    phone_number: Optional[str] = None
    points_per_visit: int
    points_per_dollar: Optional[float] = None
    welcome_bonus: int
    is_active: bool
    created_at: datetime
    updated_at: datetime
    deleted_at: Optional[datetime] = None
