"""Merchant management endpoints"""

from fastapi import APIRouter, Depends, Path, Query, status
from typing import Annotated, Optional
from uuid import UUID
import logging

from ..deps import get_merchant_service, get_pagination, verify_api_key
from ..models.merchant import (
    PHONE_MIN_LENGTH,
    PHONE_MAX_LENGTH,
    MerchantCreate,
    MerchantFilters,
    MerchantUpdate,
)
from ..response_models import APIResponse, ErrorResponse, success_response
from ..services.merchant_service import MerchantService
from ..services.pagination import PaginationOptions
from ..validation import strip_markup

logger = logging.getLogger(__name__)
router = APIRouter(
    prefix="/merchants",
    tags=["merchants"],
    dependencies=[Depends(verify_api_key)],
    responses={
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        429: {"model": ErrorResponse},
    },
)

MerchantIdPath = Annotated[UUID, Path(alias="id", description="Merchant ID")]


@router.post(
    "",
    response_model=APIResponse,
    status_code=status.HTTP_201_CREATED,
    responses={409: {"model": ErrorResponse}}
)
async def create_merchant(
    body: MerchantCreate,
    service: MerchantService = Depends(get_merchant_service)
):
    """
    Create a merchant.

    Unset settings default to 10 points per visit, no welcome bonus and active.
    """
    merchant = await service.create_merchant(body)
    return success_response(message="Merchant created successfully", data=merchant)


@router.get("", response_model=APIResponse)
async def list_merchants(
    name: Optional[str] = Query(None, description="Partial, case-insensitive name match"),
    phone_number: Optional[str] = Query(None, alias="phoneNumber", description="Partial phone number match"),
    is_active: Optional[bool] = Query(None, alias="isActive"),
    pagination: PaginationOptions = Depends(get_pagination),
    service: MerchantService = Depends(get_merchant_service)
):
    """List live merchants, newest first"""
    filters = MerchantFilters(
        name=strip_markup(name) or None,
        phone_number=phone_number or None,
        is_active=is_active
    )
    page = await service.get_all_merchants(filters, pagination)
    return success_response(message="Merchants retrieved successfully", data=page)


@router.get("/id/{id}", response_model=APIResponse)
async def get_merchant_by_id(
    merchant_id: MerchantIdPath,
    service: MerchantService = Depends(get_merchant_service)
):
    merchant = await service.get_merchant_by_id(merchant_id)
    return success_response(message="Merchant retrieved successfully", data=merchant)


@router.get("/phone/{phoneNumber}", response_model=APIResponse)
async def get_merchant_by_phone(
    phone_number: Annotated[str, Path(
        alias="phoneNumber",
        min_length=PHONE_MIN_LENGTH,
        max_length=PHONE_MAX_LENGTH
    )],
    service: MerchantService = Depends(get_merchant_service)
):
    merchant = await service.get_merchant_by_phone(phone_number)
    return success_response(message="Merchant retrieved successfully", data=merchant)


@router.put("/id/{id}", response_model=APIResponse, responses={409: {"model": ErrorResponse}})
async def update_merchant(
    merchant_id: MerchantIdPath,
    body: MerchantUpdate,
    service: MerchantService = Depends(get_merchant_service)
):
    merchant = await service.update_merchant(merchant_id, body)
    return success_response(message="Merchant updated successfully", data=merchant)


@router.delete("/id/{id}", response_model=APIResponse)
async def delete_merchant(
    merchant_id: MerchantIdPath,
    service: MerchantService = Depends(get_merchant_service)
):
    """Soft delete: the merchant is deactivated and hidden from lookups"""
    merchant = await service.delete_merchant(merchant_id)
    return success_response(message="Merchant deleted successfully", data=merchant)
