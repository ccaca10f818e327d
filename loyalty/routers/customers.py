"""Customer check-in and profile endpoints"""

from fastapi import APIRouter, Depends, Path, Query, Request
from typing import Annotated, Optional
from uuid import UUID
import logging

from ..deps import get_customer_service, get_pagination, verify_api_key
from ..middleware.rate_limit import limiter, check_in_limit
from ..models.customer import CheckInRequest, CustomerFilters, CustomerUpdate
from ..models.merchant import PHONE_MIN_LENGTH, PHONE_MAX_LENGTH
from ..response_models import APIResponse, ErrorResponse, success_response
from ..services.customer_service import CustomerService
from ..services.pagination import PaginationOptions
from ..validation import strip_markup

logger = logging.getLogger(__name__)
router = APIRouter(
    prefix="/customers",
    tags=["customers"],
    dependencies=[Depends(verify_api_key)],
    responses={
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        429: {"model": ErrorResponse},
    },
)

PhoneNumberPath = Annotated[str, Path(
    alias="phoneNumber",
    min_length=PHONE_MIN_LENGTH,
    max_length=PHONE_MAX_LENGTH,
    description="Customer phone number"
)]


@router.get("", response_model=APIResponse)
async def list_customers(
    phone_number: Optional[str] = Query(None, alias="phoneNumber", description="Partial phone number match"),
    name: Optional[str] = Query(None, description="Partial, case-insensitive name match"),
    total_points_min: Optional[int] = Query(None, alias="totalPointsMin", ge=0),
    total_points_max: Optional[int] = Query(None, alias="totalPointsMax", ge=0),
    merchant_id: Optional[UUID] = Query(None, alias="merchantId"),
    pagination: PaginationOptions = Depends(get_pagination),
    service: CustomerService = Depends(get_customer_service)
):
    """
    List customers, newest first.

    All filters are optional and combined with AND.
    """
    filters = CustomerFilters(
        phone_number=phone_number or None,
        name=strip_markup(name) or None,
        total_points_min=total_points_min,
        total_points_max=total_points_max,
        merchant_id=merchant_id
    )
    page = await service.get_all_customers(filters, pagination)
    return success_response(message="Customers retrieved successfully", data=page)


@router.post("/check-in", response_model=APIResponse)
@limiter.limit(check_in_limit)
async def check_in(
    request: Request,
    body: CheckInRequest,
    service: CustomerService = Depends(get_customer_service)
):
    """
    Check a customer in at a merchant and award visit points.

    **Request Body:**
    ```json
    {"phoneNumber": "5551234567", "merchantId": "3fa85f64-5717-4562-b3fc-2c963f66afa6", "name": "Jane"}
    ```
    """
    result = await service.check_in(body.phone_number, body.merchant_id, body.name)
    return success_response(message="Customer checked in successfully", data=result)


@router.get("/id/{customer_id}", response_model=APIResponse)
async def get_customer_by_id(
    customer_id: UUID,
    service: CustomerService = Depends(get_customer_service)
):
    customer = await service.get_customer_by_id(customer_id)
    return success_response(message="Customer retrieved successfully", data=customer)


@router.get("/{phoneNumber}", response_model=APIResponse)
async def get_customer(
    phone_number: PhoneNumberPath,
    service: CustomerService = Depends(get_customer_service)
):
    """Customer profile with the five most recent transactions"""
    customer = await service.get_customer_by_phone(phone_number)
    return success_response(message="Customer retrieved successfully", data=customer)


@router.put("/{phoneNumber}", response_model=APIResponse, responses={409: {"model": ErrorResponse}})
async def update_customer(
    phone_number: PhoneNumberPath,
    body: CustomerUpdate,
    service: CustomerService = Depends(get_customer_service)
):
    customer = await service.update_customer(phone_number, body)
    return success_response(message="Customer updated successfully", data=customer)


@router.delete("/{phoneNumber}", response_model=APIResponse)
async def delete_customer(
    phone_number: PhoneNumberPath,
    service: CustomerService = Depends(get_customer_service)
):
    """Soft delete; the record and its history are kept"""
    customer = await service.delete_customer(phone_number)
    return success_response(message="Customer deleted successfully", data=customer)
