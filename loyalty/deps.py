"""Dependencies for the loyalty API"""
from fastapi import Depends, Header, Query
from asyncpg import Connection
from typing import Optional
from .config import settings
from .db import get_conn
from .exceptions import AuthenticationError
from .response_models import ErrorCodes
from .services.customer_service import CustomerService
from .services.merchant_service import MerchantService
from .services.pagination import PaginationOptions, normalize
from .store import LoyaltyStore, PostgresLoyaltyStore
import logging

logger = logging.getLogger(__name__)


async def get_store(conn: Connection = Depends(get_conn)) -> LoyaltyStore:
    """Store bound to the request's pooled connection"""
    return PostgresLoyaltyStore(conn)


def get_customer_service(store: LoyaltyStore = Depends(get_store)) -> CustomerService:
    return CustomerService(store)


def get_merchant_service(store: LoyaltyStore = Depends(get_store)) -> MerchantService:
    return MerchantService(store)


def get_pagination(
    page: Optional[str] = Query(None, description="Page number (starts from 1)"),
    limit: Optional[str] = Query(None, description="Number of items per page (max 100)")
) -> PaginationOptions:
    """
    Parse page/limit query values.

    Values are taken as raw strings so that malformed input falls back to
    defaults instead of failing the request.
    """
    return normalize(page, limit)


async def verify_api_key(x_api_key: Optional[str] = Header(None, description="API Key for service-to-service auth")) -> bool:
    """
    Optional API key verification for service-to-service authentication.

    Only validates if API_KEY is configured in settings.

    Raises:
        AuthenticationError: If the key is missing or does not match
    """
    if settings.API_KEY is None:
        # API key auth not configured, allow request
        return True

    if x_api_key is None:
        raise AuthenticationError("Missing X-Api-Key header", error_code=ErrorCodes.MISSING_API_KEY)

    if x_api_key != settings.API_KEY:
        logger.warning("Invalid API key attempt")
        raise AuthenticationError("Invalid API key")

    return True
