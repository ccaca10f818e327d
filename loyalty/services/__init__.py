from .customer_service import (
    CustomerService,
    NewCustomer,
    ExistingCustomer,
    WELCOME_BONUS_NOTE,
    CHECK_IN_NOTE
)
from .merchant_service import MerchantService
from .pagination import PaginationOptions, normalize, envelope

__all__ = [
    "CustomerService",
    "NewCustomer",
    "ExistingCustomer",
    "WELCOME_BONUS_NOTE",
    "CHECK_IN_NOTE",
    "MerchantService",
    "PaginationOptions",
    "normalize",
    "envelope",
]
