"""
Standardized response models for consistent API responses
"""
from pydantic import BaseModel
from typing import Any, Optional


# Keys that are never returned to clients, at any nesting level
SENSITIVE_FIELDS = frozenset({"password", "secret", "token", "apiKey", "apiSecret"})


class APIResponse(BaseModel):
    """Standard API response format"""
    success: bool
    message: str
    data: Optional[Any] = None


class ErrorResponse(BaseModel):
    """Standard error response format"""
    success: bool = False
    message: str
    error_code: str
    data: Optional[Any] = None


def sanitize_data(data: Any) -> Any:
    """Recursively drop sensitive keys and render models as camelCase JSON"""
    if isinstance(data, BaseModel):
        data = data.model_dump(mode="json", by_alias=True)
    if isinstance(data, dict):
        return {
            key: sanitize_data(value)
            for key, value in data.items()
            if key not in SENSITIVE_FIELDS
        }
    if isinstance(data, (list, tuple)):
        return [sanitize_data(item) for item in data]
    return data


def success_response(message: str = "Success", data: Any = None) -> dict:
    """Create a standardized success response"""
    return {
        "success": True,
        "message": message,
        "data": sanitize_data(data)
    }


def error_response(message: str, error_code: str = "ERROR", details: Any = None) -> dict:
    """Create a standardized error response"""
    return {
        "success": False,
        "message": message,
        "error_code": error_code,
        "data": sanitize_data(details) if details else None
    }


# Common error codes
class ErrorCodes:
    """Standard error codes for the API"""

    # Authentication errors (AUTH_*)
    UNAUTHORIZED = "AUTH_UNAUTHORIZED"
    MISSING_API_KEY = "AUTH_MISSING_API_KEY"

    # Merchant errors (MERCHANT_*)
    MERCHANT_NOT_FOUND = "MERCHANT_NOT_FOUND"
    MERCHANT_INACTIVE = "MERCHANT_INACTIVE"
    MERCHANT_DELETED = "MERCHANT_DELETED"
    MERCHANT_PHONE_EXISTS = "MERCHANT_PHONE_EXISTS"

    # Customer errors (CUSTOMER_*)
    CUSTOMER_NOT_FOUND = "CUSTOMER_NOT_FOUND"
    CUSTOMER_DELETED = "CUSTOMER_DELETED"
    CUSTOMER_PHONE_EXISTS = "CUSTOMER_PHONE_EXISTS"

    # Validation errors (VAL_*)
    VALIDATION_ERROR = "VAL_VALIDATION_ERROR"
    INVALID_INPUT = "VAL_INVALID_INPUT"
    PAYLOAD_TOO_LARGE = "VAL_PAYLOAD_TOO_LARGE"

    # Resource errors (RES_*)
    NOT_FOUND = "RES_NOT_FOUND"
    ALREADY_EXISTS = "RES_ALREADY_EXISTS"
    INVALID_STATE = "RES_INVALID_STATE"

    # Server errors (SRV_*)
    INTERNAL_ERROR = "SRV_INTERNAL_ERROR"
    DATABASE_ERROR = "SRV_DATABASE_ERROR"

    # Rate limiting (RATE_*)
    RATE_LIMIT_EXCEEDED = "RATE_LIMIT_EXCEEDED"
    SUSPICIOUS_ACTIVITY = "RATE_SUSPICIOUS_ACTIVITY"


# HTTP status code mapping
HTTP_STATUS_CODES = {
    # Success
    "success": 200,

    # Client errors
    ErrorCodes.UNAUTHORIZED: 401,
    ErrorCodes.MISSING_API_KEY: 401,

    ErrorCodes.MERCHANT_NOT_FOUND: 404,
    ErrorCodes.CUSTOMER_NOT_FOUND: 404,
    ErrorCodes.NOT_FOUND: 404,

    ErrorCodes.MERCHANT_PHONE_EXISTS: 409,
    ErrorCodes.CUSTOMER_PHONE_EXISTS: 409,
    ErrorCodes.ALREADY_EXISTS: 409,

    ErrorCodes.VALIDATION_ERROR: 400,
    ErrorCodes.INVALID_INPUT: 400,
    ErrorCodes.INVALID_STATE: 400,
    ErrorCodes.MERCHANT_INACTIVE: 400,
    ErrorCodes.MERCHANT_DELETED: 400,
    ErrorCodes.CUSTOMER_DELETED: 400,
    ErrorCodes.DATABASE_ERROR: 400,

    ErrorCodes.PAYLOAD_TOO_LARGE: 413,

    ErrorCodes.RATE_LIMIT_EXCEEDED: 429,
    ErrorCodes.SUSPICIOUS_ACTIVITY: 429,

    # Server errors
    ErrorCodes.INTERNAL_ERROR: 500,
}


def get_status_code(error_code: str) -> int:
    """Get HTTP status code for error code"""
    return HTTP_STATUS_CODES.get(error_code, 500)
