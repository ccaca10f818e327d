"""
Middleware package for the loyalty service
"""
from .request_logger import (
    get_client_ip,
    parse_device_info,
    extract_request_metadata,
    log_requests
)
from .rate_limit import limiter, check_in_limit
from .security import (
    add_security_headers,
    limit_body_size,
    burst_guard,
    BurstTracker
)

__all__ = [
    "get_client_ip",
    "parse_device_info",
    "extract_request_metadata",
    "log_requests",
    "limiter",
    "check_in_limit",
    "add_security_headers",
    "limit_body_size",
    "burst_guard",
    "BurstTracker"
]
