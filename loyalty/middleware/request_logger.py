"""
Request logging: client address and device extraction plus an access log middleware
"""
from fastapi import Request
from user_agents import parse as parse_user_agent
import logging
import time
from typing import Dict, Any

logger = logging.getLogger("loyalty.access")


def get_client_ip(request: Request) -> str:
    """Client IP as reported by proxy headers, for access logs only (headers are client supplied)"""
    # Check for proxy headers first
    x_forwarded_for = request.headers.get("x-forwarded-for")
    if x_forwarded_for:
        # X-Forwarded-For can contain multiple IPs, take the first one
        return x_forwarded_for.split(",")[0].strip()

    x_real_ip = request.headers.get("x-real-ip")
    if x_real_ip:
        return x_real_ip.strip()

    # Fallback to direct client
    if request.client:
        return request.client.host

    return "unknown"


def parse_device_info(user_agent_string: str) -> Dict[str, Any]:
    """
    Parse user agent string to extract device and browser information
    """
    if not user_agent_string:
        return {
            "browser_name": None,
            "os_name": None,
            "device_type": None,
            "is_bot": False
        }

    ua = parse_user_agent(user_agent_string)

    # Determine device type
    device_type = "desktop"
    if ua.is_mobile:
        device_type = "mobile"
    elif ua.is_tablet:
        device_type = "tablet"
    elif ua.is_bot:
        device_type = "bot"

    return {
        "browser_name": ua.browser.family,
        "os_name": ua.os.family,
        "device_type": device_type,
        "is_bot": ua.is_bot
    }


def extract_request_metadata(request: Request) -> Dict[str, Any]:
    """
    Extract metadata from the request: IP, user agent, device info
    """
    user_agent = request.headers.get("user-agent", "")

    return {
        "ip_address": get_client_ip(request),
        "user_agent": user_agent,
        "endpoint": str(request.url.path),
        "method": request.method,
        **parse_device_info(user_agent)
    }


async def log_requests(request: Request, call_next):
    """Access log line per request with status and duration"""
    started = time.perf_counter()
    metadata = extract_request_metadata(request)

    try:
        response = await call_next(request)
    except Exception:
        duration_ms = (time.perf_counter() - started) * 1000
        logger.error(
            f"{metadata['method']} {metadata['endpoint']} failed after {duration_ms:.1f}ms "
            f"ip={metadata['ip_address']}"
        )
        raise

    duration_ms = (time.perf_counter() - started) * 1000
    logger.info(
        f"{metadata['method']} {metadata['endpoint']} -> {response.status_code} "
        f"in {duration_ms:.1f}ms ip={metadata['ip_address']} "
        f"device={metadata['device_type']}"
    )
    return response
