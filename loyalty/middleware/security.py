"""
Security middleware: response hardening headers, request body size limit and
a per-client burst guard.
"""
from collections import OrderedDict
from dataclasses import dataclass
from fastapi import Request
from fastapi.responses import JSONResponse
from slowapi.util import get_remote_address
import logging
import math
import threading
import time
from typing import Callable, Optional

from ..config import settings
from ..response_models import error_response, ErrorCodes

logger = logging.getLogger(__name__)

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Strict-Transport-Security": "max-age=31536000; includeSubDomains; preload",
    "X-XSS-Protection": "1; mode=block",
    "Referrer-Policy": "strict-origin-when-cross-origin",
    "Permissions-Policy": "camera=(), microphone=(), geolocation=()",
}

NO_STORE_HEADERS = {
    "Cache-Control": "no-store, no-cache, must-revalidate, proxy-revalidate",
    "Pragma": "no-cache",
    "Expires": "0",
    "Surrogate-Control": "no-store",
}


async def add_security_headers(request: Request, call_next):
    """Set hardening headers; responses to authenticated requests are never cached"""
    response = await call_next(request)

    for name, value in SECURITY_HEADERS.items():
        response.headers.setdefault(name, value)

    if request.headers.get("authorization"):
        for name, value in NO_STORE_HEADERS.items():
            response.headers[name] = value

    return response


async def limit_body_size(request: Request, call_next):
    """Reject requests whose declared Content-Length exceeds MAX_BODY_SIZE"""
    content_length = request.headers.get("content-length")
    if content_length and content_length.isdigit() and int(content_length) > settings.MAX_BODY_SIZE:
        logger.warning(f"Rejected {content_length} byte body on {request.url.path}")
        return JSONResponse(
            status_code=413,
            content=error_response(
                message="Request body too large",
                error_code=ErrorCodes.PAYLOAD_TOO_LARGE,
                details={"maxBytes": settings.MAX_BODY_SIZE}
            )
        )
    return await call_next(request)


@dataclass
class ClientActivity:
    count: int
    first_request: float
    last_request: float
    blocked_until: float = 0.0

    def is_stale(self, now: float, reset_after: float) -> bool:
        return now >= self.blocked_until and now - self.last_request > reset_after


class BurstTracker:
    """
    In-memory per-client request tracker.

    A client sending more than ``burst_threshold`` requests where the latest
    arrives less than ``min_interval`` seconds after the previous one is
    blocked for ``block_seconds``. Counts reset every ``reset_after``
    seconds. At most ``max_clients`` clients are tracked: idle entries are
    dropped first, then the least recently seen. State is process-local;
    swap in another implementation of ``check`` for shared state.
    """

    def __init__(
        self,
        min_interval: float = 0.05,
        burst_threshold: int = 10,
        block_seconds: float = 300,
        reset_after: float = 3600,
        max_clients: int = 10_000,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.min_interval = min_interval
        self.burst_threshold = burst_threshold
        self.block_seconds = block_seconds
        self.reset_after = reset_after
        self.max_clients = max_clients
        self.clock = clock
        # Least recently seen first
        self._clients: "OrderedDict[str, ClientActivity]" = OrderedDict()
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._clients)

    def _evict(self, now: float) -> None:
        while self._clients:
            oldest = next(iter(self._clients.values()))
            if not oldest.is_stale(now, self.reset_after):
                break
            self._clients.popitem(last=False)

        while len(self._clients) >= self.max_clients:
            client, _ = self._clients.popitem(last=False)
            logger.debug(f"Burst tracker full, evicted {client}")

    def check(self, client: str) -> Optional[int]:
        """Record a request; returns seconds to wait when the client is blocked"""
        now = self.clock()

        with self._lock:
            activity = self._clients.get(client)
            if activity is not None and activity.is_stale(now, self.reset_after):
                del self._clients[client]
                activity = None

            if activity is None:
                self._evict(now)
                self._clients[client] = ClientActivity(count=1, first_request=now, last_request=now)
                return None

            self._clients.move_to_end(client)

            if now < activity.blocked_until:
                return math.ceil(activity.blocked_until - now)

            if now - activity.last_request < self.min_interval and activity.count > self.burst_threshold:
                activity.blocked_until = now + self.block_seconds
                logger.warning(f"Burst detected from {client}, blocking for {self.block_seconds}s")
                return math.ceil(self.block_seconds)

            activity.count += 1
            activity.last_request = now

            if now - activity.first_request > self.reset_after:
                activity.count = 1
                activity.first_request = now

            return None

    def reset(self) -> None:
        with self._lock:
            self._clients.clear()


async def burst_guard(request: Request, call_next):
    """Block clients flagged by the tracker on app.state.burst_tracker"""
    tracker: Optional[BurstTracker] = getattr(request.app.state, "burst_tracker", None)
    if tracker is None:
        return await call_next(request)

    retry_after = tracker.check(get_remote_address(request))
    if retry_after is not None:
        return JSONResponse(
            status_code=429,
            content=error_response(
                message="Suspicious activity detected, access temporarily blocked",
                error_code=ErrorCodes.SUSPICIOUS_ACTIVITY,
                details={"retryAfter": retry_after}
            ),
            headers={"Retry-After": str(retry_after)}
        )

    return await call_next(request)
