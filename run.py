"""
Loyalty Service Entry Point

Run the service using:
    python run.py

Or for development with auto-reload:
    uvicorn loyalty.main:app --reload --port 8000

Rate limiting and the burst guard key on the client address uvicorn reports.
Behind a reverse proxy, list the proxy in FORWARDED_ALLOW_IPS so uvicorn takes
the address from X-Forwarded-For; other peers cannot override it.
"""
import uvicorn
from loyalty.config import settings

if __name__ == "__main__":
    uvicorn.run(
        "loyalty.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
        proxy_headers=True,
        forwarded_allow_ips=settings.FORWARDED_ALLOW_IPS,
        log_level=settings.LOG_LEVEL.lower()
    )
