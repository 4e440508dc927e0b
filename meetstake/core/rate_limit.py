"""Rate limiting configuration."""
import os
from slowapi import Limiter
from slowapi.util import get_remote_address

from meetstake.core import config


def get_client_ip(request):
    """
    Get client IP for rate limiting.

    X-Forwarded-For is only honored when TRUST_PROXY_HEADERS is set. The last
    entry is the one appended by our own proxy; earlier entries come from the
    client and can be anything.
    """
    if config.settings.TRUST_PROXY_HEADERS:
        forwarded = request.headers.get("X-Forwarded-For")
        if forwarded:
            return forwarded.split(",")[-1].strip()

    return get_remote_address(request)


# Uses Redis if REDIS_URL is set (multi-worker deployments), memory otherwise
limiter = Limiter(
    key_func=get_client_ip,
    default_limits=["120/minute"],
    storage_uri=os.getenv("REDIS_URL", "memory://"),
    strategy="fixed-window"
)

# Attendance codes are short, so check-in is limited harder than the rest
# to make guessing within the validity window impractical.
RATE_LIMITS = {
    "create": "30/minute",
    "stake": "60/minute",
    "attendance_code": "30/minute",
    "check_in": "20/minute",
    "settle": "30/minute",
    "status": "200/minute",
    "admin_read": "200/minute",
}
