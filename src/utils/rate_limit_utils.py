from fastapi import Request
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded

# Utils
from utils.log_utils import LogUtil


def get_client_address(request: Request) -> str:
    """
    Client address for per-address limits. The first x-forwarded-for hop wins
    over the socket peer so clients behind a proxy are told apart.
    """
    forwarded_for = request.headers.get("x-forwarded-for")
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()
    if request.client and request.client.host:
        return request.client.host
    return "unknown"


def create_limiter() -> Limiter:
    return Limiter(key_func=get_client_address)


def webhook_rate_limit(max_requests: int, window_seconds: int) -> str:
    if window_seconds == 60:
        return f"{max_requests}/minute"
    return f"{max_requests}/{window_seconds} seconds"


def create_rate_limit_exceeded_handler(log_util: LogUtil):
    """
    Exception handler answering requests over the limit with a 429.
    """
    async def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
        log_util.warning(
            service_name="RateLimit",
            message=f"Client {get_client_address(request)} exceeded {exc.detail} on {request.url.path}"
        )
        return JSONResponse(
            status_code=429,
            content={"error": "Too many requests", "message": "Please try again later"}
        )

    return rate_limit_exceeded_handler
