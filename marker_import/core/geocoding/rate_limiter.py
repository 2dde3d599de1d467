"""Request spacing for outbound geocoding calls.

Geocoding providers throttle per account or per IP; Nominatim's usage
policy for instance allows one request per second. The resolver runs each
record's whole lookup through one limiter call, so the spacing applies
between records and never between the variants of a single record.
"""

from typing import Any, Awaitable, Callable

from geopy.extra.rate_limiter import AsyncRateLimiter


async def _invoke(func: Callable[..., Awaitable[Any]], *args: Any, **kwargs: Any) -> Any:
    return await func(*args, **kwargs)


def build_rate_limiter(min_delay_seconds: float) -> AsyncRateLimiter:
    """Create a limiter used as ``await limiter(coro_func, *args)``.

    Provider errors are translated before they reach the limiter, so geopy's
    own retry and swallow behavior is turned off.

    Args:
        min_delay_seconds: Minimum delay between two limited calls; 0 disables it

    Returns:
        AsyncRateLimiter awaiting the given coroutine function
    """
    return AsyncRateLimiter(
        _invoke,
        min_delay_seconds=min_delay_seconds,
        max_retries=0,
        swallow_exceptions=False,
    )
