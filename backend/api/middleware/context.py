"""
Request context dependencies.

Extracts the caller's network identity and enforces per-endpoint rate limits
before a route body runs.
"""

from typing import Awaitable, Callable

from fastapi import Depends, Request

from shared.models import SecurityContext
from modules.ratelimit.service import RateLimiter
from ..dependencies import get_rate_limiter


def client_ip(request: Request) -> str:
    """First X-Forwarded-For hop, then X-Real-IP, then the socket peer."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first
    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip.strip()
    if request.client and request.client.host:
        return request.client.host
    return "unknown"


async def get_security_context(request: Request) -> SecurityContext:
    """Dependency returning the caller's IP and user agent."""
    return SecurityContext(
        ip_address=client_ip(request),
        user_agent=request.headers.get("user-agent") or "unknown",
    )


def rate_limit(endpoint: str) -> Callable[..., Awaitable[None]]:
    """
    Build a dependency that enforces the rate limit rule for ``endpoint``.

    The endpoint is also stored on ``request.state`` so that body validation
    failures can be counted against the same rule.

    Usage:
        @router.post("/login", dependencies=[Depends(rate_limit("auth:login"))])
    """

    async def dependency(
        request: Request,
        limiter: RateLimiter = Depends(get_rate_limiter),
    ) -> None:
        request.state.rate_limit_endpoint = endpoint
        await limiter.enforce(endpoint, client_ip(request))

    return dependency
