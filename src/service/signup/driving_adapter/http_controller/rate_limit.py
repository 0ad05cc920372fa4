from dependency_injector.wiring import Provide, inject
from fastapi import Depends, Request

from src.platform.config.di import Container
from src.platform.exception.exceptions import RateLimitExceededError
from src.platform.metrics.signup_metrics import metrics
from src.platform.state.fixed_window_rate_limiter import IRateLimiter


def client_identity(request: Request) -> str:
    """First X-Forwarded-For hop, then X-Real-IP, then the socket peer."""
    if forwarded := request.headers.get('x-forwarded-for'):
        if first := forwarded.split(',')[0].strip():
            return first
    if real_ip := request.headers.get('x-real-ip', '').strip():
        return real_ip
    return request.client.host if request.client else 'unknown'


@inject
async def enforce_signup_rate_limit(
    request: Request,
    rate_limiter: IRateLimiter = Depends(Provide[Container.rate_limiter]),
) -> None:
    decision = await rate_limiter.hit(key=f'signup:{client_identity(request)}')
    if not decision.allowed:
        metrics.rate_limited_requests.inc()
        raise RateLimitExceededError()
