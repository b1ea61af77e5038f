"""Shared rate limiter (in-memory, keyed by client IP).

Applied to the sign-in and sign-up endpoints. Disabled when
RATE_LIMIT_ENABLED is false or under TESTING.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

from .config import settings

limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[settings.rate_limit_default],
    enabled=settings.rate_limit_enabled and not settings.testing,
)
