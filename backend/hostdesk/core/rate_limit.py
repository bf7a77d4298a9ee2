"""Shared rate limiter instance for use across route files."""

from slowapi import Limiter
from slowapi.util import get_remote_address

from hostdesk.core.config import settings

# Guards the public check-in intake against runaway client retries
limiter = Limiter(key_func=get_remote_address, enabled=settings.rate_limit_enabled)
