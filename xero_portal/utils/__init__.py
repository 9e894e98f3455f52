"""
Utility modules for the Xero portal.
"""

from .crypto import FernetEncryption
from .rate_limiter import RateLimiter, get_rate_limiter
from .logger import get_logger

__all__ = [
    'FernetEncryption',
    'RateLimiter',
    'get_rate_limiter',
    'get_logger'
]
