from typing import Dict, List
import time
import asyncio
from .logger import get_logger
from ..config import get_settings

logger = get_logger(__name__)

class RateLimiter:
    """Sliding-window rate limiter for calls against one Xero organisation.

    Every endpoint shares the same window, matching Xero's per-organisation
    limit.
    """
    
    def __init__(self, name: str, max_calls: int = 60, period: float = 60.0):
        """
        Initialize rate limiter.
        
        Args:
            name: Identifier used in log messages (usually the consumer key)
            max_calls: Calls allowed inside one window
            period: Window length in seconds
        """
        self.name = name
        self.max_calls = max_calls
        self.period = period
        self.request_timestamps: List[float] = []
        self._lock = asyncio.Lock()
        
        logger.debug(f"Initialized rate limiter for {name} with {max_calls} calls per {period}s")
    
    def _prune(self, now: float) -> List[float]:
        window_start = now - self.period
        self.request_timestamps = [ts for ts in self.request_timestamps if ts > window_start]
        return self.request_timestamps
        
    async def wait(self, endpoint: str = "all") -> None:
        """
        Wait if necessary to respect the rate limit.
        
        Args:
            endpoint: API endpoint being called, for logging only
        """
        async with self._lock:
            timestamps = self._prune(time.time())
            
            if len(timestamps) >= self.max_calls:
                # Wait until the oldest call leaves the window
                wait_time = self.period - (time.time() - timestamps[0])
                if wait_time > 0:
                    logger.debug(
                        f"Rate limit reached for {self.name} calling {endpoint}. "
                        f"Calls in window: {len(timestamps)}. "
                        f"Waiting {wait_time:.2f}s"
                    )
                    await asyncio.sleep(wait_time)
                self._prune(time.time())
            
            self.request_timestamps.append(time.time())
    
    async def reset(self) -> None:
        """Forget all calls in the current window."""
        async with self._lock:
            self.request_timestamps = []


_limiters: Dict[str, RateLimiter] = {}

def get_rate_limiter(consumer_key: str) -> RateLimiter:
    """Get the shared limiter for a Xero application."""
    if consumer_key not in _limiters:
        settings = get_settings()
        _limiters[consumer_key] = RateLimiter(
            name=consumer_key,
            max_calls=settings.XERO_RATE_LIMIT_CALLS,
            period=settings.XERO_RATE_LIMIT_PERIOD,
        )
    return _limiters[consumer_key]
