# madrasah_admin/core/rate_limiter.py
"""In-memory sliding-window limiter for the backup/restore functions."""
from fastapi import HTTPException, Request
from typing import Dict, List
import logging
import time

logger = logging.getLogger(__name__)

class RateLimiter:
    def __init__(self):
        self.requests: Dict[str, List[float]] = {}

    async def check_rate_limit(self, request: Request, max_requests: int = 60, window: int = 60):
        """Allow ``max_requests`` per ``window`` seconds for each client and path"""
        client_ip = request.client.host if request.client else "unknown"
        key = f"{client_ip}:{request.url.path}"
        now = time.time()
        self._purge(now, window)

        recent = self.requests.get(key, [])
        if len(recent) >= max_requests:
            retry_after = int(window - (now - recent[0])) + 1
            logger.warning(f"Rate limit exceeded for {key}")
            raise HTTPException(
                status_code=429,
                detail="Rate limit exceeded",
                headers={"Retry-After": str(retry_after)},
            )

        recent.append(now)
        self.requests[key] = recent

    def _purge(self, now: float, window: int):
        # Trim expired stamps and forget clients with none left
        for key in list(self.requests):
            recent = [stamp for stamp in self.requests[key] if now - stamp < window]
            if recent:
                self.requests[key] = recent
            else:
                del self.requests[key]

    def reset(self):
        self.requests.clear()

rate_limiter = RateLimiter()
