"""
Rate limiting utilities for provider calls.
"""

from aiolimiter import AsyncLimiter

# Google Maps Platform allows 50 QPS per project - be conservative at 40
google_rate_limiter = AsyncLimiter(40, 1)

# Public Nominatim usage policy: at most one request per second
nominatim_rate_limiter = AsyncLimiter(1, 1)

# Public OSRM demo server is shared; keep the request rate low
osrm_rate_limiter = AsyncLimiter(5, 1)
