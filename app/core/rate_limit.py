"""
Rate Limiting Configuration

Uses slowapi with IP-based keys. The view endpoint already deduplicates
per article, so its limit only guards against a single client spraying
increments across many ids.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

limiter = Limiter(key_func=get_remote_address)

# Format: "count/period" (e.g., "10/minute" means 10 requests per minute)
RATE_LIMITS = {
    "view": "60/minute",  # View increments: 60 per minute per IP
    "article": "120/minute",  # Article detail reads
    "views": "30/minute",  # Per-article view statistics
    "dashboard": "30/minute",  # Dashboard rollups (full scans)
}
