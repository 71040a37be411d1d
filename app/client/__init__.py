"""
Client-side view reporting: the per-visit marker and the deferred reporter.
"""

from app.client.view_marker import (
    ClientViewMarker,
    InMemorySessionStorage,
    ReportOutcome,
    SessionStorage,
    ViewReporter,
)

__all__ = [
    "ClientViewMarker",
    "InMemorySessionStorage",
    "ReportOutcome",
    "SessionStorage",
    "ViewReporter",
]
