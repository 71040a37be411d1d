"""
Client View Marker and Deferred View Reporter

Client-side half of view counting. A visit (browser session, app session,
crawler run...) reports each article at most once, and never while the
page is still busy rendering.

- ClientViewMarker remembers which articles this visit already reported,
  in an injected session-scoped key/value store
- ViewReporter fires POST /articles/{id}/view as a best-effort background
  task once the client signals idle time (or a capped delay elapses)

The marker only saves network calls; the server's dedup cache is the
authority. A failed report leaves the marker unset so a later view of the
same article in the same visit tries again. A report cancelled by
navigation is recorded as DROPPED and the view is simply not counted.
"""

import asyncio
import logging
from enum import Enum
from typing import Dict, List, Optional, Protocol
from urllib.parse import quote

import httpx

from app.core.setting import settings
from app.core.validators import sanitize_content_id

logger = logging.getLogger(__name__)

VIEWED_ARTICLES_KEY = "viewedArticles"


class SessionStorage(Protocol):
    """Key/value store scoped to one visit (sessionStorage in a browser)."""

    def get_item(self, key: str) -> Optional[str]:
        ...

    def set_item(self, key: str, value: str) -> None:
        ...


class InMemorySessionStorage:
    """SessionStorage living as long as the object: one instance per visit."""

    def __init__(self):
        self._items: Dict[str, str] = {}

    def get_item(self, key: str) -> Optional[str]:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._items[key] = value

    def clear(self) -> None:
        self._items.clear()


class ClientViewMarker:
    """
    Set of article ids already reported during this visit.

    Stored as a comma-joined list under a single key, the same shape the
    browser client keeps in sessionStorage.
    """

    def __init__(self, storage: SessionStorage, key: str = VIEWED_ARTICLES_KEY):
        self.storage = storage
        self.key = key

    def _load(self) -> List[str]:
        raw = self.storage.get_item(self.key) or ""
        return [article_id for article_id in raw.split(",") if article_id]

    def has_reported(self, article_id: str) -> bool:
        sanitized_id = sanitize_content_id(article_id)
        return sanitized_id is not None and sanitized_id in self._load()

    def mark_reported(self, article_id: str) -> None:
        """
        Record the article as reported. Idempotent.

        Raises:
            ValueError: If the id is empty or malformed (a "," would split
                the stored list)
        """
        sanitized_id = sanitize_content_id(article_id)
        if sanitized_id is None:
            raise ValueError(f"Invalid article id: {article_id!r}")
        article_id = sanitized_id
        reported = self._load()
        if article_id in reported:
            return
        reported.append(article_id)
        self.storage.set_item(self.key, ",".join(reported))


class ReportOutcome(str, Enum):
    REPORTED = "reported"  # server answered 2xx, marker set
    FAILED = "failed"  # network error or non-2xx, marker left unset
    SKIPPED = "skipped"  # already reported during this visit
    DROPPED = "dropped"  # cancelled before completing (navigation away)


class ViewReporter:
    """
    Schedules deferred, fire-and-forget view reports.

    Must be used from inside a running event loop.
    """

    def __init__(
        self,
        marker: ClientViewMarker,
        client: httpx.AsyncClient,
        idle_event: Optional[asyncio.Event] = None,
        idle_timeout: Optional[float] = None,
        fallback_delay: Optional[float] = None
    ):
        """
        Initialize the reporter.

        Args:
            marker: This visit's view marker
            client: HTTP client whose base_url points at the service
            idle_event: Set by the host when it has spare time; when absent
                reports wait `fallback_delay` instead
            idle_timeout: Longest wait for `idle_event` before reporting anyway
            fallback_delay: Fixed delay used without an idle signal
        """
        self.marker = marker
        self.client = client
        self.idle_event = idle_event
        self.idle_timeout = (
            idle_timeout if idle_timeout is not None
            else settings.CLIENT_REPORT_IDLE_TIMEOUT_SECONDS
        )
        self.fallback_delay = (
            fallback_delay if fallback_delay is not None
            else settings.CLIENT_REPORT_FALLBACK_DELAY_SECONDS
        )

        self._pending: Dict[str, asyncio.Task] = {}
        self.outcomes: Dict[str, ReportOutcome] = {}
        self.dropped: List[str] = []

    @property
    def pending(self) -> List[str]:
        return [article_id for article_id, task in self._pending.items() if not task.done()]

    def schedule(self, article_id: str) -> Optional[asyncio.Task]:
        """
        Schedule a deferred report for an article.

        Returns:
            The report task (the pending one if already scheduled), or None
            if this visit already reported the article
        """
        if self.marker.has_reported(article_id):
            self.outcomes[article_id] = ReportOutcome.SKIPPED
            return None

        existing = self._pending.get(article_id)
        if existing is not None and not existing.done():
            return existing

        task = asyncio.create_task(self._run(article_id))
        self._pending[article_id] = task
        task.add_done_callback(lambda done, article_id=article_id: self._forget(article_id, done))
        return task

    def _forget(self, article_id: str, task: asyncio.Task) -> None:
        if self._pending.get(article_id) is task:
            del self._pending[article_id]

    async def _wait_for_idle(self) -> None:
        if self.idle_event is None:
            await asyncio.sleep(self.fallback_delay)
            return
        try:
            await asyncio.wait_for(self.idle_event.wait(), timeout=self.idle_timeout)
        except asyncio.TimeoutError:
            logger.debug(f"No idle signal within {self.idle_timeout}s, reporting anyway")

    async def _run(self, article_id: str) -> ReportOutcome:
        await self._wait_for_idle()
        return await self.report(article_id)

    async def report(self, article_id: str) -> ReportOutcome:
        """
        Send the view report now.

        Returns:
            REPORTED, FAILED or SKIPPED; never raises for transport errors
        """
        if self.marker.has_reported(article_id):
            self.outcomes[article_id] = ReportOutcome.SKIPPED
            return ReportOutcome.SKIPPED

        try:
            response = await self.client.post(
                f"/articles/{quote(article_id, safe='')}/view",
                headers={"Cache-Control": "no-store"}
            )
        except httpx.HTTPError as e:
            logger.warning(f"Failed to report view for {article_id}: {str(e)}")
            self.outcomes[article_id] = ReportOutcome.FAILED
            return ReportOutcome.FAILED

        if not response.is_success:
            logger.warning(
                f"View report for {article_id} rejected with status {response.status_code}"
            )
            self.outcomes[article_id] = ReportOutcome.FAILED
            return ReportOutcome.FAILED

        self.marker.mark_reported(article_id)
        self.outcomes[article_id] = ReportOutcome.REPORTED
        return ReportOutcome.REPORTED

    def cancel(self, article_id: str) -> bool:
        """
        Abandon a pending report (the visitor navigated away).

        Returns:
            True if a pending report was dropped
        """
        task = self._pending.get(article_id)
        if task is None or task.done():
            return False
        task.cancel()
        self.outcomes[article_id] = ReportOutcome.DROPPED
        self.dropped.append(article_id)
        logger.info(f"View report for {article_id} dropped before it was sent")
        return True

    def cancel_all(self) -> int:
        """Abandon every pending report. Returns how many were dropped."""
        return sum(1 for article_id in list(self._pending) if self.cancel(article_id))
