# src/cleanup/scheduler.py — v1
"""Deferred, best-effort deletion of uploaded images.

A cleanup job waits for its delay in an asyncio task, then asks the
deletion endpoint to remove each image once, one after another. Failures
are logged and never retried. Jobs live in memory only: a process restart
before the delay elapses drops them.
"""

from __future__ import annotations

import asyncio
import json
import logging
import urllib.error
import urllib.request
from typing import Awaitable, Callable, Sequence

logger = logging.getLogger(__name__)

DeleteFn = Callable[[str], Awaitable[bool]]

DEFAULT_ENDPOINT_URL = "http://localhost:3000/api/upload/delete"
DEFAULT_DELAY_MINUTES = 60
DEFAULT_MAX_STORAGE_DAYS = 1


class HttpDeleteClient:
    """POSTs ``{"publicId": ...}`` to the image deletion endpoint."""

    def __init__(self, endpoint_url: str = DEFAULT_ENDPOINT_URL, timeout_s: float = 10.0) -> None:
        self._url = endpoint_url
        self._timeout_s = timeout_s

    async def __call__(self, resource_id: str) -> bool:
        return await asyncio.to_thread(self._post, resource_id)

    def _post(self, resource_id: str) -> bool:
        payload = json.dumps({"publicId": resource_id}).encode("utf-8")
        req = urllib.request.Request(
            self._url,
            data=payload,
            headers={"Content-Type": "application/json"},
            method="POST",
        )
        try:
            with urllib.request.urlopen(req, timeout=self._timeout_s) as resp:
                return 200 <= resp.status < 300
        except urllib.error.HTTPError as e:
            logger.debug("Delete endpoint answered %d for %s", e.code, resource_id)
            return False


class CleanupScheduler:
    """Schedule one-shot deletion of resources after a delay.

    Args:
        delete_fn: Async callable returning True when the resource was
            deleted. Defaults to HttpDeleteClient against DEFAULT_ENDPOINT_URL.
        enabled: When False, scheduling is a no-op.
        max_storage_days: Upper bound on any requested delay.
    """

    def __init__(
        self,
        delete_fn: DeleteFn | None = None,
        enabled: bool = True,
        max_storage_days: int = DEFAULT_MAX_STORAGE_DAYS,
    ) -> None:
        self._delete_fn = delete_fn or HttpDeleteClient()
        self._enabled = enabled
        self._max_delay_minutes = max_storage_days * 24 * 60
        self._pending: set[asyncio.Task[None]] = set()

    @property
    def enabled(self) -> bool:
        return self._enabled

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    def schedule_cleanup(
        self,
        resource_ids: Sequence[str],
        delay_minutes: float = DEFAULT_DELAY_MINUTES,
    ) -> asyncio.Task[None] | None:
        """Delete each resource once after delay_minutes.

        Must be called from a running event loop.

        Returns:
            The scheduled task, or None when disabled or nothing to delete.

        Raises:
            ValueError: If delay_minutes is negative.
        """
        if not self._enabled:
            return None
        if delay_minutes < 0:
            raise ValueError("delay_minutes must be >= 0")
        ids = list(resource_ids)
        if not ids:
            return None

        if delay_minutes > self._max_delay_minutes:
            logger.info(
                "Cleanup delay %.0f min exceeds storage window, using %.0f min",
                delay_minutes, self._max_delay_minutes,
            )
            delay_minutes = self._max_delay_minutes

        logger.info(
            "Scheduling cleanup for %d images in %g minutes", len(ids), delay_minutes
        )
        task = asyncio.create_task(self._run_after(ids, delay_minutes * 60))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def cleanup_now(self, resource_ids: Sequence[str]) -> int:
        """Delete resources immediately and sequentially.

        Returns:
            Number of resources deleted.
        """
        deleted = 0
        for resource_id in resource_ids:
            try:
                ok = await self._delete_fn(resource_id)
            except Exception as e:
                logger.warning("Cleanup error for %s: %s", resource_id, e)
                continue
            if ok:
                deleted += 1
                logger.info("Auto-cleaned image: %s", resource_id)
            else:
                logger.warning("Failed to auto-clean: %s", resource_id)
        return deleted

    async def shutdown(self) -> None:
        """Cancel every pending job. Their resources are not deleted."""
        tasks = list(self._pending)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
            logger.info("Dropped %d pending cleanup jobs", len(tasks))

    async def _run_after(self, resource_ids: list[str], delay_s: float) -> None:
        await asyncio.sleep(delay_s)
        await self.cleanup_now(resource_ids)
