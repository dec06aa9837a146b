"""File watching for live reload.

Watches the root document and its directory and publishes a change event to
the hub whenever the document or any Markdown file next to it changes.
"""

import asyncio
import logging
from collections.abc import AsyncIterator, Callable
from pathlib import Path

from watchfiles import Change, awatch

from mdview.core.links import is_markdown_path
from mdview.live.hub import ChangeEvent, NotificationHub

logger = logging.getLogger(__name__)

WatchFunction = Callable[..., AsyncIterator[set[tuple[Change, str]]]]


class ChangeSource:
    """Publishes reload-worthy file system changes to a NotificationHub.

    Each batch yielded by the watcher is one coalescing window: it results in
    at most one published event no matter how many writes it contains.
    """

    def __init__(
        self,
        file_path: Path,
        hub: NotificationHub,
        *,
        debounce_ms: int = 500,
        step_ms: int = 50,
        watch: WatchFunction = awatch,
    ) -> None:
        """Initialize the change source.

        Args:
            file_path: Resolved path of the root document
            hub: Hub receiving change events
            debounce_ms: Maximum time a batch of changes is grouped for
            step_ms: Quiet period that ends a batch early
            watch: Watcher implementation (watchfiles.awatch compatible)
        """
        self._file_path = file_path
        self._hub = hub
        self._debounce_ms = debounce_ms
        self._step_ms = step_ms
        self._watch = watch
        self._watch_task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._watch_task is not None and not self._watch_task.done()

    async def start(self) -> None:
        """Start watching in a background task."""
        if self._watch_task is not None:
            return
        self._watch_task = asyncio.create_task(self.run())

    async def stop(self) -> None:
        """Stop the background task."""
        if self._watch_task is not None:
            self._watch_task.cancel()
            try:
                await self._watch_task
            except asyncio.CancelledError:
                pass
            self._watch_task = None

    async def run(self) -> None:
        """Watch until cancelled or until the watcher fails.

        Watcher failures are logged and end live reload only; they never
        propagate to the caller.
        """
        logger.info(f"Watching {self._file_path} for changes")
        try:
            async for changes in self._watch(
                self._file_path,
                self._file_path.parent,
                recursive=False,
                debounce=self._debounce_ms,
                step=self._step_ms,
            ):
                self._handle_changes(changes)
        except Exception:
            logger.exception("File watcher stopped, live reload is disabled")
        else:
            logger.info("File watcher finished")

    def is_reload_worthy(self, path: Path) -> bool:
        """Check whether a change to a path should reload viewers."""
        return path == self._file_path or is_markdown_path(path)

    def _handle_changes(self, changes: set[tuple[Change, str]]) -> None:
        relevant = []
        for change_type, path_str in changes:
            if change_type == Change.deleted:
                continue

            path = Path(path_str)
            if self.is_reload_worthy(path):
                relevant.append(path)

        if not relevant:
            return

        for path in relevant:
            logger.debug(f"Changed: {path}")

        delivered = self._hub.publish(ChangeEvent())
        logger.info(f"Reloading {delivered} viewer(s) after change to {relevant[0].name}")
