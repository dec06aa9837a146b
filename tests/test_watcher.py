"""Tests for the file change source."""

import asyncio
import logging
from collections.abc import AsyncIterator
from pathlib import Path
from typing import Any

import pytest
from mdview.live.hub import NotificationHub
from mdview.live.watcher import ChangeSource
from watchfiles import Change

from tests.test_hub import drain

Batch = set[tuple[Change, str]]


def fake_watch(*batches: Batch, calls: list[dict[str, Any]] | None = None):
    """Build a watcher that yields the given batches and then finishes."""

    async def watch(*paths: Path, **kwargs: Any) -> AsyncIterator[Batch]:
        if calls is not None:
            calls.append({"paths": paths, **kwargs})
        for batch in batches:
            yield batch

    return watch


def failing_watch(error: Exception):
    async def watch(*paths: Path, **kwargs: Any) -> AsyncIterator[Batch]:
        raise error
        yield set()  # pragma: no cover

    return watch


class TestChangeSourceRun:
    """Tests for ChangeSource.run()."""

    @pytest.mark.asyncio
    async def test__root_file_modified__publishes_one_event(self, root_file: Path) -> None:
        """A change to the watched file reloads every subscriber once."""
        hub = NotificationHub()
        first = hub.subscribe()
        second = hub.subscribe()
        watch = fake_watch({(Change.modified, str(root_file))})

        await ChangeSource(root_file, hub, watch=watch).run()

        assert len(await drain(first)) == 1
        assert len(await drain(second)) == 1

    @pytest.mark.asyncio
    async def test__burst_in_one_batch__coalesced(self, root_file: Path) -> None:
        """Several writes in one watcher batch produce a single event."""
        hub = NotificationHub()
        subscription = hub.subscribe()
        other = root_file.parent / "b.md"
        watch = fake_watch(
            {
                (Change.modified, str(root_file)),
                (Change.added, str(root_file)),
                (Change.modified, str(other)),
            }
        )

        await ChangeSource(root_file, hub, watch=watch).run()

        assert len(await drain(subscription)) == 1

    @pytest.mark.asyncio
    async def test__other_markdown_file__publishes_event(self, root_file: Path) -> None:
        """Changes to sibling Markdown files also reload."""
        hub = NotificationHub()
        subscription = hub.subscribe()
        watch = fake_watch({(Change.added, str(root_file.parent / "notes.markdown"))})

        await ChangeSource(root_file, hub, watch=watch).run()

        assert len(await drain(subscription)) == 1

    @pytest.mark.asyncio
    async def test__unrelated_file__ignored(self, root_file: Path) -> None:
        """Changes to non-Markdown files never reload."""
        hub = NotificationHub()
        subscription = hub.subscribe()
        watch = fake_watch(
            {(Change.modified, str(root_file.parent / "data.bin"))},
            {(Change.added, str(root_file.parent / "pic.png"))},
        )

        await ChangeSource(root_file, hub, watch=watch).run()

        assert await drain(subscription) == []

    @pytest.mark.asyncio
    async def test__deletion__ignored(self, root_file: Path) -> None:
        """Deleted files don't trigger a reload."""
        hub = NotificationHub()
        subscription = hub.subscribe()
        watch = fake_watch({(Change.deleted, str(root_file.parent / "old.md"))})

        await ChangeSource(root_file, hub, watch=watch).run()

        assert await drain(subscription) == []

    @pytest.mark.asyncio
    async def test__watch_arguments__cover_file_and_directory(self, root_file: Path) -> None:
        """Watch the file and its directory non-recursively with the configured window."""
        calls: list[dict[str, Any]] = []
        watch = fake_watch(calls=calls)

        await ChangeSource(
            root_file, NotificationHub(), debounce_ms=300, step_ms=20, watch=watch
        ).run()

        assert calls == [
            {
                "paths": (root_file, root_file.parent),
                "recursive": False,
                "debounce": 300,
                "step": 20,
            }
        ]

    @pytest.mark.asyncio
    async def test__watcher_failure__logged_not_raised(
        self, root_file: Path, caplog: pytest.LogCaptureFixture
    ) -> None:
        """A failing watcher ends live reload without propagating."""
        watch = failing_watch(FileNotFoundError("watch target removed"))

        with caplog.at_level(logging.ERROR):
            await ChangeSource(root_file, NotificationHub(), watch=watch).run()

        assert "File watcher stopped" in caplog.text
        assert "watch target removed" in caplog.text


class TestChangeSourceLifecycle:
    """Tests for ChangeSource.start()/stop()."""

    @pytest.mark.asyncio
    async def test__start_stop__cancels_background_task(self, root_file: Path) -> None:
        """Stop cancels a watcher that would otherwise run forever."""

        async def endless(*paths: Path, **kwargs: Any) -> AsyncIterator[Batch]:
            while True:
                await asyncio.sleep(3600)
                yield set()

        source = ChangeSource(root_file, NotificationHub(), watch=endless)

        await source.start()
        await asyncio.sleep(0)
        assert source.running

        await source.stop()
        assert not source.running

    @pytest.mark.asyncio
    async def test__real_watcher__detects_write(self, root_file: Path) -> None:
        """Writing the watched file publishes a change through watchfiles."""
        hub = NotificationHub()
        subscription = hub.subscribe()
        source = ChangeSource(root_file, hub, debounce_ms=200, step_ms=20)

        await source.start()
        try:
            for attempt in range(50):
                root_file.write_text(f"# Edit {attempt}\n")
                try:
                    await asyncio.wait_for(subscription.get(), 0.2)
                    break
                except TimeoutError:
                    continue
            else:
                pytest.fail("No change event received")
        finally:
            await source.stop()
