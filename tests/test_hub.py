"""Tests for the notification hub."""

import asyncio
import threading

import pytest
from mdview.live.hub import ChangeEvent, NotificationHub, Subscription


async def drain(subscription: Subscription, timeout: float = 0.05) -> list[ChangeEvent]:
    """Collect queued events until none arrive within timeout."""
    events: list[ChangeEvent] = []
    while True:
        try:
            event = await asyncio.wait_for(subscription.get(), timeout)
        except TimeoutError:
            return events
        if event is None:
            return events
        events.append(event)


class TestPublish:
    """Tests for NotificationHub.publish()."""

    @pytest.mark.asyncio
    async def test__all_subscribers__receive_event(self) -> None:
        """Deliver one published event to every live subscription."""
        hub = NotificationHub()
        first = hub.subscribe()
        second = hub.subscribe()

        delivered = hub.publish()

        assert delivered == 2
        assert len(await drain(first)) == 1
        assert len(await drain(second)) == 1

    @pytest.mark.asyncio
    async def test__no_subscribers__event_dropped(self) -> None:
        """Publishing to nobody is a no-op."""
        hub = NotificationHub()

        assert hub.publish() == 0

    @pytest.mark.asyncio
    async def test__late_subscriber__misses_earlier_events(self) -> None:
        """A subscription never sees events published before it existed."""
        hub = NotificationHub()
        early = hub.subscribe()
        hub.publish()

        late = hub.subscribe()
        hub.publish()

        assert len(await drain(early)) == 2
        assert len(await drain(late)) == 1

    @pytest.mark.asyncio
    async def test__events__arrive_in_publish_order(self) -> None:
        """Deliver events in the order they were published."""
        hub = NotificationHub()
        subscription = hub.subscribe()
        events = [ChangeEvent(), ChangeEvent(), ChangeEvent()]

        for event in events:
            hub.publish(event)

        received = await drain(subscription)
        assert [id(e) for e in received] == [id(e) for e in events]

    @pytest.mark.asyncio
    async def test__full_buffer__drops_extra_events(self) -> None:
        """Keep at most buffer_size pending events per subscription."""
        hub = NotificationHub(buffer_size=2)
        subscription = hub.subscribe()

        results = [hub.publish() for _ in range(5)]

        assert results == [1, 1, 0, 0, 0]
        assert len(await drain(subscription)) == 2

    @pytest.mark.asyncio
    async def test__slow_subscriber__does_not_block_others(self) -> None:
        """A full subscription doesn't stop delivery to the rest."""
        hub = NotificationHub(buffer_size=1)
        slow = hub.subscribe()
        hub.publish()
        fast = hub.subscribe()

        assert hub.publish() == 1
        assert len(await drain(fast)) == 1
        assert len(await drain(slow)) == 1


class TestSubscription:
    """Tests for Subscription lifecycle."""

    @pytest.mark.asyncio
    async def test__context_exit__releases_subscription(self) -> None:
        """Leaving the with block unregisters the subscription."""
        hub = NotificationHub()

        with hub.subscribe() as subscription:
            assert hub.subscriber_count == 1

        assert subscription.closed
        assert hub.subscriber_count == 0
        assert hub.publish() == 0

    @pytest.mark.asyncio
    async def test__close_twice__is_harmless(self) -> None:
        """Closing an already closed subscription does nothing."""
        hub = NotificationHub()
        subscription = hub.subscribe()

        subscription.close()
        subscription.close()

        assert hub.subscriber_count == 0

    @pytest.mark.asyncio
    async def test__async_iteration__yields_published_events(self) -> None:
        """Iterate over events as they are published."""
        hub = NotificationHub()
        received: list[ChangeEvent] = []

        async def consume() -> None:
            with hub.subscribe() as subscription:
                async for event in subscription:
                    received.append(event)
                    if len(received) == 2:
                        return

        task = asyncio.create_task(consume())
        while hub.subscriber_count == 0:
            await asyncio.sleep(0)
        hub.publish()
        hub.publish()
        await asyncio.wait_for(task, 1)

        assert len(received) == 2
        assert hub.subscriber_count == 0

    @pytest.mark.asyncio
    async def test__closed_subscription__stops_iteration(self) -> None:
        """Iteration ends once the subscription is closed."""
        hub = NotificationHub()
        subscription = hub.subscribe()
        subscription.close()

        events = [event async for event in subscription]

        assert events == []

    @pytest.mark.asyncio
    async def test__close_during_iteration__ends_iteration(self) -> None:
        """Closing a subscription wakes a consumer blocked in async for."""
        hub = NotificationHub()
        subscription = hub.subscribe()
        received: list[ChangeEvent] = []

        async def consume() -> None:
            async for event in subscription:
                received.append(event)

        task = asyncio.create_task(consume())
        hub.publish()
        await asyncio.sleep(0.01)

        subscription.close()
        await asyncio.wait_for(task, 1)

        assert len(received) == 1
        assert hub.subscriber_count == 0

    @pytest.mark.asyncio
    async def test__close_while_waiting__get_returns_none(self) -> None:
        """A pending get() returns None when the subscription is closed."""
        hub = NotificationHub()
        subscription = hub.subscribe()

        waiter = asyncio.create_task(subscription.get())
        await asyncio.sleep(0.01)
        subscription.close()

        assert await asyncio.wait_for(waiter, 1) is None

    @pytest.mark.asyncio
    async def test__close_from_other_thread__ends_iteration(self) -> None:
        """Closing off the event loop still wakes the consumer."""
        hub = NotificationHub()
        subscription = hub.subscribe()

        async def consume() -> list[ChangeEvent]:
            return [event async for event in subscription]

        task = asyncio.create_task(consume())
        await asyncio.sleep(0.01)
        await asyncio.to_thread(subscription.close)

        assert await asyncio.wait_for(task, 1) == []


class TestPublishFromThread:
    """Tests for publishing off the event loop."""

    @pytest.mark.asyncio
    async def test__publish_from_thread__wakes_waiting_subscriber(self) -> None:
        """An event published from another thread reaches a waiting consumer promptly."""
        hub = NotificationHub()
        subscription = hub.subscribe()
        timer = threading.Timer(0.05, hub.publish)

        timer.start()
        try:
            event = await asyncio.wait_for(subscription.get(), 1.0)
        finally:
            timer.join()

        assert isinstance(event, ChangeEvent)

    @pytest.mark.asyncio
    async def test__publish_from_thread__counts_subscribers(self) -> None:
        """Report every open subscription as a recipient."""
        hub = NotificationHub()
        first = hub.subscribe()
        second = hub.subscribe()

        delivered = await asyncio.to_thread(hub.publish)

        assert delivered == 2
        assert len(await drain(first)) == 1
        assert len(await drain(second)) == 1
