"""
Tests for the fan-out hubs.
"""
import asyncio
import gc

import pytest

from sse_bridge.services.hub import (
    BroadcastHub,
    QueueHub,
    SubscriptionClosed,
    SubscriptionLagged,
    create_hub,
)


@pytest.fixture(params=["broadcast", "queue"])
def hub(request):
    """Each contract test runs against both hub designs."""
    hub = create_hub(request.param, buffer_size=16)
    yield hub
    hub.close()


async def drain(subscription, count):
    return [await asyncio.wait_for(subscription.recv(), 1) for _ in range(count)]


class TestFanoutContract:
    """Behaviour shared by both hub designs."""

    async def test_single_subscriber_receives_in_order(self, hub):
        sub = hub.subscribe()

        for message in ["a", "b", "c"]:
            hub.publish(message)

        assert await drain(sub, 3) == ["a", "b", "c"]

    async def test_every_subscriber_receives_every_message(self, hub):
        subs = [hub.subscribe() for _ in range(5)]

        for i in range(10):
            assert hub.publish(str(i)) == 5

        for sub in subs:
            assert await drain(sub, 10) == [str(i) for i in range(10)]

    async def test_late_subscriber_gets_no_replay(self, hub):
        sub_a = hub.subscribe()
        hub.publish("x")
        sub_b = hub.subscribe()
        hub.publish("y")

        assert await drain(sub_a, 2) == ["x", "y"]
        assert await drain(sub_b, 1) == ["y"]
        with pytest.raises(asyncio.TimeoutError):
            await asyncio.wait_for(sub_b.recv(), 0.05)

    async def test_recv_waits_for_next_publish(self, hub):
        sub = hub.subscribe()
        pending = asyncio.create_task(sub.recv())
        await asyncio.sleep(0)
        assert not pending.done()

        hub.publish("later")

        assert await asyncio.wait_for(pending, 1) == "later"

    async def test_publish_without_subscribers(self, hub):
        assert hub.publish("nobody") == 0

    async def test_publish_never_blocks_on_stalled_subscribers(self, hub):
        stalled = [hub.subscribe() for _ in range(50)]

        for i in range(2000):
            hub.publish(f"msg-{i}")

        assert hub.subscriber_count == len(stalled)

    async def test_closed_subscriber_is_removed(self, hub):
        sub = hub.subscribe()
        other = hub.subscribe()
        assert hub.subscriber_count == 2

        sub.close()
        hub.publish("after-close")

        assert hub.subscriber_count == 1
        assert await drain(other, 1) == ["after-close"]
        with pytest.raises(SubscriptionClosed):
            await sub.recv()

    async def test_dropped_subscriber_is_removed(self, hub):
        sub = hub.subscribe()
        assert hub.subscriber_count == 1

        del sub
        gc.collect()
        hub.publish("after-drop")

        assert hub.subscriber_count == 0

    async def test_close_wakes_pending_recv(self, hub):
        sub = hub.subscribe()
        pending = asyncio.create_task(sub.recv())
        await asyncio.sleep(0)

        sub.close()

        with pytest.raises(SubscriptionClosed):
            await asyncio.wait_for(pending, 1)

    async def test_hub_close_ends_subscriptions_after_backlog(self, hub):
        sub = hub.subscribe()
        hub.publish("last")

        hub.close()

        assert await drain(sub, 1) == ["last"]
        with pytest.raises(SubscriptionClosed):
            await sub.recv()
        assert hub.publish("ignored") == 0

    async def test_subscribe_after_close_fails(self, hub):
        hub.close()

        with pytest.raises(SubscriptionClosed):
            hub.subscribe()

    async def test_async_iteration_stops_on_close(self, hub):
        sub = hub.subscribe()
        hub.publish("one")
        hub.publish("two")
        hub.close()

        assert [message async for message in sub] == ["one", "two"]

    async def test_context_manager_closes_subscription(self, hub):
        async with hub.subscribe() as sub:
            assert hub.subscriber_count == 1

        assert sub.closed
        assert hub.subscriber_count == 0


class TestBroadcastHub:
    """Bounded buffer behaviour."""

    async def test_slow_subscriber_lags_without_affecting_others(self):
        hub = BroadcastHub(capacity=4)
        slow = hub.subscribe()
        fast = hub.subscribe()
        received = []

        for i in range(10):
            hub.publish(str(i))
            received.append(await fast.recv())

        assert received == [str(i) for i in range(10)]

        with pytest.raises(SubscriptionLagged) as exc_info:
            await slow.recv()
        assert exc_info.value.skipped == 6

        assert await drain(slow, 4) == ["6", "7", "8", "9"]

    async def test_subscriber_within_capacity_does_not_lag(self):
        hub = BroadcastHub(capacity=4)
        sub = hub.subscribe()

        for i in range(4):
            hub.publish(str(i))

        assert await drain(sub, 4) == ["0", "1", "2", "3"]

    async def test_lag_is_reported_again_if_still_behind(self):
        hub = BroadcastHub(capacity=2)
        sub = hub.subscribe()

        for i in range(5):
            hub.publish(str(i))
        with pytest.raises(SubscriptionLagged):
            await sub.recv()

        for i in range(5, 10):
            hub.publish(str(i))
        with pytest.raises(SubscriptionLagged) as exc_info:
            await sub.recv()

        assert exc_info.value.skipped == 5
        assert await drain(sub, 2) == ["8", "9"]

    async def test_buffer_is_bounded(self):
        hub = BroadcastHub(capacity=8)
        hub.subscribe()

        for i in range(1000):
            hub.publish(str(i))

        assert len(hub._buffer) == 8

    def test_invalid_capacity(self):
        with pytest.raises(ValueError):
            BroadcastHub(capacity=0)


class TestQueueHub:
    """Unbounded per-subscriber queues."""

    async def test_stalled_subscriber_keeps_every_message(self):
        hub = QueueHub()
        sub = hub.subscribe()

        for i in range(3000):
            hub.publish(str(i))

        assert sub.backlog == 3000
        assert await drain(sub, 3) == ["0", "1", "2"]


class TestCreateHub:
    def test_modes(self):
        assert isinstance(create_hub("broadcast", 32), BroadcastHub)
        assert create_hub("broadcast", 32).capacity == 32
        assert isinstance(create_hub("queue"), QueueHub)

    def test_unknown_mode(self):
        with pytest.raises(ValueError):
            create_hub("ring")
