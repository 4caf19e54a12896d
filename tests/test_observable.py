"""Tests for the latest-value snapshot channel."""

from workout_tracker.core.observable import Channel


class TestChannel:
    def test_new_subscriber_gets_latest(self):
        channel: Channel[int] = Channel("numbers", 1)
        channel.publish(2)
        seen = []
        channel.subscribe(seen.append)
        assert seen == [2]
        assert channel.latest == 2

    def test_no_delivery_before_first_snapshot(self):
        channel: Channel[int] = Channel("numbers")
        seen = []
        channel.subscribe(seen.append)
        assert seen == []

    def test_unsubscribe(self):
        channel: Channel[int] = Channel("numbers")
        seen = []
        sub = channel.subscribe(seen.append)
        channel.publish(1)
        sub.unsubscribe()
        sub.unsubscribe()
        channel.publish(2)
        assert seen == [1]
        assert sub.active is False
        assert channel.subscriber_count == 0

    def test_failing_subscriber_does_not_block_others(self):
        channel: Channel[int] = Channel("numbers")
        seen = []

        def broken(_):
            raise RuntimeError("boom")

        channel.subscribe(broken)
        channel.subscribe(seen.append)
        channel.publish(5)
        assert seen == [5]
