import pytest

from ideaboard.services.change_feed import ChangeFeed


def test_publish_reaches_subscribers_of_the_key_only():
    feed = ChangeFeed()
    received = []
    feed.subscribe("ideas", "s1", lambda topic, key, event: received.append((key, event)))
    feed.subscribe("ideas", "s2", lambda topic, key, event: received.append((key, event)))

    delivered = feed.publish("ideas", "s1", {"type": "created"})

    assert delivered == 1
    assert received == [("s1", {"type": "created"})]


def test_unsubscribe_stops_delivery():
    feed = ChangeFeed()
    received = []
    unsubscribe = feed.subscribe("session", "s1", lambda *args: received.append(args))

    unsubscribe()
    unsubscribe()

    assert feed.publish("session", "s1") == 0
    assert received == []
    assert feed.subscriber_count("session", "s1") == 0


def test_failing_listener_does_not_block_others():
    feed = ChangeFeed()
    received = []

    def broken(topic, key, event):
        raise RuntimeError("listener bug")

    feed.subscribe("votes", "r1", broken)
    feed.subscribe("votes", "r1", lambda topic, key, event: received.append(event))

    assert feed.publish("votes", "r1", {"count": 2}) == 1
    assert received == [{"count": 2}]


def test_unknown_topic_is_rejected():
    with pytest.raises(ValueError):
        ChangeFeed().subscribe("weather", "s1", lambda *args: None)
