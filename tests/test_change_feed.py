import threading

from store.change_feed import DRIVERS, RIDES, ChangeDelta, DeltaKind


def _delta(collection=RIDES, record_id="r1", kind=DeltaKind.UPDATED):
    return ChangeDelta(collection=collection, kind=kind, record_id=record_id)


def test_subscribers_only_see_their_collection(feed):
    rides = feed.subscribe(RIDES)
    everything = feed.subscribe()

    assert feed.publish(_delta(RIDES)) == 2
    assert feed.publish(_delta(DRIVERS, "d1")) == 1

    assert [delta.record_id for delta in rides.drain()] == ["r1"]
    assert [delta.record_id for delta in everything.drain()] == ["r1", "d1"]


def test_predicate_filters_deltas(feed):
    subscription = feed.subscribe(RIDES, predicate=lambda delta: delta.kind == DeltaKind.CREATED)
    feed.publish(_delta(kind=DeltaKind.UPDATED))
    feed.publish(_delta(kind=DeltaKind.CREATED))

    assert [delta.kind for delta in subscription.drain()] == [DeltaKind.CREATED]


def test_unsubscribe_stops_delivery(feed):
    subscription = feed.subscribe(RIDES)
    subscription.unsubscribe()

    assert subscription.closed
    assert feed.subscriber_count() == 0
    assert feed.publish(_delta()) == 0
    assert subscription.get(timeout=0.01) is None


def test_context_manager_closes_the_subscription(feed):
    with feed.subscribe() as subscription:
        assert feed.subscriber_count() == 1
    assert subscription.closed
    assert feed.subscriber_count() == 0


def test_get_times_out_when_nothing_arrives(feed):
    assert feed.subscribe().get(timeout=0.01) is None


def test_iteration_ends_when_the_subscription_closes(feed):
    subscription = feed.subscribe(RIDES)
    received = []

    def consume():
        for delta in subscription:
            received.append(delta.record_id)

    consumer = threading.Thread(target=consume)
    consumer.start()
    for index in range(3):
        feed.publish(_delta(record_id=f"r{index}"))
    subscription.close()
    consumer.join(timeout=5)

    assert not consumer.is_alive()
    assert received == ["r0", "r1", "r2"]
