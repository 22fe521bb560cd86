from tests.conftest import FakeConnection


async def test_notify_delivers_to_registered_handle(registry, notifier):
    handle = FakeConnection("h1")
    registry.register(1, handle)

    notifier.notify(1, "newMessage", {"content": "hi"})
    await notifier.drain()

    assert handle.events == [("newMessage", {"content": "hi"})]


async def test_notify_offline_user_is_dropped(registry, notifier):
    notifier.notify(99, "newMatch", {"matchId": 1})
    await notifier.drain()

    assert notifier.pending == 0


async def test_notify_goes_to_latest_handle_only(registry, notifier):
    h1, h2 = FakeConnection("h1"), FakeConnection("h2")
    registry.register(3, h1)
    registry.register(3, h2)

    notifier.notify(3, "newMessage", {"n": 1})
    await notifier.drain()

    assert h1.events == []
    assert h2.events == [("newMessage", {"n": 1})]

    registry.unregister(h2)
    assert 3 not in registry.snapshot()


async def test_transport_failure_is_swallowed(registry, notifier):
    broken = FakeConnection("broken", fail=True)
    healthy = FakeConnection("healthy")
    registry.register(1, broken)
    registry.register(2, healthy)

    notifier.notify(1, "newMessage", {})
    notifier.notify(2, "newMessage", {})
    await notifier.drain()

    assert healthy.events == [("newMessage", {})]


async def test_broadcast_reaches_every_connection(registry, notifier):
    handles = [FakeConnection(f"h{i}") for i in range(3)]
    for user_id, handle in enumerate(handles, start=1):
        registry.register(user_id, handle)

    notifier.broadcast("getOnlineUsers", registry.snapshot())
    await notifier.drain()

    for handle in handles:
        assert handle.of("getOnlineUsers") == [[1, 2, 3]]
