import asyncio

from notelinks.data.models import Connections
from notelinks.events import ConnectionsUpdate, Event, EventDispatcher, EventType
from notelinks.session import ConnectionsSession


def tag_document(*tags):
    return {
        "type": "doc",
        "content": [{"type": "paragraph", "content": [{"type": "tag", "attrs": {"tag": tag}} for tag in tags]}],
    }


def manual_dispatcher():
    scheduled = []
    return EventDispatcher(scheduler=scheduled.append), scheduled


def test_connection_updates_are_deferred_and_coalesced():
    dispatcher, scheduled = manual_dispatcher()
    received = []
    dispatcher.add_listener(EventType.CONNECTIONS_UPDATED, received.append)
    session = ConnectionsSession(dispatcher, note_id="n1")

    first = session.content_changed(tag_document("a"))
    second = session.content_changed(tag_document("a", "b"))

    assert first.tags == ["a"]
    assert second.tags == ["a", "b"]
    assert received == []
    assert dispatcher.pending_count == 1
    assert len(scheduled) == 1

    scheduled[0]()

    assert len(received) == 1
    update = received[0].data
    assert isinstance(update, ConnectionsUpdate)
    assert update.note_id == "n1"
    assert update.connections.tags == ["a", "b"]
    assert dispatcher.pending_count == 0


def test_updates_for_different_notes_are_kept_apart():
    dispatcher, scheduled = manual_dispatcher()
    received = []
    dispatcher.add_listener(EventType.CONNECTIONS_UPDATED, received.append)

    dispatcher.dispatch_connections_updated("n1", Connections(tags=["a"]))
    dispatcher.dispatch_connections_updated("n2", Connections(tags=["b"]))

    assert dispatcher.process_pending() == 2
    assert [event.data.note_id for event in received] == ["n1", "n2"]


def test_selection_only_changes_reuse_cached_connections():
    dispatcher, _ = manual_dispatcher()
    session = ConnectionsSession(dispatcher)
    opened = session.open("n1", tag_document("x"))
    dispatcher.process_pending()

    assert session.content_changed(tag_document("y"), doc_changed=False) is opened
    assert dispatcher.pending_count == 0
    assert session.connections.tags == ["x"]


def test_without_event_loop_events_wait_for_process_pending():
    dispatcher = EventDispatcher()
    received = []
    dispatcher.add_listener(EventType.CONNECTIONS_UPDATED, received.append)

    dispatcher.dispatch_connections_updated("n1", Connections())

    assert received == []
    assert dispatcher.process_pending() == 1
    assert len(received) == 1


def test_running_event_loop_delivers_on_next_iteration():
    received = []

    async def scenario():
        dispatcher = EventDispatcher()
        dispatcher.add_listener(EventType.CONNECTIONS_UPDATED, received.append)
        ConnectionsSession(dispatcher, "n1").content_changed(tag_document("live"))
        assert received == []
        await asyncio.sleep(0)

    asyncio.run(scenario())

    assert [event.data.connections.tags for event in received] == [["live"]]


def test_failing_listener_does_not_block_others(caplog):
    dispatcher = EventDispatcher()
    targets = []

    def broken(event):
        raise RuntimeError("boom")

    dispatcher.add_listener(EventType.NAVIGATE_TO_NOTE, broken)
    dispatcher.add_listener(EventType.NAVIGATE_TO_NOTE, lambda event: targets.append(event.data))

    with caplog.at_level("ERROR"):
        ConnectionsSession(dispatcher).open_crosslink("n42")

    assert targets == ["n42"]
    assert "Error in NAVIGATE_TO_NOTE listener" in caplog.text


def test_removed_listener_stops_receiving():
    dispatcher = EventDispatcher()
    received = []
    dispatcher.add_listener(EventType.NAVIGATE_TO_NOTE, received.append)
    dispatcher.remove_listener(EventType.NAVIGATE_TO_NOTE, received.append)
    dispatcher.remove_listener(EventType.CONNECTIONS_UPDATED, received.append)

    dispatcher.dispatch(Event(EventType.NAVIGATE_TO_NOTE, "n1"))

    assert received == []
