"""Tests for table events."""

from core.table import EventEmitter, EventType


class TestEventEmitter:
    """Tests for EventEmitter."""

    def test_type_and_catch_all_subscribers(self):
        """Test handlers for one type and for all types both fire."""
        emitter = EventEmitter()
        drawn, everything = [], []
        emitter.subscribe(drawn.append, EventType.PLAYER_DREW)
        emitter.subscribe(everything.append)

        emitter.emit_new(EventType.PLAYER_DREW, "t1")
        emitter.emit_new(EventType.HAND_CLEARED, "t1")

        assert [e.event_type for e in drawn] == [EventType.PLAYER_DREW]
        assert len(everything) == 2

    def test_unsubscribe(self):
        emitter = EventEmitter()
        seen = []
        emitter.subscribe(seen.append)
        emitter.unsubscribe(seen.append)
        emitter.unsubscribe(seen.append)
        emitter.emit_new(EventType.TABLE_RESET, "t1")
        assert seen == []

    def test_history_is_bounded(self):
        """Test only the most recent events are kept."""
        emitter = EventEmitter(history_size=3)
        for i in range(10):
            emitter.emit_new(EventType.INPUT_UPDATED, f"t{i}")

        assert [e.table_id for e in emitter.history] == ["t7", "t8", "t9"]

    def test_clear_history(self):
        emitter = EventEmitter()
        emitter.emit_new(EventType.TABLE_CREATED, "t1", name="Table 1")
        assert emitter.history[0].data == {"name": "Table 1"}
        emitter.clear_history()
        assert emitter.history == []
