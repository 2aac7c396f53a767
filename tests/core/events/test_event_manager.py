"""
Unit tests for the Event Manager system.

Tests the event-driven communication system that lets the inventory,
transfer and combat managers report to the log without knowing about it.
"""

from unittest.mock import Mock

from src.core.events.event_manager import EventManager, EventPriority, QueuedEvent
from src.core.events.events import EventType, ManagerInitialized, LogMessage, ItemEquipped
from src.core.data import LogLevel


def make_log(text: str, step: int = 0) -> LogMessage:
    return LogMessage(step=step, message=text, category="SYSTEM", level=LogLevel.INFO, source="test")


class TestQueuedEvent:
    """Test QueuedEvent ordering."""

    def test_queued_event_creation(self):
        event = ManagerInitialized(step=1, manager_name="Test")
        queued = QueuedEvent(event=event, priority=EventPriority.HIGH, source="test")

        assert queued.event == event
        assert queued.priority == EventPriority.HIGH
        assert queued.source == "test"

    def test_ordering_by_priority(self):
        event = ManagerInitialized(step=1, manager_name="Test")
        critical = QueuedEvent(event, EventPriority.CRITICAL, sequence=4)
        high = QueuedEvent(event, EventPriority.HIGH, sequence=3)
        normal = QueuedEvent(event, EventPriority.NORMAL, sequence=2)
        low = QueuedEvent(event, EventPriority.LOW, sequence=1)

        assert sorted([low, normal, critical, high]) == [critical, high, normal, low]

    def test_ordering_by_sequence_within_priority(self):
        event = ManagerInitialized(step=1, manager_name="Test")
        first = QueuedEvent(event, EventPriority.NORMAL, sequence=1)
        second = QueuedEvent(event, EventPriority.NORMAL, sequence=2)

        assert first < second


class TestEventTypes:
    """Test event dataclasses."""

    def test_event_type_is_set(self):
        assert ManagerInitialized(step=0, manager_name="X").event_type == EventType.MANAGER_INITIALIZED
        assert ItemEquipped(step=0, item=5, item_name="WoodenArmor").event_type == EventType.ITEM_EQUIPPED
        assert make_log("hi").event_type == EventType.LOG_MESSAGE


class TestEventManager:
    """Test EventManager functionality."""

    def test_event_manager_creation(self, event_manager):
        stats = event_manager.get_statistics()
        assert not event_manager.enable_debug_logging
        assert stats['events_published'] == 0
        assert stats['events_processed'] == 0

    def test_publish_queues_until_processed(self, event_manager):
        subscriber = Mock()
        event_manager.subscribe(EventType.LOG_MESSAGE, subscriber)

        event = make_log("queued")
        event_manager.publish(event)

        subscriber.assert_not_called()
        assert event_manager.has_queued_events()

        assert event_manager.process_events() == 1
        subscriber.assert_called_once_with(event)
        assert not event_manager.has_queued_events()

    def test_subscribers_only_receive_their_type(self, event_manager):
        log_subscriber = Mock()
        init_subscriber = Mock()
        event_manager.subscribe(EventType.LOG_MESSAGE, log_subscriber)
        event_manager.subscribe(EventType.MANAGER_INITIALIZED, init_subscriber)

        event_manager.publish(make_log("a"))
        event_manager.process_events()

        log_subscriber.assert_called_once()
        init_subscriber.assert_not_called()

    def test_universal_subscriber_receives_everything(self, event_manager):
        subscriber = Mock()
        event_manager.subscribe_all(subscriber)

        event_manager.publish(make_log("a"))
        event_manager.publish(ManagerInitialized(step=0, manager_name="X"))
        event_manager.process_events()

        assert subscriber.call_count == 2

    def test_publish_immediate(self, event_manager):
        subscriber = Mock()
        event_manager.subscribe(EventType.LOG_MESSAGE, subscriber)

        event_manager.publish_immediate(make_log("now"))

        subscriber.assert_called_once()
        assert not event_manager.has_queued_events()

    def test_events_processed_in_publish_order(self, event_manager):
        received = []
        event_manager.subscribe(EventType.LOG_MESSAGE, lambda event: received.append(event.message))

        for text in ["one", "two", "three"]:
            event_manager.publish(make_log(text))
        event_manager.process_events()

        assert received == ["one", "two", "three"]

    def test_priority_overrides_publish_order(self, event_manager):
        received = []
        event_manager.subscribe(EventType.LOG_MESSAGE, lambda event: received.append(event.message))

        event_manager.publish(make_log("normal"))
        event_manager.publish(make_log("urgent"), priority=EventPriority.HIGH)
        event_manager.process_events()

        assert received == ["urgent", "normal"]

    def test_events_published_by_subscribers_are_processed(self, event_manager):
        received = []

        def relay(event):
            event_manager.publish(make_log(f"relayed {event.manager_name}"))

        event_manager.subscribe(EventType.MANAGER_INITIALIZED, relay)
        event_manager.subscribe(EventType.LOG_MESSAGE, lambda event: received.append(event.message))

        event_manager.publish(ManagerInitialized(step=0, manager_name="X"))
        assert event_manager.process_events() == 2
        assert received == ["relayed X"]

    def test_max_events_leaves_remainder_queued(self, event_manager):
        for text in ["a", "b", "c"]:
            event_manager.publish(make_log(text))

        assert event_manager.process_events(max_events=2) == 2
        assert event_manager.get_statistics()['events_queued'] == 1
        assert event_manager.process_events() == 1

    def test_failing_subscriber_does_not_stop_delivery(self, event_manager):
        failing = Mock(side_effect=RuntimeError("boom"))
        working = Mock()
        event_manager.subscribe(EventType.LOG_MESSAGE, failing)
        event_manager.subscribe(EventType.LOG_MESSAGE, working)

        event_manager.publish(make_log("x"))
        event_manager.process_events()

        working.assert_called_once()
        assert event_manager.get_statistics()['subscriber_errors'] == 1

    def test_subscriber_errors_reported_to_debug_callback(self):
        event_manager = EventManager(enable_debug_logging=True)
        debug_lines = []
        event_manager.set_debug_callback(debug_lines.append)

        failing = Mock(side_effect=RuntimeError("boom"))
        failing.__name__ = "failing"
        event_manager.subscribe(EventType.LOG_MESSAGE, failing)
        event_manager.publish(make_log("x"))
        event_manager.process_events()

        assert any("Error in subscriber failing: boom" in line for line in debug_lines)

    def test_unsubscribe(self, event_manager):
        subscriber = Mock()
        event_manager.subscribe(EventType.LOG_MESSAGE, subscriber)

        assert event_manager.unsubscribe(EventType.LOG_MESSAGE, subscriber) is True
        assert event_manager.unsubscribe(EventType.LOG_MESSAGE, subscriber) is False

        event_manager.publish(make_log("x"))
        event_manager.process_events()
        subscriber.assert_not_called()

    def test_unsubscribe_all(self, event_manager):
        subscriber = Mock()
        event_manager.subscribe_all(subscriber)
        assert event_manager.unsubscribe_all(subscriber) is True
        assert event_manager.unsubscribe_all(subscriber) is False

    def test_recent_events(self, event_manager):
        event_manager.publish(make_log("x", step=3), source="tester")
        event_manager.process_events()

        recent = event_manager.get_recent_events(1)
        assert recent[0]['event_type'] == "LogMessage"
        assert recent[0]['step'] == 3
        assert recent[0]['source'] == "tester"

    def test_clear_queue_and_shutdown(self, event_manager):
        event_manager.publish(make_log("x"))
        assert event_manager.clear_queue() == 1

        event_manager.subscribe(EventType.LOG_MESSAGE, Mock())
        event_manager.shutdown()
        assert event_manager.get_statistics()['subscribers_count'] == 0
