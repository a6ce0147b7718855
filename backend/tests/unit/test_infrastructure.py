"""Unit tests for partition locks, the notification publisher and settings."""

import threading
import time
import uuid

import pytest
from pydantic import ValidationError

from court_scheduling.core.config import Settings
from court_scheduling.services.notification_service import (
    AdjournmentResolved,
    NotificationPublisher,
)
from court_scheduling.services.partition_lock import PartitionLockRegistry


@pytest.mark.unit
class TestPartitionLockRegistry:
    """Test per-partition serialisation."""

    def test_same_key_same_lock(self):
        registry = PartitionLockRegistry()

        assert registry.lock_for("Colombo|Court-1|2025-03-10") is registry.lock_for("Colombo|Court-1|2025-03-10")

    def test_different_keys_do_not_contend(self):
        registry = PartitionLockRegistry()

        assert registry.lock_for("Colombo|Court-1|2025-03-10") is not registry.lock_for("Colombo|Court-2|2025-03-10")

    def test_hold_serialises_same_partition(self, db):
        """Test two holders of one partition never overlap."""
        registry = PartitionLockRegistry()
        key = "Colombo|Court-1|2025-03-10"
        inside = []
        overlaps = []

        def worker():
            with registry.hold(db, key):
                inside.append(1)
                if len(inside) > 1:
                    overlaps.append(True)
                time.sleep(0.02)
                inside.pop()

        threads = [threading.Thread(target=worker) for _ in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert overlaps == []

    def test_lock_released_on_error(self, db):
        """Test an exception inside the block frees the partition."""
        registry = PartitionLockRegistry()
        key = "Colombo|Court-1|2025-03-10"

        with pytest.raises(RuntimeError):
            with registry.hold(db, key):
                raise RuntimeError("boom")

        assert registry.lock_for(key).locked() is False


@pytest.mark.unit
class TestNotificationPublisher:
    """Test fire-and-forget event delivery."""

    def _event(self):
        return AdjournmentResolved(case_id=uuid.uuid4(), adjournment_request_id=uuid.uuid4(), accepted=False)

    def test_subscribers_receive_events(self):
        publisher = NotificationPublisher()
        received = []
        publisher.subscribe(received.append)

        event = self._event()
        publisher.emit(event)

        assert received == [event]

    def test_failing_handler_does_not_raise(self):
        """Test a broken subscriber neither raises nor blocks the others."""
        publisher = NotificationPublisher()
        received = []

        def broken(event):
            raise RuntimeError("smtp down")

        publisher.subscribe(broken)
        publisher.subscribe(received.append)

        publisher.emit(self._event())

        assert len(received) == 1

    def test_subscribe_is_idempotent_and_unsubscribe_works(self):
        publisher = NotificationPublisher()
        received = []
        publisher.subscribe(received.append)
        publisher.subscribe(received.append)

        publisher.emit(self._event())
        publisher.unsubscribe(received.append)
        publisher.emit(self._event())

        assert len(received) == 1


@pytest.mark.unit
class TestSettings:
    """Test configuration validation."""

    def test_conflict_mode_normalised(self):
        s = Settings(DATABASE_URL="sqlite://", JWT_SECRET_KEY="x", CONFLICT_CHECK_MODE=" EXACT ")
        assert s.CONFLICT_CHECK_MODE == "exact"

    def test_unknown_conflict_mode_rejected(self):
        with pytest.raises(ValidationError):
            Settings(DATABASE_URL="sqlite://", JWT_SECRET_KEY="x", CONFLICT_CHECK_MODE="fuzzy")

    def test_cors_origins_accept_comma_list(self):
        s = Settings(DATABASE_URL="sqlite://", JWT_SECRET_KEY="x", CORS_ORIGINS="http://a.test, http://b.test")
        assert s.cors_origins_list == ["http://a.test", "http://b.test"]
