"""
services/partition_lock.py

Serializes check-then-insert on a (district, courtroom, date) partition.

PostgreSQL: pg_advisory_xact_lock, released by the database at commit or
rollback, so it covers every API worker process.
Other dialects (SQLite for tests and local dev): one threading.Lock per
partition key inside this process.

Callers must commit or roll back inside the `with hold(...)` block.
"""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import text
from sqlalchemy.orm import Session

from court_scheduling.utils.helpers import stable_lock_id

logger = logging.getLogger(__name__)


class PartitionLockRegistry:
    def __init__(self):
        self._locks: dict[str, threading.Lock] = {}
        self._guard = threading.Lock()

    def lock_for(self, key: str) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = threading.Lock()
                self._locks[key] = lock
            return lock

    @contextmanager
    def hold(self, db: Session, key: str) -> Iterator[None]:
        if _is_postgres(db):
            db.execute(text("SELECT pg_advisory_xact_lock(:lock_id)"), {"lock_id": stable_lock_id(key)})
            logger.debug("Advisory lock acquired for partition %s", key)
            yield
            return

        lock = self.lock_for(key)
        with lock:
            logger.debug("Process lock acquired for partition %s", key)
            yield


def _is_postgres(db: Session) -> bool:
    bind = db.get_bind()
    return bind is not None and bind.dialect.name == "postgresql"
