"""
Shared fixtures for the test suite.

Each test case gets its own in-memory SQLite database built with the same
engine factory the application uses (BEGIN IMMEDIATE transactions, foreign
keys enforced).
"""

import unittest
from datetime import datetime, timedelta
from decimal import Decimal

from sqlalchemy.orm import sessionmaker

from care_scheduler.context import RequestContext
from care_scheduler.database import Base, create_store_engine
from care_scheduler.models import UserRole
from care_scheduler.store import EntityKind, EntityStore

# 2026-01-05 is a Monday
MONDAY = datetime(2026, 1, 5)

WEEKDAY_MORNINGS = {
    day: {"morning": "available", "afternoon": ""}
    for day in ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday")
}


def at(day_offset: int, hour: int, minute: int = 0) -> datetime:
    """A time in the week starting Monday 2026-01-05"""
    return MONDAY + timedelta(days=day_offset, hours=hour, minutes=minute)


class StoreTestCase(unittest.TestCase):
    """Fresh database per test plus factory helpers"""

    def setUp(self):
        self.engine = create_store_engine("sqlite://", timeout=1)
        Base.metadata.create_all(bind=self.engine)
        self.db = sessionmaker(autocommit=False, autoflush=False, bind=self.engine)()
        self.store = EntityStore(self.db)
        self._counter = 0

        self.admin = self.make_worker(first_name="Ada", user_role=UserRole.admin)
        self.admin_ctx = RequestContext.for_worker(self.admin)

    def tearDown(self):
        self.db.close()
        self.engine.dispose()

    def _next(self) -> int:
        self._counter += 1
        return self._counter

    def _insert(self, kind: EntityKind, values: dict):
        with self.store.transaction():
            return self.store.insert(kind, values)

    def make_worker(self, **overrides):
        n = self._next()
        values = {
            "first_name": f"Worker{n}",
            "last_name": "Test",
            "email": f"worker{n}@example.com",
            "role": "Caregiver",
            "availability": WEEKDAY_MORNINGS,
            "must_change_password": False,
        }
        values.update(overrides)
        return self._insert(EntityKind.worker, values)

    def make_client(self, **overrides):
        n = self._next()
        values = {
            "first_name": f"Client{n}",
            "last_name": "Test",
            "email": f"client{n}@example.com",
            "phone": "5550100",
            "address": f"{n} Main Street",
        }
        values.update(overrides)
        return self._insert(EntityKind.client, values)

    def make_service(self, **overrides):
        values = {
            "name": f"Home visit {self._next()}",
            "duration_minutes": 60,
            "base_price": Decimal("45.00"),
        }
        values.update(overrides)
        return self._insert(EntityKind.service, values)

    def make_appointment(self, worker, start, end, client=None, service=None, **overrides):
        values = {
            "worker_id": worker.id,
            "client_id": (client or self.make_client()).id,
            "service_id": (service or self.make_service()).id,
            "start_time": start,
            "end_time": end,
            "status": "scheduled",
            "location": "Client home",
        }
        values.update(overrides)
        return self._insert(EntityKind.appointment, values)

    @staticmethod
    def ctx_for(worker) -> RequestContext:
        return RequestContext.for_worker(worker)
