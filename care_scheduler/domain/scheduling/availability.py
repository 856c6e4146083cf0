"""
Availability Service

Maps a worker's declared weekly availability against a candidate start time.
The result is advisory only: it never blocks booking, the caller shows it as
a warning.

Availability is a fixed 7 days x 2 slots table of booleans. It is persisted
in the legacy JSON shape used by the worker form:

    {"Monday": {"morning": "available", "afternoon": ""}, ...}

and parsed into the table at the boundary; only "available" counts.
"""

import logging
from datetime import datetime
from enum import IntEnum
from typing import Mapping, Optional

from ...models import Worker

logger = logging.getLogger(__name__)

AVAILABLE = "available"

# Monday first, matching datetime.weekday()
DAY_LABELS = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")


class Slot(IntEnum):
    morning = 0  # 08:00-12:00
    afternoon = 1  # 13:00-17:00


def slot_for_hour(hour: int) -> Optional[Slot]:
    """[8, 12) -> morning, [13, 17) -> afternoon, anything else has no slot"""
    if 8 <= hour < 12:
        return Slot.morning
    if 13 <= hour < 17:
        return Slot.afternoon
    return None


class WeeklyAvailability:
    """Fixed-shape availability table indexed by (weekday, slot)"""

    __slots__ = ("_table",)

    def __init__(self, table=None):
        if table is None:
            table = [[False, False] for _ in DAY_LABELS]
        if len(table) != len(DAY_LABELS) or any(len(row) != len(Slot) for row in table):
            raise ValueError("Availability table must be 7 days x 2 slots")
        self._table = tuple(tuple(bool(v) for v in row) for row in table)

    @classmethod
    def from_mapping(cls, data: Optional[Mapping]) -> "WeeklyAvailability":
        """Parse the persisted day -> slot -> "available" shape; unknown keys are ignored"""
        table = [[False, False] for _ in DAY_LABELS]
        by_label = {label.lower(): index for index, label in enumerate(DAY_LABELS)}
        for day, slots in (data or {}).items():
            day_index = by_label.get(str(day).lower())
            if day_index is None or not isinstance(slots, Mapping):
                continue
            for slot in Slot:
                value = slots.get(slot.name)
                table[day_index][slot] = value is True or value == AVAILABLE
        return cls(table)

    def to_mapping(self) -> dict:
        return {
            label: {slot.name: AVAILABLE if self._table[day][slot] else "" for slot in Slot}
            for day, label in enumerate(DAY_LABELS)
        }

    def is_available(self, weekday: int, slot: Slot) -> bool:
        return self._table[weekday][slot]

    def __eq__(self, other) -> bool:
        return isinstance(other, WeeklyAvailability) and self._table == other._table

    def __repr__(self) -> str:
        return f"WeeklyAvailability({self.to_mapping()!r})"


def is_advisably_available(worker: Worker, start: datetime) -> Optional[bool]:
    """
    Advisory availability of ``worker`` for an appointment starting at ``start``.

    Uses the start time's own weekday and hour (no timezone conversion).

    Returns:
        True if the worker declared the slot available, False if not,
        None when the start hour falls outside both slots ("no opinion").
    """
    slot = slot_for_hour(start.hour)
    if slot is None:
        return None
    availability = WeeklyAvailability.from_mapping(worker.availability)
    return availability.is_available(start.weekday(), slot)


def availability_warning(worker: Worker, start: datetime) -> Optional[str]:
    """Warning text for the caller when the worker is not advisably available"""
    if is_advisably_available(worker, start) is False:
        day = DAY_LABELS[start.weekday()]
        slot = slot_for_hour(start.hour)
        logger.info(f"📅 Worker {worker.id} not marked available on {day} {slot.name}")
        return (
            f"{worker.full_name} may not be available at this time based on their schedule "
            f"({day} {slot.name})"
        )
    return None
