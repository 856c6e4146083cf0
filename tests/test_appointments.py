"""
Tests for the appointment lifecycle (domain/appointments/service.py)

Covers double-booking prevention on create and update, self-exclusion,
cancellation, advisory warnings and the invoice delete guard.
"""

from datetime import datetime, timedelta, timezone
from unittest import mock

from care_scheduler.context import RequestContext
from care_scheduler.domain.appointments.schemas import AppointmentCreate, AppointmentUpdate
from care_scheduler.domain.appointments.service import AppointmentService
from care_scheduler.errors import (
    ConstraintViolation,
    HasDependents,
    NotFound,
    PermissionDenied,
    SchedulingConflict,
    ValidationError,
)
from care_scheduler.models_appointment import NO_OVERLAP_CONSTRAINT
from care_scheduler.store import EntityKind

from .base import StoreTestCase, at


class AppointmentTestCase(StoreTestCase):
    def setUp(self):
        super().setUp()
        self.service = AppointmentService(self.db)
        self.worker = self.make_worker()
        self.client = self.make_client()
        self.care = self.make_service()
        self.ctx = self.ctx_for(self.worker)

    def book(self, start, end, worker=None, **extra):
        data = AppointmentCreate(
            worker_id=(worker or self.worker).id,
            client_id=self.client.id,
            service_id=self.care.id,
            start_time=start,
            end_time=end,
            location="Client home",
            **extra,
        )
        appointment, _warnings = self.service.create_appointment(data, self.ctx)
        return appointment

    def assert_no_overlaps(self):
        rows = self.store.find(
            EntityKind.appointment, {"status": ["!=", "cancelled"]}, order_by="start_time"
        )
        by_worker = {}
        for row in rows:
            by_worker.setdefault(row.worker_id, []).append(row)
        for appointments in by_worker.values():
            for earlier, later in zip(appointments, appointments[1:]):
                self.assertLessEqual(earlier.end_time, later.start_time)


class TestCreateAppointment(AppointmentTestCase):
    def test_create_defaults_to_scheduled(self):
        appointment = self.book(at(0, 10), at(0, 11))
        self.assertEqual(appointment.status, "scheduled")
        self.assertEqual(appointment.worker_id, self.worker.id)

    def test_overlapping_create_fails(self):
        first = self.book(at(0, 10), at(0, 11))
        with self.assertRaises(SchedulingConflict) as cm:
            self.book(at(0, 10, 30), at(0, 11, 30))
        self.assertEqual(cm.exception.conflicting_appointment_id, first.id)
        self.assertEqual(self.store.count(EntityKind.appointment), 1)

    def test_back_to_back_create_succeeds(self):
        self.book(at(0, 10), at(0, 11))
        self.book(at(0, 11), at(0, 12))
        self.assertEqual(self.store.count(EntityKind.appointment), 2)

    def test_same_slot_for_different_workers_succeeds(self):
        self.book(at(0, 10), at(0, 11))
        self.book(at(0, 10), at(0, 11), worker=self.make_worker())
        self.assertEqual(self.store.count(EntityKind.appointment), 2)

    def test_end_must_follow_start(self):
        with self.assertRaises(ValidationError):
            self.book(at(0, 11), at(0, 10))
        with self.assertRaises(ValidationError):
            self.book(at(0, 11), at(0, 11))

    def test_offset_aware_times_are_stored_as_utc(self):
        plus_two = timezone(timedelta(hours=2))
        appointment = self.book(
            datetime(2026, 1, 5, 12, tzinfo=plus_two), datetime(2026, 1, 5, 13, tzinfo=plus_two)
        )
        self.assertEqual(appointment.start_time, at(0, 10))
        self.assertEqual(appointment.end_time, at(0, 11))

    def test_mixed_awareness_in_one_window_is_accepted(self):
        appointment = self.book(at(0, 10), datetime(2026, 1, 5, 11, tzinfo=timezone.utc))
        self.assertEqual(appointment.end_time, at(0, 11))

    def test_overlap_is_detected_across_offsets(self):
        plus_two = timezone(timedelta(hours=2))
        self.book(datetime(2026, 1, 5, 10, tzinfo=plus_two), datetime(2026, 1, 5, 11, tzinfo=plus_two))
        with self.assertRaises(SchedulingConflict):
            self.book(
                datetime(2026, 1, 5, 8, 30, tzinfo=timezone.utc),
                datetime(2026, 1, 5, 9, 30, tzinfo=timezone.utc),
            )
        self.assertEqual(self.store.count(EntityKind.appointment), 1)

    def test_unknown_references_fail_not_found(self):
        data = AppointmentCreate(
            worker_id=self.worker.id,
            client_id="missing",
            service_id=self.care.id,
            start_time=at(0, 10),
            end_time=at(0, 11),
            location="Client home",
        )
        with self.assertRaises(NotFound):
            self.service.create_appointment(data, self.ctx)

        data = data.model_copy(update={"client_id": self.client.id, "worker_id": "missing"})
        with self.assertRaises(NotFound):
            self.service.create_appointment(data, self.ctx)

    def test_cancelled_slot_can_be_rebooked(self):
        first = self.book(at(0, 10), at(0, 11))
        self.service.update_appointment(first.id, AppointmentUpdate(status="cancelled"), self.ctx)
        self.book(at(0, 10, 30), at(0, 11, 30))
        self.assert_no_overlaps()

    def test_availability_warning_is_advisory(self):
        # Worker only declared weekday mornings
        data = AppointmentCreate(
            worker_id=self.worker.id,
            client_id=self.client.id,
            service_id=self.care.id,
            start_time=at(0, 14),
            end_time=at(0, 15),
            location="Client home",
        )
        appointment, warnings = self.service.create_appointment(data, self.ctx)
        self.assertIsNotNone(appointment.id)
        self.assertEqual(len(warnings), 1)
        self.assertIn("Monday afternoon", warnings[0])

    def test_no_warning_inside_declared_slot_or_outside_slots(self):
        for start, end in ((at(0, 9), at(0, 10)), (at(0, 19), at(0, 20))):
            data = AppointmentCreate(
                worker_id=self.worker.id,
                client_id=self.client.id,
                service_id=self.care.id,
                start_time=start,
                end_time=end,
                location="Client home",
            )
            _appointment, warnings = self.service.create_appointment(data, self.ctx)
            self.assertEqual(warnings, [])

    def test_exclusion_constraint_violation_maps_to_conflict(self):
        violation = ConstraintViolation("conflicting key value", constraint=NO_OVERLAP_CONSTRAINT)
        original_insert = self.store.insert

        def rejecting_insert(kind, values):
            if kind == EntityKind.appointment:
                raise violation
            return original_insert(kind, values)

        self.service.store.insert = rejecting_insert
        with self.assertRaises(SchedulingConflict):
            self.book(at(0, 10), at(0, 11))

    def test_forced_password_change_blocks_booking(self):
        self.ctx = RequestContext(
            worker_id=self.worker.id, email=self.worker.email, must_change_password=True
        )
        with self.assertRaises(PermissionDenied):
            self.book(at(0, 10), at(0, 11))


class TestUpdateAppointment(AppointmentTestCase):
    def setUp(self):
        super().setUp()
        self.a = self.book(at(0, 10), at(0, 11))
        self.b = self.book(at(0, 12), at(0, 13))

    def update(self, appointment_id, **fields):
        appointment, _warnings = self.service.update_appointment(
            appointment_id, AppointmentUpdate(**fields), self.ctx
        )
        return appointment

    def test_moving_onto_another_appointment_fails(self):
        with self.assertRaises(SchedulingConflict):
            self.update(self.a.id, start_time=at(0, 12, 30), end_time=at(0, 13, 30))
        unchanged = self.store.find_by_id(EntityKind.appointment, self.a.id)
        self.assertEqual(unchanged.start_time, at(0, 10))
        self.assertEqual(unchanged.end_time, at(0, 11))

    def test_extending_end_into_next_appointment_fails(self):
        with self.assertRaises(SchedulingConflict):
            self.update(self.a.id, end_time=at(0, 12, 15))

    def test_self_exclusion_with_reformatted_times(self):
        updated = self.update(
            self.a.id, start_time="2026-01-05T10:00:00.000000", end_time="2026-01-05T11:00:00"
        )
        self.assertEqual(updated.start_time, at(0, 10))

    def test_self_exclusion_with_offset_aware_times(self):
        updated = self.update(
            self.a.id,
            start_time=datetime(2026, 1, 5, 10, tzinfo=timezone.utc),
            end_time="2026-01-05T13:00:00+02:00",
        )
        self.assertEqual(updated.start_time, at(0, 10))
        self.assertEqual(updated.end_time, at(0, 11))

    def test_shifting_within_own_slot_succeeds(self):
        updated = self.update(self.a.id, start_time=at(0, 10, 30))
        self.assertEqual(updated.start_time, at(0, 10, 30))
        self.assertEqual(updated.end_time, at(0, 11))

    def test_effective_window_must_be_valid(self):
        with self.assertRaises(ValidationError):
            self.update(self.a.id, start_time=at(0, 11, 30))

    def test_reassigning_worker_checks_the_new_worker(self):
        other = self.make_worker()
        self.book(at(0, 10, 30), at(0, 11, 30), worker=other)
        with self.assertRaises(SchedulingConflict):
            self.update(self.a.id, worker_id=other.id)
        moved = self.update(self.b.id, worker_id=other.id)
        self.assertEqual(moved.worker_id, other.id)

    def test_status_and_notes_do_not_trigger_time_check(self):
        updated = self.update(self.a.id, status="in_progress", notes="Arrived early")
        self.assertEqual(updated.status, "in_progress")
        self.assertEqual(updated.notes, "Arrived early")

    def test_reviving_cancelled_appointment_is_conflict_checked(self):
        self.update(self.a.id, status="cancelled")
        self.book(at(0, 10), at(0, 11))
        with self.assertRaises(SchedulingConflict):
            self.update(self.a.id, status="scheduled")
        self.assert_no_overlaps()

    def test_reviving_into_free_slot_succeeds(self):
        self.update(self.a.id, status="cancelled")
        revived = self.update(self.a.id, status="scheduled")
        self.assertEqual(revived.status, "scheduled")

    def test_exclusion_constraint_on_update_names_the_appointment(self):
        violation = ConstraintViolation("conflicting key value", constraint=NO_OVERLAP_CONSTRAINT)
        with mock.patch.object(self.service.store, "update", side_effect=violation):
            with self.assertLogs("care_scheduler.domain.appointments.service", level="WARNING") as logs:
                with self.assertRaises(SchedulingConflict):
                    self.update(self.a.id, start_time=at(0, 10, 15))
        self.assertIn(f"update of appointment {self.a.id}", "\n".join(logs.output))
        self.assertNotIn("None", "\n".join(logs.output))

    def test_update_missing_appointment(self):
        with self.assertRaises(NotFound):
            self.update("missing", notes="x")

    def test_invariant_holds_after_mixed_sequence(self):
        c = self.book(at(0, 14), at(0, 15))
        for start, end in ((at(0, 10, 30), at(0, 12, 30)), (at(0, 13), at(0, 14, 30)), (at(0, 11), at(0, 12))):
            try:
                self.update(c.id, start_time=start, end_time=end)
            except SchedulingConflict:
                pass
        try:
            self.book(at(0, 11), at(0, 12))
        except SchedulingConflict:
            pass
        self.assert_no_overlaps()


class TestDeleteAppointment(AppointmentTestCase):
    def test_delete_without_invoice(self):
        appointment = self.book(at(0, 10), at(0, 11))
        self.service.delete_appointment(appointment.id, self.ctx)
        self.assertFalse(self.store.exists(EntityKind.appointment, {"id": appointment.id}))

    def test_delete_blocked_by_invoice_until_invoice_removed(self):
        appointment = self.book(at(0, 10), at(0, 11), status="completed")
        invoice = self._insert(
            EntityKind.invoice,
            {
                "client_id": self.client.id,
                "appointment_id": appointment.id,
                "amount": self.care.base_price,
                "due_date": at(30, 0).date(),
            },
        )
        with self.assertRaises(HasDependents):
            self.service.delete_appointment(appointment.id, self.ctx)

        with self.store.transaction():
            self.store.delete(EntityKind.invoice, invoice.id)
        self.service.delete_appointment(appointment.id, self.ctx)
        self.assertEqual(self.store.count(EntityKind.appointment), 0)

    def test_foreign_key_backstops_the_invoice_check(self):
        appointment = self.book(at(0, 10), at(0, 11), status="completed")
        self._insert(
            EntityKind.invoice,
            {
                "client_id": self.client.id,
                "appointment_id": appointment.id,
                "amount": self.care.base_price,
                "due_date": at(30, 0).date(),
            },
        )
        with mock.patch.object(self.service.repo, "has_invoice", return_value=False):
            with self.assertRaises(HasDependents):
                self.service.delete_appointment(appointment.id, self.ctx)
        self.assertEqual(self.store.count(EntityKind.appointment), 1)

    def test_delete_missing(self):
        with self.assertRaises(NotFound):
            self.service.delete_appointment("missing", self.ctx)


class TestListAppointments(AppointmentTestCase):
    def test_filters_and_order(self):
        other = self.make_worker()
        late = self.book(at(2, 10), at(2, 11))
        early = self.book(at(0, 10), at(0, 11))
        self.book(at(1, 10), at(1, 11), worker=other)

        mine = self.service.list_appointments(self.ctx, worker_id=self.worker.id)
        self.assertEqual([a.id for a in mine], [early.id, late.id])

        window = self.service.list_appointments(self.ctx, start_from=at(1, 0), start_to=at(2, 10))
        self.assertEqual(len(window), 2)

        page = self.service.list_appointments(self.ctx, page=1, page_size=2)
        self.assertEqual([a.id for a in page], [late.id])

    def test_offset_aware_window_bounds(self):
        appointment = self.book(at(1, 10), at(1, 11))
        plus_two = timezone(timedelta(hours=2))
        window = self.service.list_appointments(
            self.ctx,
            start_from=datetime(2026, 1, 6, 12, tzinfo=plus_two),
            start_to=datetime(2026, 1, 6, 12, tzinfo=plus_two),
        )
        self.assertEqual([a.id for a in window], [appointment.id])

    def test_status_filter(self):
        done = self.book(at(0, 10), at(0, 11), status="completed")
        self.book(at(0, 12), at(0, 13))
        completed = self.service.list_appointments(self.ctx, status="completed")
        self.assertEqual([a.id for a in completed], [done.id])

    def test_availability_lookup(self):
        appointment = self.book(at(0, 14), at(0, 15))
        result = self.service.availability(appointment.id, self.ctx)
        self.assertIs(result["available"], False)
        self.assertIn("may not be available", result["warning"])
