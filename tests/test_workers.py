"""Tests for worker management and the credential lifecycle"""

from care_scheduler.domain.workers.credentials import CredentialService
from care_scheduler.domain.workers.schemas import WorkerCreate, WorkerUpdate
from care_scheduler.domain.workers.service import WorkerService
from care_scheduler.errors import (
    AuthenticationError,
    HasDependents,
    NotFound,
    PermissionDenied,
    ValidationError,
)
from care_scheduler.security_utils import SPECIAL_CHARACTERS, verify_password
from care_scheduler.store import EntityKind

from .base import StoreTestCase, at


def new_worker(**overrides) -> WorkerCreate:
    fields = {
        "first_name": "Nora",
        "last_name": "Quinn",
        "email": "Nora.Quinn@Example.com",
        "phone": "(555) 010-2030",
        "role": "Nurse",
        "availability": {"Monday": {"morning": "available"}},
    }
    fields.update(overrides)
    return WorkerCreate(**fields)


class TestWorkerService(StoreTestCase):
    def setUp(self):
        super().setUp()
        self.service = WorkerService(self.db)

    def test_create_provisions_account_with_temporary_password(self):
        worker, temporary_password = self.service.create_worker(new_worker(), self.admin_ctx)

        self.assertEqual(worker.email, "nora.quinn@example.com")
        self.assertEqual(worker.phone, "5550102030")
        self.assertTrue(worker.must_change_password)
        self.assertIsNotNone(worker.user_id)
        self.assertEqual(worker.availability["Monday"]["morning"], "available")
        self.assertEqual(worker.availability["Sunday"], {"morning": "", "afternoon": ""})

        self.assertEqual(len(temporary_password), 12)
        self.assertTrue(any(c.isupper() for c in temporary_password))
        self.assertTrue(any(c.islower() for c in temporary_password))
        self.assertTrue(any(c.isdigit() for c in temporary_password))
        self.assertTrue(any(c in SPECIAL_CHARACTERS for c in temporary_password))

        account = self.store.find_by_id(EntityKind.account, worker.user_id)
        self.assertTrue(verify_password(temporary_password, account.password_hash))

    def test_create_requires_admin(self):
        with self.assertRaises(PermissionDenied):
            self.service.create_worker(new_worker(), self.ctx_for(self.make_worker()))

    def test_duplicate_email_rejected(self):
        self.service.create_worker(new_worker(), self.admin_ctx)
        with self.assertRaises(ValidationError):
            self.service.create_worker(new_worker(email="nora.quinn@example.com"), self.admin_ctx)

    def test_list_filters_and_search(self):
        self.make_worker(first_name="Samira", role="Nurse")
        self.make_worker(first_name="Tom", active=False)
        ctx = self.admin_ctx

        self.assertEqual([w.first_name for w in self.service.list_workers(ctx, search="SAM")], ["Samira"])
        self.assertEqual([w.first_name for w in self.service.list_workers(ctx, active=False)], ["Tom"])
        self.assertEqual([w.first_name for w in self.service.list_workers(ctx, role="Nurse")], ["Samira"])
        self.assertEqual(len(self.service.list_workers(ctx, page=0, page_size=2)), 2)

    def test_worker_edits_own_profile(self):
        worker = self.make_worker()
        updated = self.service.update_worker(
            worker.id, WorkerUpdate(phone="555 777 8888", role="Senior caregiver"), self.ctx_for(worker)
        )
        self.assertEqual(updated.phone, "5557778888")
        self.assertEqual(updated.role, "Senior caregiver")

    def test_worker_cannot_edit_someone_else(self):
        worker = self.make_worker()
        other = self.make_worker()
        with self.assertRaises(PermissionDenied):
            self.service.update_worker(other.id, WorkerUpdate(role="Driver"), self.ctx_for(worker))

    def test_worker_cannot_change_email_role_or_deactivate(self):
        worker = self.make_worker()
        ctx = self.ctx_for(worker)
        with self.assertRaises(PermissionDenied):
            self.service.update_worker(worker.id, WorkerUpdate(email="new@example.com"), ctx)
        with self.assertRaises(PermissionDenied):
            self.service.update_worker(worker.id, WorkerUpdate(user_role="admin"), ctx)
        with self.assertRaises(PermissionDenied):
            self.service.update_worker(worker.id, WorkerUpdate(active=False), ctx)

    def test_admin_email_change_follows_login_account(self):
        worker, _ = self.service.create_worker(new_worker(), self.admin_ctx)
        self.service.update_worker(worker.id, WorkerUpdate(email="nquinn@example.com"), self.admin_ctx)
        account = self.store.find_by_id(EntityKind.account, worker.user_id)
        self.assertEqual(account.email, "nquinn@example.com")

    def test_admin_can_deactivate(self):
        worker = self.make_worker()
        updated = self.service.update_worker(worker.id, WorkerUpdate(active=False), self.admin_ctx)
        self.assertFalse(updated.active)

    def test_delete_blocked_by_appointments(self):
        worker = self.make_worker()
        self.make_appointment(worker, at(0, 9), at(0, 10))
        with self.assertRaises(HasDependents):
            self.service.delete_worker(worker.id, self.admin_ctx)

    def test_delete_removes_account(self):
        worker, _ = self.service.create_worker(new_worker(), self.admin_ctx)
        account_id = worker.user_id
        self.service.delete_worker(worker.id, self.admin_ctx)
        self.assertFalse(self.store.exists(EntityKind.worker, {"id": worker.id}))
        self.assertFalse(self.store.exists(EntityKind.account, {"id": account_id}))

    def test_delete_requires_admin(self):
        worker = self.make_worker()
        with self.assertRaises(PermissionDenied):
            self.service.delete_worker(worker.id, self.ctx_for(worker))


class TestCredentials(StoreTestCase):
    def setUp(self):
        super().setUp()
        self.service = WorkerService(self.db)
        self.credentials = CredentialService(self.store)
        self.worker, self.temporary_password = self.service.create_worker(new_worker(), self.admin_ctx)

    def change(self, current, new):
        with self.store.transaction():
            self.credentials.change_password(self.ctx_for(self.worker), current, new)

    def test_resolve_worker_by_email(self):
        self.assertEqual(self.credentials.resolve_worker("NORA.QUINN@example.com").id, self.worker.id)
        with self.assertRaises(NotFound):
            self.credentials.resolve_worker("nobody@example.com")

    def test_new_worker_must_change_password(self):
        self.assertTrue(self.credentials.must_change_password(self.worker.email))

    def test_change_password_clears_flag(self):
        self.change(self.temporary_password, "Sunny2026")
        self.assertFalse(self.credentials.must_change_password(self.worker.email))
        self.assertEqual(self.credentials.authenticate(self.worker.email, "Sunny2026").id, self.worker.id)

    def test_change_password_checks_current(self):
        with self.assertRaises(AuthenticationError):
            self.change("wrong", "Sunny2026")

    def test_change_password_enforces_rule(self):
        for weak in ("Short1", "alllowercase1", "NoDigitsHere"):
            with self.assertRaises(ValidationError):
                self.change(self.temporary_password, weak)
        self.assertTrue(self.credentials.must_change_password(self.worker.email))

    def test_reset_password_sets_flag(self):
        self.change(self.temporary_password, "Sunny2026")
        new_password = self.service.reset_password(self.worker.id, self.admin_ctx)
        self.assertNotEqual(new_password, self.temporary_password)
        self.assertTrue(self.credentials.must_change_password(self.worker.email))
        self.assertEqual(self.credentials.authenticate(self.worker.email, new_password).id, self.worker.id)
        with self.assertRaises(AuthenticationError):
            self.credentials.authenticate(self.worker.email, "Sunny2026")

    def test_reset_password_requires_admin_and_account(self):
        with self.assertRaises(PermissionDenied):
            self.service.reset_password(self.worker.id, self.ctx_for(self.make_worker()))
        with self.assertRaises(ValidationError):
            self.service.reset_password(self.make_worker().id, self.admin_ctx)

    def test_authenticate_rejects_bad_credentials_alike(self):
        with self.assertRaises(AuthenticationError) as unknown:
            self.credentials.authenticate("nobody@example.com", "whatever")
        with self.assertRaises(AuthenticationError) as wrong:
            self.credentials.authenticate(self.worker.email, "whatever")
        self.assertEqual(unknown.exception.message, wrong.exception.message)

    def test_authenticate_rejects_inactive_worker(self):
        self.service.update_worker(self.worker.id, WorkerUpdate(active=False), self.admin_ctx)
        with self.assertRaises(PermissionDenied):
            self.credentials.authenticate(self.worker.email, self.temporary_password)

    def test_pending_password_change_blocks_other_operations(self):
        with self.assertRaises(PermissionDenied):
            self.service.list_workers(self.ctx_for(self.worker))

    def test_bootstrap_admin_is_idempotent(self):
        with self.store.transaction():
            admin = self.credentials.bootstrap_admin("Root@Example.com", "Bootstrap1")
        self.assertTrue(admin.is_admin)
        self.assertFalse(admin.must_change_password)
        with self.store.transaction():
            self.assertIsNone(self.credentials.bootstrap_admin("root@example.com", "Bootstrap1"))
        self.assertEqual(self.credentials.authenticate("root@example.com", "Bootstrap1").id, admin.id)
