"""
Worker credential lifecycle

Account provisioning with a temporary password, admin password reset, the
forced password change flag, and login identity resolution. The scheduling
core only depends on ``resolve_worker`` and ``must_change_password``.
"""

import logging
from typing import Optional

from ...context import RequestContext
from ...errors import AuthenticationError, NotFound, PermissionDenied, ValidationError
from ...models import UserRole, Worker
from ...security_utils import generate_temporary_password, hash_password, verify_password
from ...shared.validators import password_problem
from ...store import EntityKind, EntityStore
from .repository import WorkerRepository

logger = logging.getLogger(__name__)


class CredentialService:
    """Login accounts bound to workers. Callers own the surrounding transaction."""

    def __init__(self, store: EntityStore):
        self.store = store
        self.repo = WorkerRepository()

    def resolve_worker(self, email: str) -> Worker:
        """Worker bound to a login email"""
        worker = self.repo.get_worker_by_email(self.store, email)
        if worker is None:
            raise NotFound("worker", email)
        return worker

    def must_change_password(self, email: str) -> bool:
        """Forced-change flag read at session start"""
        return bool(self.resolve_worker(email).must_change_password)

    def provision(self, worker: Worker) -> str:
        """Create and bind a login account; returns the temporary password (shown once)"""
        temporary_password = generate_temporary_password()
        account = self.store.insert(
            EntityKind.account,
            {"email": worker.email, "password_hash": hash_password(temporary_password)},
        )
        self.store.update(
            EntityKind.worker, worker.id, {"user_id": account.id, "must_change_password": True}
        )
        logger.info(f"🔐 Provisioned account for worker {worker.id}")
        return temporary_password

    def sync_email(self, worker: Worker) -> None:
        """Keep the login identity in step with the worker's email"""
        if worker.user_id:
            self.store.update(EntityKind.account, worker.user_id, {"email": worker.email})

    def remove_account(self, account_id: str) -> None:
        self.store.delete(EntityKind.account, account_id)
        logger.info(f"🔐 Removed account {account_id}")

    def reset_password(self, worker_id: str, ctx: RequestContext) -> str:
        """Admin-issued temporary password; the worker must change it at next login"""
        ctx.require_admin("reset passwords")
        worker = self.repo.get_worker(self.store, worker_id)
        if not worker.user_id:
            raise ValidationError("Worker does not have an associated user account")

        temporary_password = generate_temporary_password()
        self.store.update(
            EntityKind.account, worker.user_id, {"password_hash": hash_password(temporary_password)}
        )
        self.store.update(EntityKind.worker, worker.id, {"must_change_password": True})
        logger.info(f"🔐 Password reset for worker {worker.id} by {ctx.worker_id}")
        return temporary_password

    def change_password(self, ctx: RequestContext, current_password: str, new_password: str) -> None:
        worker = self.repo.get_worker(self.store, ctx.worker_id)
        if not worker.user_id:
            raise ValidationError("Worker does not have an associated user account")

        account = self.repo.get_account(self.store, worker.user_id)
        if not verify_password(current_password, account.password_hash):
            raise AuthenticationError("Current password is incorrect")

        problem = password_problem(new_password)
        if problem:
            raise ValidationError(problem)

        self.store.update(EntityKind.account, account.id, {"password_hash": hash_password(new_password)})
        self.store.update(EntityKind.worker, worker.id, {"must_change_password": False})
        logger.info(f"🔐 Worker {worker.id} changed their password")

    def authenticate(self, email: str, password: str) -> Worker:
        """Worker for valid credentials; every failure looks the same to the caller"""
        worker = self.repo.get_worker_by_email(self.store, email)
        account = None
        if worker is not None and worker.user_id:
            account = self.store.find_one(EntityKind.account, {"id": worker.user_id})

        if account is None or not verify_password(password, account.password_hash):
            logger.warning(f"⚠️ Failed login for {email}")
            raise AuthenticationError("Invalid email or password")

        if not worker.active:
            logger.warning(f"⚠️ Login attempt by inactive worker {worker.id}")
            raise PermissionDenied("This worker account is inactive")

        return worker

    def bootstrap_admin(self, email: str, password: str) -> Optional[Worker]:
        """
        Create the first administrator with a known password.

        Returns the new worker, or None when a worker with ``email`` already
        exists. The configured password must satisfy the password rule.
        """
        email = email.strip().lower()
        if self.repo.get_worker_by_email(self.store, email) is not None:
            return None

        problem = password_problem(password)
        if problem:
            raise ValidationError(f"BOOTSTRAP_ADMIN_PASSWORD rejected: {problem}")

        account = self.store.insert(
            EntityKind.account, {"email": email, "password_hash": hash_password(password)}
        )
        worker = self.store.insert(
            EntityKind.worker,
            {
                "first_name": "System",
                "last_name": "Administrator",
                "email": email,
                "role": "Administrator",
                "availability": {},
                "user_id": account.id,
                "user_role": UserRole.admin,
                "must_change_password": False,
            },
        )
        logger.info(f"🔐 Bootstrapped administrator {email}")
        return worker
