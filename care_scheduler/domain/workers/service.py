"""Worker service - Business logic for worker management"""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from ...context import RequestContext
from ...errors import HasDependents, PermissionDenied, ValidationError
from ...models import Worker
from ...store import EntityKind, EntityStore
from .credentials import CredentialService
from .repository import WorkerRepository
from .schemas import WorkerCreate, WorkerUpdate

logger = logging.getLogger(__name__)

# Fields a non-admin may not change, even on their own profile
ADMIN_ONLY_FIELDS = ("email", "user_role")


class WorkerService:
    """Service layer for worker business logic"""

    def __init__(self, db: Session):
        self.store = EntityStore(db)
        self.repo = WorkerRepository()
        self.credentials = CredentialService(self.store)

    def list_workers(
        self,
        ctx: RequestContext,
        active: Optional[bool] = None,
        role: Optional[str] = None,
        search: Optional[str] = None,
        page: Optional[int] = None,
        page_size: Optional[int] = None,
    ) -> list[Worker]:
        ctx.require_active_password()
        limit = offset = None
        if page is not None and page_size is not None:
            limit, offset = page_size, page * page_size
        return self.repo.list_workers(self.store, active, role, search, limit, offset)

    def get_worker(self, worker_id: str, ctx: RequestContext) -> Worker:
        ctx.require_active_password()
        return self.repo.get_worker(self.store, worker_id)

    def create_worker(self, data: WorkerCreate, ctx: RequestContext) -> tuple[Worker, str]:
        """Create a worker and provision their login; returns the temporary password"""
        ctx.require_active_password()
        ctx.require_admin("add workers")
        logger.info(f"📥 Creating worker {data.email} by {ctx.worker_id}")

        with self.store.transaction():
            if self.repo.email_taken(self.store, data.email):
                raise ValidationError("A worker with this email already exists")

            values = data.model_dump()
            values["availability"] = values["availability"] or {}
            worker = self.store.insert(EntityKind.worker, values)
            temporary_password = self.credentials.provision(worker)

        return worker, temporary_password

    def update_worker(self, worker_id: str, data: WorkerUpdate, ctx: RequestContext) -> Worker:
        ctx.require_active_password()
        patch = data.to_patch()

        with self.store.transaction():
            worker = self.repo.get_worker(self.store, worker_id)
            self._check_update_allowed(worker, patch, ctx)

            email_changed = "email" in patch and patch["email"] != worker.email
            if email_changed and self.repo.email_taken(self.store, patch["email"], worker.id):
                raise ValidationError("A worker with this email already exists")

            worker = self.store.update(EntityKind.worker, worker.id, patch)
            if email_changed:
                self.credentials.sync_email(worker)

        logger.info(f"✏️ Worker {worker_id} updated by {ctx.worker_id}: {sorted(patch)}")
        return worker

    @staticmethod
    def _check_update_allowed(worker: Worker, patch: dict, ctx: RequestContext) -> None:
        if ctx.is_admin:
            return
        if worker.id != ctx.worker_id:
            raise PermissionDenied("You can only edit your own profile")
        for field in ADMIN_ONLY_FIELDS:
            if field in patch and patch[field] != getattr(worker, field):
                raise PermissionDenied(f"Only administrators can change {field.replace('_', ' ')}")
        if patch.get("active") is False:
            raise PermissionDenied("You cannot deactivate your own account")

    def delete_worker(self, worker_id: str, ctx: RequestContext) -> dict:
        ctx.require_active_password()
        ctx.require_admin("delete workers")

        with self.store.transaction():
            worker = self.repo.get_worker(self.store, worker_id)
            if self.repo.has_appointments(self.store, worker.id):
                raise HasDependents("Cannot delete worker with existing appointments")

            account_id = worker.user_id
            self.store.delete(EntityKind.worker, worker.id)
            if account_id:
                self.credentials.remove_account(account_id)

        logger.info(f"🗑️ Worker {worker_id} deleted by {ctx.worker_id}")
        return {"message": "Worker deleted"}

    def reset_password(self, worker_id: str, ctx: RequestContext) -> str:
        ctx.require_active_password()
        with self.store.transaction():
            return self.credentials.reset_password(worker_id, ctx)
