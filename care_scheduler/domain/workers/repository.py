"""Worker repository - Store operations for workers and their accounts"""

from typing import Optional

from ...models import Account, Worker
from ...store import EntityKind, EntityStore

SEARCH_FIELDS = ("first_name", "last_name", "email")


class WorkerRepository:
    """Repository for worker store operations"""

    @staticmethod
    def list_workers(
        store: EntityStore,
        active: Optional[bool] = None,
        role: Optional[str] = None,
        search: Optional[str] = None,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
    ) -> list[Worker]:
        """Workers newest first, optionally filtered by active flag, job role and name/email"""
        filters = {}
        if active is not None:
            filters["active"] = active
        if role:
            filters["role"] = role
        return store.find(
            EntityKind.worker,
            filters,
            search=(search, SEARCH_FIELDS) if search else None,
            limit=limit,
            offset=offset,
            order_by="-created_at",
        )

    @staticmethod
    def get_worker(store: EntityStore, worker_id: str) -> Worker:
        return store.find_by_id(EntityKind.worker, worker_id)

    @staticmethod
    def get_worker_by_email(store: EntityStore, email: str) -> Optional[Worker]:
        return store.find_one(EntityKind.worker, {"email": email.strip().lower()})

    @staticmethod
    def email_taken(store: EntityStore, email: str, exclude_worker_id: Optional[str] = None) -> bool:
        filters = {"email": email}
        if exclude_worker_id:
            filters["id"] = ["!=", exclude_worker_id]
        return store.exists(EntityKind.worker, filters)

    @staticmethod
    def has_appointments(store: EntityStore, worker_id: str) -> bool:
        return store.exists(EntityKind.appointment, {"worker_id": worker_id})

    @staticmethod
    def get_account(store: EntityStore, account_id: str) -> Account:
        return store.find_by_id(EntityKind.account, account_id)
