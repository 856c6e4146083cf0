"""Client service - Business logic for client operations"""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from ...context import RequestContext
from ...errors import HasDependents
from ...models import Client
from ...store import EntityStore
from .repository import ClientRepository
from .schemas import REQUIRED_FIELDS, ClientCreate, ClientUpdate

logger = logging.getLogger(__name__)


class ClientService:
    """Service layer for client business logic"""

    def __init__(self, db: Session):
        self.store = EntityStore(db)
        self.repo = ClientRepository()

    def get_clients(
        self,
        ctx: RequestContext,
        search: Optional[str] = None,
        page: Optional[int] = None,
        page_size: Optional[int] = None,
    ) -> list[Client]:
        ctx.require_active_password()
        limit = offset = None
        if page is not None and page_size is not None:
            limit, offset = page_size, page * page_size
        return self.repo.list_clients(self.store, search, limit, offset)

    def get_client(self, client_id: str, ctx: RequestContext) -> Client:
        ctx.require_active_password()
        return self.repo.get_client(self.store, client_id)

    def create_client(self, data: ClientCreate, ctx: RequestContext) -> Client:
        ctx.require_active_password()
        logger.info(f"📥 Creating client by worker {ctx.worker_id}")
        with self.store.transaction():
            return self.repo.create_client(self.store, **data.model_dump())

    def update_client(self, client_id: str, data: ClientUpdate, ctx: RequestContext) -> Client:
        ctx.require_active_password()
        updates = {
            k: v
            for k, v in data.model_dump(exclude_unset=True).items()
            if v is not None or k not in REQUIRED_FIELDS
        }
        with self.store.transaction():
            return self.repo.update_client(self.store, client_id, **updates)

    def delete_client(self, client_id: str, ctx: RequestContext) -> dict:
        """Delete a client that no appointment or invoice references"""
        ctx.require_active_password()
        with self.store.transaction():
            client = self.repo.get_client(self.store, client_id)
            if self.repo.has_appointments(self.store, client.id):
                raise HasDependents("Cannot delete client with existing appointments")
            if self.repo.has_invoices(self.store, client.id):
                raise HasDependents("Cannot delete client with existing invoices")
            self.repo.delete_client(self.store, client.id)

        logger.info(f"🗑️ Client {client_id} deleted by {ctx.worker_id}")
        return {"message": "Client deleted"}
