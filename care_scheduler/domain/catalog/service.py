"""Service catalog - Business logic for care services"""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from ...context import RequestContext
from ...errors import HasDependents
from ...models import Service
from ...store import EntityKind, EntityStore
from .repository import ServiceRepository
from .schemas import ServiceCreate, ServiceUpdate

logger = logging.getLogger(__name__)


class CatalogService:
    def __init__(self, db: Session):
        self.store = EntityStore(db)
        self.repo = ServiceRepository()

    def list_services(self, ctx: RequestContext, active: Optional[bool] = None) -> list[Service]:
        ctx.require_active_password()
        return self.repo.list_services(self.store, active)

    def get_service(self, service_id: str, ctx: RequestContext) -> Service:
        ctx.require_active_password()
        return self.repo.get_service(self.store, service_id)

    def create_service(self, data: ServiceCreate, ctx: RequestContext) -> Service:
        ctx.require_active_password()
        with self.store.transaction():
            service = self.store.insert(EntityKind.service, data.model_dump())
        logger.info(f"📥 Service '{service.name}' created by {ctx.worker_id}")
        return service

    def update_service(self, service_id: str, data: ServiceUpdate, ctx: RequestContext) -> Service:
        ctx.require_active_password()
        with self.store.transaction():
            return self.store.update(EntityKind.service, service_id, data.to_patch())

    def delete_service(self, service_id: str, ctx: RequestContext) -> dict:
        ctx.require_active_password()
        with self.store.transaction():
            service = self.repo.get_service(self.store, service_id)
            if self.repo.has_appointments(self.store, service.id):
                raise HasDependents("Cannot delete service with existing appointments")
            self.store.delete(EntityKind.service, service.id)

        logger.info(f"🗑️ Service {service_id} deleted by {ctx.worker_id}")
        return {"message": "Service deleted"}
