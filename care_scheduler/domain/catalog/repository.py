"""Service catalog repository - Store operations for care services"""

from typing import Optional

from ...models import Service
from ...store import EntityKind, EntityStore


class ServiceRepository:
    @staticmethod
    def list_services(store: EntityStore, active: Optional[bool] = None) -> list[Service]:
        filters = {"active": active} if active is not None else None
        return store.find(EntityKind.service, filters, order_by="name")

    @staticmethod
    def get_service(store: EntityStore, service_id: str) -> Service:
        return store.find_by_id(EntityKind.service, service_id)

    @staticmethod
    def has_appointments(store: EntityStore, service_id: str) -> bool:
        return store.exists(EntityKind.appointment, {"service_id": service_id})
