"""Client repository - Store operations for clients"""

from typing import Optional

from ...models import Client
from ...store import EntityKind, EntityStore

SEARCH_FIELDS = ("first_name", "last_name", "email")


class ClientRepository:
    """Repository for client store operations"""

    @staticmethod
    def list_clients(
        store: EntityStore,
        search: Optional[str] = None,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
    ) -> list[Client]:
        """Clients newest first, optionally matching a name/email search"""
        return store.find(
            EntityKind.client,
            search=(search, SEARCH_FIELDS) if search else None,
            limit=limit,
            offset=offset,
            order_by="-created_at",
        )

    @staticmethod
    def get_client(store: EntityStore, client_id: str) -> Client:
        return store.find_by_id(EntityKind.client, client_id)

    @staticmethod
    def create_client(store: EntityStore, **client_data) -> Client:
        return store.insert(EntityKind.client, client_data)

    @staticmethod
    def update_client(store: EntityStore, client_id: str, **updates) -> Client:
        return store.update(EntityKind.client, client_id, updates)

    @staticmethod
    def delete_client(store: EntityStore, client_id: str) -> None:
        store.delete(EntityKind.client, client_id)

    @staticmethod
    def has_appointments(store: EntityStore, client_id: str) -> bool:
        return store.exists(EntityKind.appointment, {"client_id": client_id})

    @staticmethod
    def has_invoices(store: EntityStore, client_id: str) -> bool:
        return store.exists(EntityKind.invoice, {"client_id": client_id})
