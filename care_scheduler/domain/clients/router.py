"""Client router - FastAPI endpoints for client operations"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import get_current_context
from ...context import RequestContext
from ...database import get_db
from .schemas import ClientCreate, ClientResponse, ClientUpdate
from .service import ClientService

router = APIRouter(prefix="/clients", tags=["Clients"])


def get_client_service(db: Session = Depends(get_db)) -> ClientService:
    """Dependency injection for ClientService"""
    return ClientService(db)


@router.get("", response_model=list[ClientResponse])
async def get_clients(
    search: Optional[str] = Query(None),
    page: Optional[int] = Query(None, ge=0),
    page_size: Optional[int] = Query(None, ge=1, le=200),
    ctx: RequestContext = Depends(get_current_context),
    service: ClientService = Depends(get_client_service),
):
    """Get clients, newest first, optionally searching name/email"""
    return service.get_clients(ctx, search, page, page_size)


@router.post("", response_model=ClientResponse, status_code=201)
async def create_client(
    data: ClientCreate,
    ctx: RequestContext = Depends(get_current_context),
    service: ClientService = Depends(get_client_service),
):
    return service.create_client(data, ctx)


@router.get("/{client_id}", response_model=ClientResponse)
async def get_client(
    client_id: str,
    ctx: RequestContext = Depends(get_current_context),
    service: ClientService = Depends(get_client_service),
):
    return service.get_client(client_id, ctx)


@router.patch("/{client_id}", response_model=ClientResponse)
async def update_client(
    client_id: str,
    data: ClientUpdate,
    ctx: RequestContext = Depends(get_current_context),
    service: ClientService = Depends(get_client_service),
):
    return service.update_client(client_id, data, ctx)


@router.delete("/{client_id}")
async def delete_client(
    client_id: str,
    ctx: RequestContext = Depends(get_current_context),
    service: ClientService = Depends(get_client_service),
):
    """Delete a client (blocked while appointments or invoices reference it)"""
    return service.delete_client(client_id, ctx)
