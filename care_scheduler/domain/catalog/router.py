"""Service catalog router"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import get_current_context
from ...context import RequestContext
from ...database import get_db
from .schemas import ServiceCreate, ServiceResponse, ServiceUpdate
from .service import CatalogService

router = APIRouter(prefix="/services", tags=["Services"])


def get_catalog_service(db: Session = Depends(get_db)) -> CatalogService:
    return CatalogService(db)


@router.get("", response_model=list[ServiceResponse])
async def get_services(
    active: Optional[bool] = Query(None),
    ctx: RequestContext = Depends(get_current_context),
    service: CatalogService = Depends(get_catalog_service),
):
    """List services ordered by name"""
    return service.list_services(ctx, active)


@router.post("", response_model=ServiceResponse, status_code=201)
async def create_service(
    data: ServiceCreate,
    ctx: RequestContext = Depends(get_current_context),
    service: CatalogService = Depends(get_catalog_service),
):
    return service.create_service(data, ctx)


@router.get("/{service_id}", response_model=ServiceResponse)
async def get_service(
    service_id: str,
    ctx: RequestContext = Depends(get_current_context),
    service: CatalogService = Depends(get_catalog_service),
):
    return service.get_service(service_id, ctx)


@router.patch("/{service_id}", response_model=ServiceResponse)
async def update_service(
    service_id: str,
    data: ServiceUpdate,
    ctx: RequestContext = Depends(get_current_context),
    service: CatalogService = Depends(get_catalog_service),
):
    return service.update_service(service_id, data, ctx)


@router.delete("/{service_id}")
async def delete_service(
    service_id: str,
    ctx: RequestContext = Depends(get_current_context),
    service: CatalogService = Depends(get_catalog_service),
):
    return service.delete_service(service_id, ctx)
