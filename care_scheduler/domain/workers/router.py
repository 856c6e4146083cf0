"""Worker router - FastAPI endpoints for worker management"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import get_current_context
from ...context import RequestContext
from ...database import get_db
from .schemas import (
    PasswordResetResponse,
    WorkerCreate,
    WorkerCreatedResponse,
    WorkerResponse,
    WorkerUpdate,
)
from .service import WorkerService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/workers", tags=["Workers"])


def get_worker_service(db: Session = Depends(get_db)) -> WorkerService:
    """Dependency injection for WorkerService"""
    return WorkerService(db)


@router.get("", response_model=list[WorkerResponse])
async def get_workers(
    active: Optional[bool] = Query(None),
    role: Optional[str] = Query(None),
    search: Optional[str] = Query(None),
    page: Optional[int] = Query(None, ge=0),
    page_size: Optional[int] = Query(None, ge=1, le=200),
    ctx: RequestContext = Depends(get_current_context),
    service: WorkerService = Depends(get_worker_service),
):
    """List workers, newest first"""
    return service.list_workers(ctx, active, role, search, page, page_size)


@router.post("", response_model=WorkerCreatedResponse, status_code=201)
async def create_worker(
    data: WorkerCreate,
    ctx: RequestContext = Depends(get_current_context),
    service: WorkerService = Depends(get_worker_service),
):
    """Add a worker (admin). The temporary password is only returned here."""
    worker, temporary_password = service.create_worker(data, ctx)
    return WorkerCreatedResponse(
        worker=WorkerResponse.model_validate(worker), temporary_password=temporary_password
    )


@router.get("/{worker_id}", response_model=WorkerResponse)
async def get_worker(
    worker_id: str,
    ctx: RequestContext = Depends(get_current_context),
    service: WorkerService = Depends(get_worker_service),
):
    return service.get_worker(worker_id, ctx)


@router.patch("/{worker_id}", response_model=WorkerResponse)
async def update_worker(
    worker_id: str,
    data: WorkerUpdate,
    ctx: RequestContext = Depends(get_current_context),
    service: WorkerService = Depends(get_worker_service),
):
    """Update a worker. Non-admins may only edit their own profile."""
    return service.update_worker(worker_id, data, ctx)


@router.delete("/{worker_id}")
async def delete_worker(
    worker_id: str,
    ctx: RequestContext = Depends(get_current_context),
    service: WorkerService = Depends(get_worker_service),
):
    return service.delete_worker(worker_id, ctx)


@router.post("/{worker_id}/reset-password", response_model=PasswordResetResponse)
async def reset_worker_password(
    worker_id: str,
    ctx: RequestContext = Depends(get_current_context),
    service: WorkerService = Depends(get_worker_service),
):
    """Issue a new temporary password (admin). The worker must change it at next login."""
    temporary_password = service.reset_password(worker_id, ctx)
    return PasswordResetResponse(
        message="Password reset successfully", temporary_password=temporary_password
    )
