import logging

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.orm import Session

from ..auth import get_current_context
from ..context import RequestContext
from ..database import get_db
from ..domain.workers.credentials import CredentialService
from ..domain.workers.repository import WorkerRepository
from ..domain.workers.schemas import WorkerResponse
from ..security_utils import create_access_token
from ..store import EntityStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Authentication"])


class LoginRequest(BaseModel):
    email: str
    password: str


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    must_change_password: bool


class ChangePasswordRequest(BaseModel):
    current_password: str
    new_password: str


@router.post("/login", response_model=TokenResponse)
async def login(data: LoginRequest, db: Session = Depends(get_db)):
    """Exchange email and password for a bearer token"""
    credentials = CredentialService(EntityStore(db))
    worker = credentials.authenticate(data.email, data.password)
    token = create_access_token({"sub": worker.email})
    logger.info(f"✅ Worker {worker.id} logged in")
    return TokenResponse(access_token=token, must_change_password=worker.must_change_password)


@router.get("/me", response_model=WorkerResponse)
async def get_me(ctx: RequestContext = Depends(get_current_context), db: Session = Depends(get_db)):
    """Current worker, including whether a password change is pending"""
    return WorkerRepository.get_worker(EntityStore(db), ctx.worker_id)


@router.post("/change-password")
async def change_password(
    data: ChangePasswordRequest,
    ctx: RequestContext = Depends(get_current_context),
    db: Session = Depends(get_db),
):
    store = EntityStore(db)
    with store.transaction():
        CredentialService(store).change_password(ctx, data.current_password, data.new_password)
    return {"message": "Password changed successfully"}
