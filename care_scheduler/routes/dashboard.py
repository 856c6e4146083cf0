from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..auth import get_current_context
from ..context import RequestContext
from ..database import get_db
from ..store import EntityKind, EntityStore

router = APIRouter(prefix="/dashboard", tags=["Dashboard"])


@router.get("/stats")
async def get_dashboard_stats(
    ctx: RequestContext = Depends(get_current_context), db: Session = Depends(get_db)
):
    """Record counts shown on the dashboard"""
    ctx.require_active_password()
    store = EntityStore(db)
    return {
        "workers": store.count(EntityKind.worker),
        "clients": store.count(EntityKind.client),
        "appointments": store.count(EntityKind.appointment),
        "invoices": store.count(EntityKind.invoice),
    }
