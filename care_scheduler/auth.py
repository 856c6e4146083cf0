import logging
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from .context import RequestContext
from .database import get_db
from .errors import AuthenticationError, PermissionDenied
from .security_utils import decode_access_token
from .store import EntityKind, EntityStore

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)


def get_current_context(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db),
) -> RequestContext:
    """
    Resolve the bearer token to a worker and build the request-scoped context.
    The must-change-password flag is read here, once per request.
    """
    if credentials is None:
        raise AuthenticationError("Not authenticated. Please provide a valid Bearer token.")

    payload = decode_access_token(credentials.credentials)
    email = payload.get("sub") if payload else None
    if not email:
        raise AuthenticationError("Invalid token")

    worker = EntityStore(db).find_one(EntityKind.worker, {"email": email.lower()})
    if worker is None:
        logger.warning(f"⚠️ Token subject {email} has no worker record")
        raise AuthenticationError("User not found")

    if not worker.active:
        raise PermissionDenied("This worker account is inactive")

    return RequestContext.for_worker(worker)
