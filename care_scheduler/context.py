"""Request-scoped caller context passed into every service operation"""

import logging
from dataclasses import dataclass

from .errors import PermissionDenied
from .models import UserRole, Worker

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RequestContext:
    """Who is calling, resolved once per request from the login identity"""

    worker_id: str
    email: str
    user_role: str = UserRole.worker.value
    must_change_password: bool = False

    @classmethod
    def for_worker(cls, worker: Worker) -> "RequestContext":
        return cls(
            worker_id=worker.id,
            email=worker.email,
            user_role=worker.user_role,
            must_change_password=bool(worker.must_change_password),
        )

    @property
    def is_admin(self) -> bool:
        return self.user_role == UserRole.admin.value

    def require_admin(self, action: str = "perform this action") -> None:
        if not self.is_admin:
            logger.warning(f"⚠️ Worker {self.worker_id} denied: admin required to {action}")
            raise PermissionDenied(f"Only administrators can {action}")

    def require_active_password(self) -> None:
        """Block everything except credential endpoints until a forced password change is done"""
        if self.must_change_password:
            raise PermissionDenied("Password change required before continuing")
