"""
Entity Store Gateway

Typed CRUD and filtered query access to the scheduling records. Every
SQLAlchemy failure is translated into the error taxonomy in ``errors.py``;
nothing above this layer sees a raw driver exception.

Filters follow a small mapping language:

    {
        "worker_id": worker_id,                       # exact match
        "status": ["!=", "cancelled"],
        "start_time": ["<", end],
        "created_at": ["between", [first, last]],      # inclusive
        "id": ["not in", [a, b]],
    }
"""

import logging
from contextlib import contextmanager
from enum import Enum
from typing import Iterator, Optional, Sequence

from sqlalchemy import and_, or_
from sqlalchemy import exc as sa_exc
from sqlalchemy.orm import Session

from ..errors import ConstraintViolation, NotFound, TransientStoreFailure, ValidationError
from ..models import Account, Client, Service, Worker
from ..models_appointment import Appointment
from ..models_invoice import Invoice

logger = logging.getLogger(__name__)


class EntityKind(str, Enum):
    account = "account"
    worker = "worker"
    client = "client"
    service = "service"
    appointment = "appointment"
    invoice = "invoice"


MODELS = {
    EntityKind.account: Account,
    EntityKind.worker: Worker,
    EntityKind.client: Client,
    EntityKind.service: Service,
    EntityKind.appointment: Appointment,
    EntityKind.invoice: Invoice,
}

_COMPARISONS = {
    "=": lambda col, v: col == v,
    "!=": lambda col, v: col != v,
    "<": lambda col, v: col < v,
    "<=": lambda col, v: col <= v,
    ">": lambda col, v: col > v,
    ">=": lambda col, v: col >= v,
    "in": lambda col, v: col.in_(list(v)),
    "not in": lambda col, v: col.not_in(list(v)),
    "like": lambda col, v: col.like(v),
    "ilike": lambda col, v: col.ilike(v),
}


def _constraint_name(error: sa_exc.IntegrityError) -> Optional[str]:
    """Constraint name reported by the driver (psycopg exposes it via diag)"""
    diag = getattr(error.orig, "diag", None)
    return getattr(diag, "constraint_name", None)


class EntityStore:
    """Query interface over one request-scoped SQLAlchemy session"""

    def __init__(self, db: Session):
        self.db = db

    # ------------------------------------------------------------------
    # Unit of work
    # ------------------------------------------------------------------

    @contextmanager
    def transaction(self) -> Iterator["EntityStore"]:
        """
        Commit everything done inside the block, or nothing.
        Any exception (typed or not) rolls the session back before propagating.
        """
        try:
            yield self
            with self._translate_errors("commit"):
                self.db.commit()
        except Exception:
            self.db.rollback()
            raise

    @contextmanager
    def _translate_errors(self, operation: str, kind: Optional[EntityKind] = None):
        label = f"{operation} {kind.value}" if kind else operation
        try:
            yield
        except sa_exc.IntegrityError as e:
            constraint = _constraint_name(e)
            logger.warning(f"⚠️ Constraint violation during {label}: {constraint or e.orig}")
            raise ConstraintViolation(str(e.orig), constraint=constraint) from e
        except (sa_exc.OperationalError, sa_exc.TimeoutError) as e:
            logger.error(f"❌ Transient store failure during {label}: {e}")
            raise TransientStoreFailure(f"Store unavailable during {label}, please retry") from e
        except sa_exc.DBAPIError as e:
            if e.connection_invalidated:
                logger.error(f"❌ Connection lost during {label}: {e}")
                raise TransientStoreFailure(f"Store connection lost during {label}, please retry") from e
            raise

    # ------------------------------------------------------------------
    # Query building
    # ------------------------------------------------------------------

    @staticmethod
    def _model(kind: EntityKind):
        return MODELS[EntityKind(kind)]

    @staticmethod
    def _column(model, field: str):
        column = model.__table__.columns.get(field)
        if column is None:
            raise ValidationError(f"Unknown field '{field}' for {model.__tablename__}")
        return getattr(model, field)

    def _conditions(self, model, filters: Optional[dict]) -> list:
        conditions = []
        for field, spec in (filters or {}).items():
            column = self._column(model, field)
            if isinstance(spec, (list, tuple)) and len(spec) == 2 and isinstance(spec[0], str):
                op, value = spec
                op = op.lower()
                if op == "between":
                    low, high = value
                    if low is not None:
                        conditions.append(column >= low)
                    if high is not None:
                        conditions.append(column <= high)
                    continue
                if op not in _COMPARISONS:
                    raise ValidationError(f"Unsupported filter operator '{op}'")
                conditions.append(_COMPARISONS[op](column, value))
            elif spec is None:
                conditions.append(column.is_(None))
            else:
                conditions.append(column == spec)
        return conditions

    def _query(self, kind: EntityKind, filters: Optional[dict] = None, search=None):
        model = self._model(kind)
        query = self.db.query(model)
        conditions = self._conditions(model, filters)
        if conditions:
            query = query.filter(and_(*conditions))
        if search:
            term, fields = search
            if term:
                pattern = f"%{term}%"
                query = query.filter(or_(*[self._column(model, f).ilike(pattern) for f in fields]))
        return query

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def find(
        self,
        kind: EntityKind,
        filters: Optional[dict] = None,
        *,
        search: Optional[tuple[str, Sequence[str]]] = None,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
        order_by: Optional[str] = None,
    ) -> list:
        """Records of ``kind`` matching ``filters`` (and ``search``), paginated and ordered"""
        with self._translate_errors("find", kind):
            query = self._query(kind, filters, search)
            if order_by:
                descending = order_by.startswith("-")
                column = self._column(self._model(kind), order_by.lstrip("-"))
                query = query.order_by(column.desc() if descending else column.asc())
            if offset:
                query = query.offset(offset)
            if limit is not None:
                query = query.limit(limit)
            return query.all()

    def find_by_id(self, kind: EntityKind, record_id: str):
        with self._translate_errors("find_by_id", kind):
            record = self.db.get(self._model(kind), record_id)
        if record is None:
            raise NotFound(EntityKind(kind).value, record_id)
        return record

    def find_one(self, kind: EntityKind, filters: dict):
        """First matching record or None"""
        records = self.find(kind, filters, limit=1)
        return records[0] if records else None

    def exists(self, kind: EntityKind, filters: dict) -> bool:
        return self.find_one(kind, filters) is not None

    def count(self, kind: EntityKind, filters: Optional[dict] = None) -> int:
        with self._translate_errors("count", kind):
            return self._query(kind, filters).count()

    def lock(self, kind: EntityKind, record_id: str):
        """
        Load a record with a row lock (SELECT ... FOR UPDATE) held until the
        transaction ends. Used as the per-worker mutual-exclusion token.
        SQLite drops FOR UPDATE; there the BEGIN IMMEDIATE transaction already
        holds the database write lock.
        """
        model = self._model(kind)
        with self._translate_errors("lock", kind):
            record = self.db.query(model).filter(model.id == record_id).with_for_update().first()
        if record is None:
            raise NotFound(EntityKind(kind).value, record_id)
        return record

    # ------------------------------------------------------------------
    # Writes (flushed, committed by transaction())
    # ------------------------------------------------------------------

    def _assign(self, record, model, values: dict) -> None:
        for field, value in values.items():
            self._column(model, field)
            if isinstance(value, Enum):
                value = value.value
            try:
                setattr(record, field, value)
            except ValueError as e:
                # Raised by model validators for closed enumerations
                raise ValidationError(f"Invalid value for {field}: {value!r}") from e

    def insert(self, kind: EntityKind, values: dict):
        model = self._model(kind)
        record = model()
        self._assign(record, model, values)
        self.db.add(record)
        with self._translate_errors("insert", kind):
            self.db.flush()
            self.db.refresh(record)
        return record

    def update(self, kind: EntityKind, record_id: str, values: dict):
        record = self.find_by_id(kind, record_id)
        self._assign(record, self._model(kind), values)
        with self._translate_errors("update", kind):
            self.db.flush()
            self.db.refresh(record)
        return record

    def delete(self, kind: EntityKind, record_id: str) -> None:
        record = self.find_by_id(kind, record_id)
        self.db.delete(record)
        with self._translate_errors("delete", kind):
            self.db.flush()
