import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

# Import all models to ensure they're registered with SQLAlchemy Base
from . import models, models_appointment, models_invoice  # noqa: F401
from .config import ALLOWED_ORIGINS, BOOTSTRAP_ADMIN_EMAIL, BOOTSTRAP_ADMIN_PASSWORD
from .database import Base, SessionLocal, engine
from .domain.appointments import router as appointments_router
from .domain.catalog import router as services_router
from .domain.clients import router as clients_router
from .domain.invoices import router as invoices_router
from .domain.workers import router as workers_router
from .domain.workers.credentials import CredentialService
from .errors import (
    AuthenticationError,
    CareSchedulerError,
    ConstraintViolation,
    DuplicateInvoice,
    HasDependents,
    NotFound,
    PermissionDenied,
    SchedulingConflict,
    TransientStoreFailure,
    ValidationError,
)
from .routes import auth_router, dashboard_router
from .store import EntityStore

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

# Reduce verbosity of third-party libraries
logging.getLogger("passlib").setLevel(logging.ERROR)

ERROR_STATUS = {
    ValidationError: 422,
    SchedulingConflict: 409,
    HasDependents: 409,
    DuplicateInvoice: 409,
    ConstraintViolation: 409,
    NotFound: 404,
    PermissionDenied: 403,
    AuthenticationError: 401,
    TransientStoreFailure: 503,
}

RETRY_AFTER_SECONDS = "1"


def ensure_bootstrap_admin() -> None:
    """Create the configured first administrator if it does not exist yet"""
    if not (BOOTSTRAP_ADMIN_EMAIL and BOOTSTRAP_ADMIN_PASSWORD):
        return
    db = SessionLocal()
    try:
        store = EntityStore(db)
        with store.transaction():
            CredentialService(store).bootstrap_admin(BOOTSTRAP_ADMIN_EMAIL, BOOTSTRAP_ADMIN_PASSWORD)
    finally:
        db.close()


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Application starting up...")
    try:
        Base.metadata.create_all(bind=engine, checkfirst=True)
        logger.info("Database tables created successfully")
    except Exception as e:
        # Ignore "already exists" errors from race conditions between workers
        error_msg = str(e)
        if "already exists" in error_msg or "duplicate key" in error_msg:
            logger.info("Database tables already exist (created by another worker)")
        else:
            logger.error(f"Failed to create database tables: {e}")
            raise

    ensure_bootstrap_admin()

    yield
    logger.info("Application shutting down...")


app = FastAPI(title="Care Scheduler API", version="1.0.0", lifespan=lifespan)


@app.exception_handler(CareSchedulerError)
async def care_scheduler_exception_handler(request: Request, exc: CareSchedulerError):
    """Map the typed error taxonomy onto HTTP responses"""
    status_code = next(
        (status for error_type, status in ERROR_STATUS.items() if isinstance(exc, error_type)), 500
    )
    if status_code >= 500:
        logger.error(f"❌ {request.method} {request.url.path} - {exc.code}: {exc.message}")
    else:
        logger.warning(f"⚠️ {request.method} {request.url.path} - {exc.code}: {exc.message}")

    headers = {"Retry-After": RETRY_AFTER_SECONDS} if exc.retryable else None
    if isinstance(exc, AuthenticationError):
        headers = {"WWW-Authenticate": "Bearer"}

    content = {"detail": exc.message, "code": exc.code, "retryable": exc.retryable}
    if isinstance(exc, SchedulingConflict) and exc.conflicting_appointment_id:
        content["conflicting_appointment_id"] = exc.conflicting_appointment_id
    return JSONResponse(status_code=status_code, content=content, headers=headers)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    logger.warning(f"Validation error for {request.url.path}: {exc.errors()}")
    return JSONResponse(
        status_code=422,
        content={
            "detail": jsonable_errors(exc),
            "code": ValidationError.code,
            "retryable": False,
        },
    )


def jsonable_errors(exc: RequestValidationError) -> list:
    """Pydantic error entries with the (possibly non-serializable) ctx dropped"""
    return [{k: v for k, v in error.items() if k != "ctx"} for error in exc.errors()]


# Log CORS configuration for debugging
logger.info(f"CORS allowed origins: {ALLOWED_ORIGINS}")

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH"],
    allow_headers=["*"],
)

# Routes
app.include_router(auth_router)
app.include_router(workers_router)
app.include_router(clients_router)
app.include_router(services_router)
app.include_router(appointments_router)
app.include_router(invoices_router)
app.include_router(dashboard_router)


@app.get("/")
def root():
    return {"message": "Care Scheduler API is running"}


@app.get("/health")
def health():
    return {"status": "healthy"}
