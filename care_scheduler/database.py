import logging
import os
import time

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from .config import DATABASE_URL, STORE_TIMEOUT_SECONDS

logger = logging.getLogger(__name__)

# Get environment-specific pool settings
POOL_SIZE = int(os.getenv("DB_POOL_SIZE", "10"))
MAX_OVERFLOW = int(os.getenv("DB_MAX_OVERFLOW", "20"))
POOL_RECYCLE = int(os.getenv("DB_POOL_RECYCLE", "300"))
ENABLE_QUERY_LOGGING = os.getenv("DB_LOG_SLOW_QUERIES", "true").lower() == "true"
SLOW_QUERY_THRESHOLD = float(os.getenv("DB_SLOW_QUERY_THRESHOLD", "1.0"))

Base = declarative_base()


def _install_sqlite_hooks(engine: Engine) -> None:
    """
    SQLite has no row locks, so every transaction takes the database write lock
    up front (BEGIN IMMEDIATE). That serializes check-then-write sequences, and
    the driver busy timeout bounds how long a writer waits for it.
    """

    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, _connection_record):
        # Let SQLAlchemy's "begin" event emit BEGIN instead of pysqlite
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


def _install_slow_query_logging(engine: Engine) -> None:
    @event.listens_for(engine, "before_cursor_execute")
    def before_cursor_execute(conn, _cursor, statement, _parameters, context, _executemany):
        conn.info.setdefault("query_start_time", []).append(time.time())

    @event.listens_for(engine, "after_cursor_execute")
    def after_cursor_execute(conn, _cursor, statement, _parameters, context, _executemany):
        total = time.time() - conn.info["query_start_time"].pop(-1)
        if total > SLOW_QUERY_THRESHOLD:
            logger.warning(f"🐌 Slow query ({total:.2f}s): {statement[:200]}...")


def create_store_engine(url: str, timeout: float = STORE_TIMEOUT_SECONDS) -> Engine:
    """
    Build an engine where every store call is bounded by ``timeout`` seconds.

    - SQLite: driver busy timeout (lock waits)
    - PostgreSQL: statement_timeout + lock_timeout per connection, connect timeout
    - Pooled engines: pool checkout timeout
    """
    backend = make_url(url).get_backend_name()
    timeout_ms = int(timeout * 1000)

    if backend == "sqlite":
        kwargs = {"connect_args": {"check_same_thread": False, "timeout": timeout}}
        if url in ("sqlite://", "sqlite:///:memory:"):
            # One shared connection so every session sees the same in-memory database
            kwargs["poolclass"] = StaticPool
        else:
            kwargs["pool_timeout"] = timeout
    else:
        kwargs = {
            "pool_pre_ping": True,  # Test connections before using
            "pool_recycle": POOL_RECYCLE,
            "pool_size": POOL_SIZE,
            "max_overflow": MAX_OVERFLOW,
            "pool_timeout": timeout,
        }
        if backend == "postgresql":
            kwargs["connect_args"] = {
                "connect_timeout": max(1, int(timeout)),
                "options": f"-c statement_timeout={timeout_ms} -c lock_timeout={timeout_ms}",
            }

    engine = create_engine(url, echo=False, **kwargs)

    if backend == "sqlite":
        _install_sqlite_hooks(engine)
    if ENABLE_QUERY_LOGGING:
        _install_slow_query_logging(engine)

    logger.info(f"📊 Store engine ready: backend={backend}, timeout={timeout}s")
    return engine


try:
    engine = create_store_engine(DATABASE_URL)
except Exception as e:
    logger.error(f"❌ Failed to create database engine: {e}")
    raise

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
