"""Metadata store for uploaded files and conversion jobs. SQLite by default; set DATABASE_URL for MySQL.
Startup ensures required tables exist; on connection failure logs verbosely and falls back to SQLite or in-memory so the app can start."""
import logging
import uuid
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import OperationalError
from sqlalchemy.pool import StaticPool

from file_converter import config as app_config

logger = logging.getLogger("converter.db")

_engine: Optional[Engine] = None

# Tables required for the app (created at startup if missing)
REQUIRED_TABLES = ("files", "conversion_jobs")

FILE_COLUMNS = (
    "id, name, size, type, url, object_key, status, user_id, "
    "conversion_type, original_format, target_format, created_at"
)
JOB_COLUMNS = (
    "id, file_id, status, conversion_type, original_format, target_format, "
    "created_at, completed_at, error_message, output_url"
)


def _is_sqlite() -> bool:
    return "sqlite" in app_config.DATABASE_URL


def _db_kind() -> str:
    if _is_sqlite():
        return "SQLite"
    if "mysql" in app_config.DATABASE_URL:
        return "MySQL"
    return "SQL"


def get_engine() -> Engine:
    global _engine
    if _engine is None:
        kwargs = {}
        if _is_sqlite():
            kwargs["connect_args"] = {"check_same_thread": False}
            if ":memory:" in app_config.DATABASE_URL:
                kwargs["poolclass"] = StaticPool
        _engine = create_engine(app_config.DATABASE_URL, **kwargs)
        logger.info("Database engine created (%s)", _db_kind())
    return _engine


def _create_sqlite_tables(conn) -> None:
    conn.execute(text("""
        CREATE TABLE IF NOT EXISTS files (
            id TEXT PRIMARY KEY,
            name TEXT NOT NULL,
            size INTEGER NOT NULL,
            type TEXT,
            url TEXT NOT NULL,
            object_key TEXT NOT NULL,
            status TEXT NOT NULL,
            user_id TEXT,
            conversion_type TEXT,
            original_format TEXT,
            target_format TEXT,
            created_at TEXT NOT NULL
        )
    """))
    conn.execute(text("""
        CREATE TABLE IF NOT EXISTS conversion_jobs (
            id TEXT PRIMARY KEY,
            file_id TEXT NOT NULL,
            status TEXT NOT NULL,
            conversion_type TEXT NOT NULL,
            original_format TEXT NOT NULL,
            target_format TEXT NOT NULL,
            created_at TEXT NOT NULL,
            completed_at TEXT,
            error_message TEXT,
            output_url TEXT
        )
    """))
    conn.commit()


def _create_mysql_tables(conn) -> None:
    conn.execute(text("""
        CREATE TABLE IF NOT EXISTS files (
            id VARCHAR(36) PRIMARY KEY,
            name VARCHAR(512) NOT NULL,
            size BIGINT NOT NULL,
            type VARCHAR(255),
            url TEXT NOT NULL,
            object_key VARCHAR(255) NOT NULL,
            status VARCHAR(50) NOT NULL,
            user_id VARCHAR(255),
            conversion_type VARCHAR(100),
            original_format VARCHAR(50),
            target_format VARCHAR(50),
            created_at VARCHAR(50) NOT NULL
        )
    """))
    conn.execute(text("""
        CREATE TABLE IF NOT EXISTS conversion_jobs (
            id VARCHAR(36) PRIMARY KEY,
            file_id VARCHAR(36) NOT NULL,
            status VARCHAR(50) NOT NULL,
            conversion_type VARCHAR(100) NOT NULL,
            original_format VARCHAR(50) NOT NULL,
            target_format VARCHAR(50) NOT NULL,
            created_at VARCHAR(50) NOT NULL,
            completed_at VARCHAR(50),
            error_message TEXT,
            output_url TEXT
        )
    """))
    conn.commit()


def _ensure_tables(engine: Engine) -> None:
    """Create required tables if they do not exist."""
    with engine.connect() as conn:
        if _is_sqlite():
            _create_sqlite_tables(conn)
        else:
            _create_mysql_tables(conn)
    logger.info("Required tables ensured: %s", ", ".join(REQUIRED_TABLES))


def _use_in_memory() -> None:
    global _engine
    app_config.DATABASE_URL = "sqlite:///:memory:"
    _engine = None
    _ensure_tables(get_engine())
    logger.warning("Database unavailable. Using in-memory SQLite. File records will not persist across restarts.")


def init_db() -> None:
    """Prepare database at startup: ensure required tables exist. On failure, fall back to SQLite file or in-memory so the app can start."""
    global _engine
    kind = _db_kind()
    logger.info("Database init: preparing %s (tables: %s)", kind, ", ".join(REQUIRED_TABLES))

    try:
        _ensure_tables(get_engine())
        logger.info("Database ready: %s", kind)
        return
    except OperationalError as e:
        logger.warning("Database connection failed (%s): %s. Will try fallback.", kind, e.orig, exc_info=True)
        if not _is_sqlite():
            try:
                sqlite_path = app_config.BASE_DIR / "data" / "converter.db"
                sqlite_path.parent.mkdir(parents=True, exist_ok=True)
                app_config.DATABASE_URL = f"sqlite:///{sqlite_path}"
                _engine = None
                _ensure_tables(get_engine())
                logger.warning("%s unavailable. Using SQLite at %s.", kind, sqlite_path)
                return
            except Exception as fallback_err:
                logger.exception("SQLite file fallback failed: %s. Trying in-memory SQLite.", fallback_err)
    except Exception as e:
        logger.exception("Database init failed: %s. Trying in-memory SQLite.", e)

    _use_in_memory()


@contextmanager
def session():
    with get_engine().connect() as conn:
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _fetch_one(sql: str, params: dict) -> Optional[dict]:
    with get_engine().connect() as conn:
        row = conn.execute(text(sql), params).mappings().fetchone()
    return dict(row) if row else None


def insert_file_record(
    name: str,
    size: int,
    content_type: Optional[str],
    url: str,
    object_key: str,
    *,
    status: str = "uploading",
    original_format: Optional[str] = None,
    user_id: Optional[str] = None,
) -> dict:
    """Insert a files row and return it as stored."""
    file_id = str(uuid.uuid4())
    params = {
        "id": file_id,
        "name": name,
        "size": size,
        "type": content_type,
        "url": url,
        "object_key": object_key,
        "status": status,
        "user_id": user_id,
        "original_format": original_format,
        "created_at": _now_iso(),
    }
    with session() as conn:
        conn.execute(
            text("""
                INSERT INTO files (id, name, size, type, url, object_key, status, user_id, original_format, created_at)
                VALUES (:id, :name, :size, :type, :url, :object_key, :status, :user_id, :original_format, :created_at)
            """),
            params,
        )
    return get_file_record(file_id)


def get_file_record(file_id: str) -> Optional[dict]:
    return _fetch_one(f"SELECT {FILE_COLUMNS} FROM files WHERE id = :id", {"id": file_id})


def update_file_status(
    file_id: str,
    status: str,
    *,
    conversion_type: Optional[str] = None,
    target_format: Optional[str] = None,
) -> None:
    set_parts = ["status = :status"]
    params = {"id": file_id, "status": status}
    if conversion_type is not None:
        set_parts.append("conversion_type = :conversion_type")
        params["conversion_type"] = conversion_type
    if target_format is not None:
        set_parts.append("target_format = :target_format")
        params["target_format"] = target_format
    with session() as conn:
        conn.execute(text(f"UPDATE files SET {', '.join(set_parts)} WHERE id = :id"), params)


def insert_conversion_job(
    file_id: str,
    conversion_type: str,
    original_format: str,
    target_format: str,
    status: str = "processing",
) -> dict:
    job_id = str(uuid.uuid4())
    params = {
        "id": job_id,
        "file_id": file_id,
        "status": status,
        "conversion_type": conversion_type,
        "original_format": original_format,
        "target_format": target_format,
        "created_at": _now_iso(),
    }
    with session() as conn:
        conn.execute(
            text("""
                INSERT INTO conversion_jobs (id, file_id, status, conversion_type, original_format, target_format, created_at)
                VALUES (:id, :file_id, :status, :conversion_type, :original_format, :target_format, :created_at)
            """),
            params,
        )
    return get_conversion_job(job_id)


def complete_conversion_job(
    job_id: str,
    status: str,
    *,
    error_message: Optional[str] = None,
    output_url: Optional[str] = None,
) -> Optional[dict]:
    params = {
        "id": job_id,
        "status": status,
        "completed_at": _now_iso(),
        "error_message": error_message,
        "output_url": output_url,
    }
    with session() as conn:
        conn.execute(
            text("""
                UPDATE conversion_jobs
                SET status = :status, completed_at = :completed_at, error_message = :error_message, output_url = :output_url
                WHERE id = :id
            """),
            params,
        )
    return get_conversion_job(job_id)


def get_conversion_job(job_id: str) -> Optional[dict]:
    return _fetch_one(f"SELECT {JOB_COLUMNS} FROM conversion_jobs WHERE id = :id", {"id": job_id})
