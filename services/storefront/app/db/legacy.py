"""
Legacy inventory database connection
- Storefront DB: PostgreSQL (app.db.database)
- Legacy DB: SQL Server system of record for on-hand inventory (read-only)
"""
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from typing import Optional
import logging

from app.config import settings

logger = logging.getLogger(__name__)

_legacy_engine: Optional[Engine] = None


def apply_query_timeout(dbapi_connection, connection_record):
    """Have the driver cancel statements that run past LEGACY_QUERY_TIMEOUT

    pyodbc reads the per-connection `timeout` attribute as the ODBC query
    timeout, so a stuck statement is aborted server side and its pooled
    connection is released.
    """
    dbapi_connection.timeout = max(int(settings.legacy_query_timeout), 1)


def get_legacy_engine() -> Engine:
    """Get the legacy database engine, created on first use"""
    global _legacy_engine
    if _legacy_engine is None:
        if not settings.legacy_database_url:
            raise RuntimeError("LEGACY_DATABASE_URL is not configured")
        _legacy_engine = create_engine(
            settings.legacy_database_url,
            pool_pre_ping=True,
            pool_size=5,
            max_overflow=10,
            echo=False
        )
        event.listen(_legacy_engine, "connect", apply_query_timeout)
        logger.info("Created legacy database engine")
    return _legacy_engine


def dispose_legacy_engine():
    """Close pooled legacy connections (called at shutdown)"""
    global _legacy_engine
    if _legacy_engine is not None:
        _legacy_engine.dispose()
        _legacy_engine = None
