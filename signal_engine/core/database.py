# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""Pooled SQLAlchemy engine shared by every repository."""
from sqlalchemy import create_engine, text

from signal_engine.core.config import settings

engine = create_engine(
    settings.DATABASE_URL,
    pool_pre_ping=True,
    pool_size=settings.POOL_SIZE,
    max_overflow=settings.MAX_OVERFLOW,
    pool_recycle=settings.POOL_RECYCLE,
)


def ping() -> None:
    """Round-trip ``SELECT 1``; raises when the database is unreachable."""
    with engine.connect() as conn:
        conn.execute(text("SELECT 1"))
