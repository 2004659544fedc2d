# database.py
"""
SQLAlchemy database connection and session management.

This module provides:
- Database engine configuration (Azure SQL via pymssql in production,
  SQLite for local development and tests)
- Session factory for dependency injection
- Connection utilities

Usage:
     from database import get_session, engine

     # In FastAPI routes:
     @app.get("/leases")
     def get_leases(db: Session = Depends(get_session)):
          return db.query(Lease).all()
     """
import logging
from contextlib import contextmanager
from typing import Generator

from sqlalchemy import create_engine, text
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import QueuePool, StaticPool

import config

logger = logging.getLogger(__name__)


def _engine_options(url: str) -> dict:
     """Pool settings for the configured backend."""
     if url.startswith("sqlite"):
          options = {"connect_args": {"check_same_thread": False}}
          # In-memory databases live on one connection; share it across threads
          if url in ("sqlite://", "sqlite:///:memory:"):
               options["poolclass"] = StaticPool
          return options

     return {
          "poolclass": QueuePool,
          "pool_size": 5,
          "max_overflow": 10,
          "pool_timeout": 30,
          "pool_recycle": 1800,  # Recycle connections after 30 minutes
     }


# Create SQLAlchemy engine
engine = create_engine(
     config.DATABASE_URL,
     echo=config.SQL_ECHO,  # Log SQL if SQL_ECHO=true
     **_engine_options(config.DATABASE_URL),
)

# Session factory
SessionLocal = sessionmaker(
     bind=engine,
     autocommit=False,
     autoflush=False,
     expire_on_commit=False,
)


def get_session() -> Generator[Session, None, None]:
     """
     FastAPI dependency that provides a database session.

     The whole request runs in one transaction: it is committed when the
     route returns and rolled back if anything raises.

     Yields:
          Session: SQLAlchemy database session
     """
     session = SessionLocal()
     try:
          yield session
          session.commit()
     except Exception:
          session.rollback()
          raise
     finally:
          session.close()


@contextmanager
def get_session_context() -> Generator[Session, None, None]:
     """
     Context manager for database sessions (for scheduled jobs and scripts).

     Usage:
          with get_session_context() as db:
               LeaseService.expire_ended_leases(db)

     Yields:
          Session: SQLAlchemy database session
     """
     session = SessionLocal()
     try:
          yield session
          session.commit()
     except Exception:
          session.rollback()
          raise
     finally:
          session.close()


def init_db() -> None:
     """
     Initialize database tables.

     Creates all tables defined in the models if they don't exist.
     For production, use Alembic migrations instead.
     """
     from models import Base
     Base.metadata.create_all(bind=engine)


def check_connection() -> bool:
     """
     Test database connectivity.

     Returns:
          bool: True if connection successful, False otherwise
     """
     try:
          with engine.connect() as conn:
               conn.execute(text("SELECT 1"))
          return True
     except Exception:
          logger.exception("Database connection failed")
          return False
