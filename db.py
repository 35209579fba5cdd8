# db.py

#============================================================#
#                         Strivio-PM                         #
#============================================================#
# Author      : Aktham Almomani                              #
# Created     : 2025-10-15                                   #
# Version     : V2.0.0                                       #
#------------------------------------------------------------#
# Purpose     : Engine, sessions and the transaction scope   #
#               every multi-entity write goes through.       #
#                                                            #
# Change Log  :                                              #
#  - V1.0.0 (2025-10-15): Initial release.                   #
#  - V2.0.0             : Explicit transaction scope with    #
#                         rollback and error translation.    #
#============================================================#


from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import create_engine, inspect
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import sessionmaker
from sqlmodel import SQLModel, Session

import models  # noqa: F401  registers the tables on SQLModel.metadata
from config.settings import DATABASE_URL
from errors import ConflictError, DomainError, StorageError

logger = logging.getLogger(__name__)


def _make_engine(url: str) -> Engine:
    connect_args = {"check_same_thread": False} if url.startswith("sqlite") else {}
    return create_engine(url, pool_pre_ping=True, future=True, connect_args=connect_args)


# ---- Engine / Session ----
engine = _make_engine(DATABASE_URL)
SessionLocal = sessionmaker(bind=engine, class_=Session, autoflush=False, expire_on_commit=False)


def configure_engine(url: str) -> Engine:
    """Rebind the module engine and session factory to ``url``."""
    global engine
    engine.dispose()
    engine = _make_engine(url)
    SessionLocal.configure(bind=engine)
    return engine


def init_db():
    SQLModel.metadata.create_all(engine)


def table_exists(session: Session, table_name: str) -> bool:
    return inspect(session.connection()).has_table(table_name)


@contextmanager
def get_session() -> Iterator[Session]:
    """Plain read session; nothing is committed."""
    with SessionLocal() as s:
        yield s


@contextmanager
def transaction(label: str = "transaction") -> Iterator[Session]:
    """All-or-nothing scope for one orchestrated operation.

    Commits when the block exits normally. Any exception rolls back every
    write made through the yielded session. The session is closed on every
    exit path. Store failures are re-raised as domain errors:

    - ``IntegrityError`` -> ``ConflictError``
    - any other ``SQLAlchemyError`` -> ``StorageError``

    Domain errors raised inside the block propagate unchanged.
    """
    session = SessionLocal()
    try:
        yield session
        session.commit()
    except DomainError:
        session.rollback()
        raise
    except IntegrityError as exc:
        session.rollback()
        logger.warning("%s rolled back on integrity error: %s", label, exc.orig)
        raise ConflictError("Operation conflicts with existing data") from exc
    except SQLAlchemyError as exc:
        session.rollback()
        logger.exception("%s rolled back on storage error", label)
        raise StorageError(f"Storage failure during {label}") from exc
    except Exception:
        session.rollback()
        logger.exception("%s rolled back on unexpected error", label)
        raise
    finally:
        session.close()
