from __future__ import annotations
from contextlib import contextmanager
from typing import Any, Generator
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, Session
from alzassist.config import settings

_engine: Engine | None = None
_SessionLocal = None

def _timeout_kwargs(url: str, timeout_s: float) -> dict[str, Any]:
    # Every store call must give up after timeout_s; the driver error surfaces as OperationalError.
    if url.startswith("postgresql"):
        return {
            "pool_timeout": timeout_s,
            "connect_args": {
                "connect_timeout": max(1, int(timeout_s)),
                "options": f"-c statement_timeout={int(timeout_s * 1000)}",
            },
        }
    if url.startswith("sqlite"):
        return {"connect_args": {"timeout": timeout_s}}
    return {"pool_timeout": timeout_s}

def init_engine(url: str | None = None, **kwargs: Any) -> Engine:
    global _engine, _SessionLocal
    url = url or settings.database_url
    opts: dict[str, Any] = {"pool_pre_ping": True, "future": True}
    opts.update(_timeout_kwargs(url, settings.db_timeout_seconds))
    opts.update(kwargs)
    if _engine is not None:
        _engine.dispose()
    _engine = create_engine(url, **opts)
    _SessionLocal = sessionmaker(bind=_engine, autocommit=False, autoflush=False, future=True)
    return _engine

def engine() -> Engine:
    if _engine is None:
        init_engine()
    return _engine

def session_local():
    if _SessionLocal is None:
        engine()
    return _SessionLocal

@contextmanager
def db_session() -> Generator[Session, None, None]:
    db = session_local()()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()

def get_db() -> Generator[Session, None, None]:
    with db_session() as db:
        yield db
