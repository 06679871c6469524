from __future__ import annotations

import logging
from typing import Iterator, Optional

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from sunny.core.config import get_settings

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    pass


engine: Optional[Engine] = None
SessionLocal = sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False)


def init_engine(database_url: str) -> Engine:
    """
    (Re)crée l'engine et rattache SessionLocal.
    Appelé par create_app() ; les tests pointent DATABASE_URL vers un sqlite temporaire.
    """
    global engine

    connect_args = {}
    if database_url.startswith("sqlite"):
        # TestClient / uvicorn threadpool -> plusieurs threads sur la même connexion
        connect_args["check_same_thread"] = False

    if engine is not None:
        engine.dispose()

    engine = create_engine(database_url, connect_args=connect_args, pool_pre_ping=True)
    SessionLocal.configure(bind=engine)
    logger.info("Database engine ready (%s)", engine.url.render_as_string(hide_password=True))
    return engine


def get_engine() -> Engine:
    if engine is None:
        return init_engine(get_settings().DATABASE_URL)
    return engine


def init_db() -> None:
    from sunny.db import models  # noqa: F401  (charge les modèles dans Base.metadata)

    Base.metadata.create_all(bind=get_engine())


def ping_db() -> bool:
    try:
        with get_engine().connect() as conn:
            conn.execute(text("SELECT 1"))
        return True
    except Exception as e:
        logger.warning("Database ping failed: %s", e)
        return False


def get_db() -> Iterator[Session]:
    get_engine()
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
