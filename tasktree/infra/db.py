from __future__ import annotations

from sqlalchemy import Engine, create_engine, text
from sqlalchemy.orm import declarative_base, sessionmaker

Base = declarative_base()


def build_engine(url: str) -> Engine:
    return create_engine(url, pool_pre_ping=True)


def build_session_factory(bind: Engine) -> sessionmaker:
    return sessionmaker(bind=bind, autoflush=False, autocommit=False)


def init_db(bind: Engine) -> None:
    # models register themselves on Base when imported
    from . import models  # noqa: F401

    with bind.connect() as connection:
        connection.execute(text("SELECT 1"))
    Base.metadata.create_all(bind)
