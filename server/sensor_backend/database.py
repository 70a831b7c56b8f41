from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, declarative_base

# At most 10 connections; extra callers wait for a free one.
POOL_SIZE = 10

Base = declarative_base()


def make_engine(url: str) -> Engine:
    if url.startswith("sqlite"):
        # SQLite is only used for local runs and tests; connections cross threads there.
        return create_engine(url, connect_args={"check_same_thread": False})

    # pool_pre_ping=True reconnects quietly after MySQL drops idle connections (MySQL server has gone away)
    return create_engine(url, pool_size=POOL_SIZE, max_overflow=0, pool_pre_ping=True)


def make_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


def init_db(engine: Engine) -> None:
    # Create data_sensor if it does not exist yet
    from . import models  # noqa: F401  registers the tables on Base.metadata

    Base.metadata.create_all(bind=engine)
