from sqlmodel import SQLModel, create_engine, Session
from talent_pipeline.core.config import settings

_engine = None


def get_engine():
    global _engine

    if _engine is not None:
        return _engine

    # Fallback to a local SQLite file when DATABASE_URL is not configured
    db_url = settings.DATABASE_URL or "sqlite:///./talent_pipeline.db"

    # SQLite fix for multithreading
    connect_args = {"check_same_thread": False} if db_url.startswith("sqlite") else {}

    _engine = create_engine(db_url, connect_args=connect_args, pool_pre_ping=True)
    return _engine


engine = get_engine()


def init_db(bind=None) -> None:
    """Create the partner and client record tables if they don't exist."""
    # Importing the models registers their tables on SQLModel.metadata
    from talent_pipeline import models  # noqa: F401

    SQLModel.metadata.create_all(bind or engine)


def get_db():
    with Session(engine) as session:
        yield session
