from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

from healthbridge.config import get_settings


def create_store_engine(database_url: str) -> Engine:
    """Create the engine backing the health record store."""
    # Convert postgresql:// to postgresql+psycopg2:// if needed
    if database_url.startswith("postgresql://"):
        database_url = database_url.replace("postgresql://", "postgresql+psycopg2://", 1)

    if database_url.startswith("sqlite"):
        # Sessions are opened from worker threads
        return create_engine(database_url, connect_args={"check_same_thread": False})

    return create_engine(
        database_url,
        pool_pre_ping=True,
        pool_size=10,
        max_overflow=20,
    )


settings = get_settings()
engine = create_store_engine(settings.database_url)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def init_db(bind: Engine = engine) -> None:
    """Create the store tables if they do not exist."""
    from healthbridge.models import Base

    Base.metadata.create_all(bind=bind)
