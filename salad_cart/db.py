"""
Database connection management.

The only tables belong to the durable cart mirror. SQLite is the default;
any SQLAlchemy URL works.

Environment variables:
    - DATABASE_URL: connection URL (default: sqlite:///./salad_cart.db)
"""

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from .config import DATABASE_URL
from .models import Base


def _connect_args(url: str) -> dict:
    # SQLite connections are used from the request thread pool
    if url.startswith("sqlite"):
        return {"check_same_thread": False}
    return {}


engine = create_engine(
    DATABASE_URL,
    connect_args=_connect_args(DATABASE_URL),
    pool_pre_ping=True,
    echo=False,
)

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
)


def init_db() -> None:
    """Create the mirror tables if they do not exist."""
    Base.metadata.create_all(bind=engine)

