"""Database engine setup for the ledger store.

Test runs (ENV=test) with no explicit URL use a shared-cache in-memory SQLite
database so no PostgreSQL driver is needed for logic tests.
"""

from typing import Generator

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from vatledger.core.config import settings

raw_url = settings.DATABASE_URL or "sqlite:///./vatledger_dev.db"

if raw_url.startswith("sqlite"):
    if raw_url in ("sqlite://", "sqlite:///:memory:"):
        # shared cache enables multiple connections to one in-memory database
        raw_url = "sqlite:///file:vatledger_db?mode=memory&cache=shared&uri=true"
    engine = create_engine(raw_url, future=True, connect_args={"check_same_thread": False})
else:
    engine = create_engine(
        raw_url,
        future=True,
        pool_size=5,
        max_overflow=10,
        pool_recycle=3600,
        pool_pre_ping=True,
    )
SessionLocal = sessionmaker(bind=engine, class_=Session, expire_on_commit=False, autoflush=False)


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()



def init_db() -> None:
    """Create the ledger tables when missing (dev and test databases only)."""
    from vatledger.db.base_class import Base
    from vatledger.models import ledger_models  # noqa: F401 - registers tables

    Base.metadata.create_all(bind=engine)
