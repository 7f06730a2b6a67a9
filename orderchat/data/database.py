from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base
from sqlalchemy.pool import StaticPool

from ..app.config import Config
from ..utils.logger import get_logger

logger = get_logger(__name__)


def make_engine(url: str = None):
    """Create an engine; in-memory SQLite shares one connection across threads."""
    url = url or Config.DATABASE_URL
    kwargs = {}
    if url.startswith("sqlite"):
        kwargs["connect_args"] = {"check_same_thread": False}
        if url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
    return create_engine(url, **kwargs)


# Create the SQLAlchemy engine
engine = make_engine()

# Create a configured "Session" class
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Create a base class for our models
Base = declarative_base()

def get_db():
    """Dependency to get a database session."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()

def create_tables(bind=None):
    """Create all tables in the database."""
    # Import all models here before calling create_all
    # This ensures they are registered with the Base metadata
    from .models import Product, Customer, Order  # noqa: F401
    Base.metadata.create_all(bind=bind or engine)
    logger.info("Database tables created successfully.")

if __name__ == "__main__":
    create_tables()
