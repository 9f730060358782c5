"""SQLite database setup and connection."""
import logging
from pathlib import Path
from typing import Optional

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

logger = logging.getLogger(__name__)

# Global engine and session factory
engine = None
SessionLocal = None


def make_engine(database_url: str):
    """Engine SQLAlchemy; SQLite partagé entre threads pour FastAPI."""
    if database_url.startswith("sqlite"):
        return create_engine(
            database_url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
            echo=False,
        )
    return create_engine(database_url, echo=False)


def init_db(data_dir: str = "/data", database_url: Optional[str] = None) -> None:
    """Initialize database connection."""
    global engine, SessionLocal

    if database_url is None:
        # Ensure data directory exists and is writable
        data_path = Path(data_dir)
        try:
            data_path.mkdir(parents=True, exist_ok=True)
            test_file = data_path / ".write_test"
            try:
                test_file.touch()
                test_file.unlink()
            except OSError as e:
                raise PermissionError(f"Cannot write to {data_dir}: {str(e)}")
        except Exception as e:
            logger.error(f"Error creating data directory {data_dir}: {str(e)}")
            raise
        database_url = f"sqlite:///{data_path / 'media_relay.db'}"

    logger.info(f"Initializing database at: {database_url}")

    try:
        engine = make_engine(database_url)
        SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

        # Create tables
        from media_relay.db.models import Base
        Base.metadata.create_all(bind=engine)
        logger.info("Database initialized successfully")
    except Exception as e:
        logger.error(f"Failed to initialize database at {database_url}: {str(e)}")
        raise


def get_session_factory() -> sessionmaker:
    if SessionLocal is None:
        raise RuntimeError("Database not initialized. Call init_db() first.")
    return SessionLocal
