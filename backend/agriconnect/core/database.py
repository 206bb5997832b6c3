"""
Database connection and session management.
"""
from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker
from agriconnect.core.config import DATABASE_DSN

if not DATABASE_DSN:
    raise ValueError("DATABASE_DSN not configured. Create agriconnect/config_local.py from config_local.example.py")

if DATABASE_DSN.startswith("sqlite"):
    engine = create_engine(
        DATABASE_DSN,
        connect_args={"check_same_thread": False},  # Scheduler jobs run on worker threads
        echo=False,
    )
else:
    engine = create_engine(
        DATABASE_DSN,
        pool_pre_ping=True,  # Verify connections before using
        pool_recycle=3600,  # Recycle connections after 1 hour
        pool_size=10,  # Number of connections to maintain
        max_overflow=20,  # Maximum overflow connections
        pool_timeout=60,  # Timeout for getting connection from pool
        echo=False,  # Set to True for SQL debugging
    )

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db():
    """Dependency for FastAPI to get database session."""
    db = SessionLocal()
    try:
        yield db
    finally:
        try:
            db.close()
        except Exception as e:
            # Connection may already be gone; log and move on
            import logging
            logger = logging.getLogger(__name__)
            logger.warning(f"Error closing database session (connection may be lost): {str(e)}")
            try:
                db.rollback()
            except Exception:
                pass  # Ignore rollback errors if connection is already lost
