"""
Database configuration and session management
Supports PostgreSQL for deployments and SQLite for local development and tests
"""

import os
from sqlalchemy import create_engine, text
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.pool import StaticPool

from shared.utils import config, setup_logging

logger = setup_logging("database")

DEFAULT_SQLITE_URL = "sqlite:///./subtitles.db"


def build_database_url() -> str:
    """
    Build database URL from environment variables with fallback to DATABASE_URL
    Supports individual DB components for flexible configuration
    """
    # Priority 1: Use DATABASE_URL if provided
    database_url = config.get("database_url")
    if database_url:
        # Convert postgres:// to postgresql:// for SQLAlchemy compatibility
        if database_url.startswith("postgres://"):
            database_url = database_url.replace("postgres://", "postgresql://", 1)
        return database_url

    # Priority 2: Build from individual components
    db_host = os.getenv("DB_HOST")
    if not db_host:
        logger.info(f"No database configured, using {DEFAULT_SQLITE_URL}")
        return DEFAULT_SQLITE_URL

    db_port = os.getenv("DB_PORT", "5432")
    db_user = os.getenv("DB_USER", "postgres")
    db_password = os.getenv("DB_PASSWORD", "postgres")
    db_name = os.getenv("DB_NAME", "subtitles")
    db_sslmode = os.getenv("DB_SSLMODE", "prefer")

    # Build PostgreSQL URL
    database_url = f"postgresql://{db_user}:{db_password}@{db_host}:{db_port}/{db_name}"
    if db_sslmode:
        database_url += f"?sslmode={db_sslmode}"

    logger.info(f"Built database URL from components: postgresql://{db_user}:***@{db_host}:{db_port}/{db_name}")
    return database_url


def create_database_engine(database_url: str | None = None):
    """Create SQLAlchemy engine with appropriate configuration"""
    database_url = database_url or build_database_url()

    try:
        if database_url.startswith("sqlite"):
            if database_url in ("sqlite://", "sqlite:///:memory:"):
                # One shared connection so every session sees the same in-memory database
                engine = create_engine(
                    database_url,
                    connect_args={"check_same_thread": False},
                    poolclass=StaticPool,
                )
            else:
                engine = create_engine(database_url, connect_args={"check_same_thread": False})
            logger.info("Using SQLite database engine")
        else:
            # PostgreSQL with optimized settings
            engine = create_engine(
                database_url,
                pool_pre_ping=True,  # Verify connections before use
                pool_recycle=3600,    # Recycle connections every hour
                pool_size=10,         # Connection pool size
                max_overflow=20,     # Additional connections when pool is full
                echo=False            # Set to True for SQL logging in development
            )
            logger.info("Using PostgreSQL database engine with connection pooling")

        # Test the connection
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        logger.info("Database connection test successful")

        return engine
    except SQLAlchemyError as e:
        logger.error(f"Failed to create database engine: {e}")
        raise


# Create engine and session
engine = create_database_engine()
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


def init_database(bind=None):
    """Initialize database tables"""
    # Import models so they register with Base.metadata
    import models.database  # noqa: F401

    try:
        Base.metadata.create_all(bind=bind or engine)
        logger.info("Database tables initialized successfully")
    except SQLAlchemyError as e:
        logger.error(f"Failed to initialize database tables: {e}")
        raise
