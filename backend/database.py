"""
Database configuration and session management for the Drought Tanker Dashboard.
"""

from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker
import os
from typing import Generator

# Database URL from environment variable
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./drought_system.db")

SQL_ECHO = os.getenv("SQL_ECHO", "false").lower() == "true"

# SQLite connections are shared across the request threadpool
connect_args = {"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {}

engine = create_engine(
    DATABASE_URL,
    echo=SQL_ECHO,
    pool_pre_ping=True,
    connect_args=connect_args,
)

# Create session factory
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Create declarative base
Base = declarative_base()


def get_db() -> Generator:
    """
    Dependency to get database session.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def create_tables(bind=None):
    """
    Create all tables in the database.
    """
    # Tables are registered on Base when the models module is imported
    import models  # noqa: F401

    Base.metadata.create_all(bind=bind or engine)


def drop_tables(bind=None):
    """
    Drop all tables in the database.
    """
    Base.metadata.drop_all(bind=bind or engine)
