"""
Database setup for the Clean City reports service.
Reports live in PostgreSQL in deployment; any SQLAlchemy URL works, and the
tests run against a SQLite file.
"""

import os
import logging
from dotenv import load_dotenv
from sqlalchemy import create_engine
from sqlalchemy.ext.declarative import declarative_base
from sqlalchemy.orm import sessionmaker

load_dotenv()

DATABASE_URL = os.getenv("DATABASE_URL")

if not DATABASE_URL:
    logging.error("DATABASE_URL environment variable is not set.")
    logging.error("Point it at the reports database in .env or the deployment settings.")
    raise RuntimeError("DATABASE_URL is required.")


def _engine_options(url: str) -> dict:
    # Sessions are handed to threadpool workers, which SQLite refuses by default
    if url.startswith("sqlite"):
        return {"connect_args": {"check_same_thread": False}}
    return {"pool_pre_ping": True}


engine = create_engine(DATABASE_URL, **_engine_options(DATABASE_URL))

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def init_db() -> None:
    """Create the reports table if it does not exist yet."""
    import models  # noqa: F401

    Base.metadata.create_all(bind=engine)


def get_db():
    """
    Request-scoped database session.

    Yields:
        Session: closed again once the response is sent
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
