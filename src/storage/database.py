"""SQLAlchemy engine, session factory and table definitions."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from pathlib import Path

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Integer,
    String,
    Text,
    create_engine,
    text,
)
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

logger = logging.getLogger(__name__)

Base = declarative_base()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class BreedRow(Base):
    __tablename__ = "breeds"

    id = Column(Integer, primary_key=True)
    breed_id = Column(String(255), nullable=False, unique=True, index=True)
    # Lower-cased name; the unique constraint serializes concurrent ingestion.
    name_key = Column(String(255), nullable=False, unique=True)
    name = Column(String(255), nullable=False)
    external_id = Column(String(64))
    description = Column(Text)
    temperament = Column(String(500))
    origin = Column(String(255))
    life_span = Column(String(50))
    breed_group = Column(String(100))
    image_url = Column(String(500))

    weight_min = Column(Integer)
    weight_max = Column(Integer)
    height_min = Column(Integer)
    height_max = Column(Integer)

    energy_level = Column(Integer)
    friendliness = Column(Integer)
    grooming_needs = Column(Integer)
    trainability = Column(Integer)
    health_issues = Column(Integer)
    exercise_needs = Column(Integer)
    shedding_level = Column(Integer)
    barking_level = Column(Integer)

    good_with_children = Column(Boolean)
    good_with_other_dogs = Column(Boolean)
    good_with_cats = Column(Boolean)
    apartment_friendly = Column(Boolean)

    ai_summary = Column(Text)
    pros_and_cons = Column(JSON)

    created_at = Column(DateTime(timezone=True), default=_utcnow)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)


class QuizResponseRow(Base):
    __tablename__ = "quiz_responses"

    id = Column(Integer, primary_key=True)
    submission_id = Column(String(64), nullable=False, unique=True)
    user_id = Column(String(255), index=True)
    session_id = Column(String(255), index=True)
    responses = Column(JSON, nullable=False)
    results = Column(JSON, nullable=False)
    created_at = Column(DateTime(timezone=True), default=_utcnow)


class ComparisonRow(Base):
    __tablename__ = "comparisons"

    id = Column(Integer, primary_key=True)
    user_id = Column(String(255), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    breed_ids = Column(JSON, nullable=False)
    is_public = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), default=_utcnow)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

def create_db_engine(url: str = "sqlite:///data/breeds.db") -> Engine:
    """Create an engine and make sure the schema exists.

    SQLite file databases get their parent directory created; in-memory
    SQLite shares a single connection so every session sees the same data.

    Args:
        url: SQLAlchemy database URL.

    Returns:
        Engine with all tables created.
    """
    kwargs: dict = {}
    if url.startswith("sqlite"):
        kwargs["connect_args"] = {"check_same_thread": False}
        if url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
        else:
            db_path = url.split("///", 1)[-1]
            Path(db_path).parent.mkdir(parents=True, exist_ok=True)

    engine = create_engine(url, **kwargs)
    Base.metadata.create_all(engine)
    logger.info("Database ready at %s", engine.url.render_as_string(hide_password=True))
    return engine


def create_session_factory(engine: Engine) -> sessionmaker:
    """Session factory bound to *engine*; objects stay usable after commit."""
    return sessionmaker(bind=engine, expire_on_commit=False)


def ping(engine: Engine) -> bool:
    """Return True if the database answers a trivial query."""
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        return True
    except Exception:
        logger.warning("Database ping failed", exc_info=True)
        return False
