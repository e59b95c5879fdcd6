import os
import json
import logging
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker, declarative_base

logger = logging.getLogger("genie.database")

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./genie.db")

engine = create_engine(
    DATABASE_URL,
    connect_args={"check_same_thread": False} if "sqlite" in DATABASE_URL else {},
    echo=False,
)


def _set_sqlite_pragma(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


# Enable WAL mode and foreign keys for SQLite
if "sqlite" in DATABASE_URL:
    event.listen(engine, "connect", _set_sqlite_pragma)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db(bind=None):
    import models  # noqa: F401
    bind = bind or engine
    Base.metadata.create_all(bind=bind)
    db = sessionmaker(bind=bind)()
    try:
        seed_defaults(db)
    finally:
        db.close()


def seed_defaults(db):
    """Insert the built-in archetypes and feature flags (safe to run multiple times)."""
    from models import Archetype, FeatureFlag
    from services.feature_flags import FEATURE_FLAGS
    from services.catalog import DEFAULT_ARCHETYPES

    existing_archetypes = {a.id for a in db.query(Archetype).all()}
    for info in DEFAULT_ARCHETYPES:
        if info["id"] in existing_archetypes:
            continue
        db.add(Archetype(
            id=info["id"],
            title=info["title"],
            description=info["description"],
            icon=info["icon"],
            use_case=info["use_case"],
            examples=json.dumps(info["examples"]),
        ))

    existing_flags = {f.key for f in db.query(FeatureFlag).all()}
    for key, definition in FEATURE_FLAGS.items():
        if key in existing_flags:
            continue
        db.add(FeatureFlag(
            key=key,
            enabled=definition["default_enabled"],
            description=definition["description"],
            category=definition["category"],
        ))

    db.commit()
    logger.info("Default archetypes and feature flags ensured")
