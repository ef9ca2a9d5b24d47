# garden_backend/database.py
from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from garden_backend.config import DATABASE_URL

Base = declarative_base()


def make_engine(url=DATABASE_URL):
    # Postgres in production, SQLite locally and in tests
    connect_args = {}
    if url.startswith("sqlite"):
        connect_args = {"check_same_thread": False}

    return create_engine(url, connect_args=connect_args, pool_pre_ping=True)


def make_session_factory(bind):
    return sessionmaker(autocommit=False, autoflush=False, bind=bind)


engine = make_engine()
SessionLocal = make_session_factory(engine)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
