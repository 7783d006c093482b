# storefront/data/database.py
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base

from storefront.utils.settings import DATABASE_URL

Base = declarative_base()


def make_engine(url: str):
    # sqlite connections are shared with the progression driver threads
    connect_args = {"check_same_thread": False} if url.startswith("sqlite") else {}
    return create_engine(url, future=True, connect_args=connect_args)


def make_session_factory(bind):
    # expire_on_commit=False: rows are converted to schemas after commit
    return sessionmaker(bind=bind, autoflush=False, autocommit=False, expire_on_commit=False, future=True)


engine = make_engine(DATABASE_URL)
SessionLocal = make_session_factory(engine)
