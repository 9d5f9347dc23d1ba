# storefront/data/database.py
from contextlib import contextmanager

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from storefront.utils.settings import DATABASE_URL

engine = create_engine(DATABASE_URL, pool_pre_ping=True)
SessionLocal = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)

Base = declarative_base()


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def transaction(db: Session):
    """
    Single atomic unit of work over a session.
    Repos only flush; whatever they wrote inside the block is committed together
    or rolled back together.
    """
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
