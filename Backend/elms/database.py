from sqlalchemy import create_engine, inspect
from sqlalchemy.orm import sessionmaker, Session, declarative_base
from typing import Generator
import importlib
import logging

from elms.config import database_url

logger = logging.getLogger(__name__)
logging.basicConfig(level=logging.INFO)

# ---------------------------------------------------------------------------
# SQLAlchemy Configuration for ORM Models
# ---------------------------------------------------------------------------
SQLALCHEMY_DATABASE_URL = database_url()

if SQLALCHEMY_DATABASE_URL.startswith("sqlite"):
    # import workers share the engine across threads
    engine = create_engine(
        SQLALCHEMY_DATABASE_URL,
        echo=False,
        connect_args={"check_same_thread": False, "timeout": 30},
    )
else:
    engine = create_engine(
        SQLALCHEMY_DATABASE_URL,
        echo=False,
        pool_size=10,
        max_overflow=20,
        pool_pre_ping=True,
    )

Base = declarative_base()
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


# ---------------------------------------------------------------------------
# init_db: import ORM models so they register on Base, then create tables
# ---------------------------------------------------------------------------
MODEL_MODULES = (
    "elms.models.user_model",
    "elms.models.leave_model",
)


def load_models():
    for module_name in MODEL_MODULES:
        importlib.import_module(module_name)


def init_db():
    load_models()
    Base.metadata.create_all(bind=engine)
    try:
        tables = inspect(engine).get_table_names()
        logger.info("Database ready. Tables: %s", ", ".join(sorted(tables)))
    except Exception:
        logger.debug("Could not list tables after init", exc_info=True)
