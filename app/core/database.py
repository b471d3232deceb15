from sqlalchemy import text
from sqlalchemy.engine import Engine
from sqlmodel import Session, SQLModel, create_engine

from app.core.config import settings
from app.core.logging import get_logger

logger = get_logger(__name__)

# Dialects with WITH RECURSIVE support (MySQL 8+)
RECURSIVE_QUERY_DIALECTS = {"postgresql", "mysql"}


def create_database():
    """Create the MySQL database if it does not exist yet."""
    temp_engine = create_engine(settings.database_url_without_db)
    try:
        with temp_engine.connect() as conn:
            _ = conn.execute(text(f"CREATE DATABASE IF NOT EXISTS {settings.DB_NAME}"))
            conn.commit()
            logger.info(f"Database '{settings.DB_NAME}' ready")
    except Exception as e:
        logger.error(f"Failed to create database: {e}")
        raise
    finally:
        temp_engine.dispose()


def create_db_and_tables(*models, bind: Engine | None = None):
    """
    Create database and tables for given models.

    Args:
        *models: SQLModel classes to create tables for
        bind: Engine to use, defaults to the module engine
    """
    target = bind if bind is not None else engine
    if bind is None and settings.uses_mysql:
        create_database()
    if models:
        for model in models:
            model.__table__.create(target, checkfirst=True)
        logger.info(f"Database tables created for {len(models)} model(s)")
    else:
        SQLModel.metadata.create_all(target)
        logger.info("Database tables created successfully")


def supports_recursive_queries(bind: Engine) -> bool:
    return bind.dialect.name in RECURSIVE_QUERY_DIALECTS


def _engine_options() -> dict:
    if settings.database_url.startswith("sqlite"):
        return {"connect_args": {"check_same_thread": False}}
    return {
        "pool_pre_ping": True,  # Verify connections before using them
        "pool_recycle": 3600,  # Recycle connections after 1 hour
    }


# Create the database engine
engine = create_engine(
    settings.database_url,
    echo=settings.DEBUG,  # Log SQL queries in debug mode
    **_engine_options(),
)


def get_session():
    with Session(engine) as session:
        yield session
