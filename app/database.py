from sqlmodel import SQLModel, create_engine, Session
from .config import settings
from sqlalchemy.exc import OperationalError
from sqlalchemy.pool import NullPool


if settings.database_url.startswith("sqlite"):
    engine = create_engine(
        settings.database_url,
        echo=settings.sql_echo,
        connect_args={"check_same_thread": False, "timeout": 60},
        poolclass=NullPool,  # avoid multiple pooled connections holding write locks
    )
    # Configure SQLite pragmas to reduce locking
    try:
        with engine.connect() as conn:
            conn.exec_driver_sql("PRAGMA journal_mode=WAL;")
            conn.exec_driver_sql("PRAGMA busy_timeout=60000;")
    except OperationalError:
        # The database may be momentarily locked during reloader startup.
        pass
else:
    engine = create_engine(
        settings.database_url,
        echo=settings.sql_echo,
    )


def get_session():
    with Session(engine) as session:
        yield session


def init_db(bind=None):
    from .models import budget, category, goal, recurring, transaction, user  # noqa: F401

    SQLModel.metadata.create_all(bind or engine)
