from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

from swapapi.config import settings


def _enable_sqlite_immediate_transactions(engine: Engine) -> None:
    """Make every SQLite transaction take the write lock up front.

    pysqlite defers BEGIN until the first DML statement, so a read-then-write
    unit of work would not be isolated from a concurrent writer. Emitting
    BEGIN IMMEDIATE ourselves serializes units of work across connections.
    """

    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None
        dbapi_connection.execute("PRAGMA foreign_keys=ON")

    @event.listens_for(engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


def create_db_engine(database_url: str, echo: bool = False) -> Engine:
    if database_url.startswith("sqlite"):
        engine = create_engine(
            database_url,
            echo=echo,
            connect_args={"check_same_thread": False, "timeout": 30},
        )
        _enable_sqlite_immediate_transactions(engine)
        return engine

    return create_engine(
        database_url,
        pool_size=settings.DB_POOL_SIZE,
        max_overflow=settings.DB_MAX_OVERFLOW,
        pool_pre_ping=True,  # validate connections before use
        pool_recycle=3600,  # recycle connections hourly
        echo=echo,  # SQL logging in debug mode
        connect_args={"options": f"-csearch_path={settings.POSTGRES_SCHEMA}"},
    )


def create_session_factory(engine: Engine) -> sessionmaker:
    # expire_on_commit=False keeps attributes readable after a unit of work
    # commits within the same request scope.
    return sessionmaker(
        autocommit=False,
        autoflush=False,
        bind=engine,
        expire_on_commit=False,
    )


engine = create_db_engine(settings.database_url, echo=settings.DEBUG)
SessionLocal = create_session_factory(engine)
