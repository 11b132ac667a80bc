"""
SQLAlchemy engine and session management for the local memory store
"""

from sqlalchemy import create_engine, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from loguru import logger

from ..utils.exceptions import StoreError
from .models import Base


def detect_database_type(connection_string: str) -> str:
    """sqlite, postgresql, mysql ... from the URL scheme"""
    scheme = connection_string.split("://", 1)[0].lower()
    return scheme.split("+", 1)[0]


class SQLAlchemyDatabaseManager:
    """Owns the engine and hands out sessions"""

    def __init__(self, connection_string: str, echo_sql: bool = False):
        self.connection_string = connection_string
        self.database_type = detect_database_type(connection_string)
        try:
            self.engine = create_engine(connection_string, echo=echo_sql, future=True)
        except (SQLAlchemyError, ImportError) as e:
            raise StoreError(
                f"Could not create database engine for {self.database_type}: {e}",
                cause=e,
            )
        self._session_factory = sessionmaker(bind=self.engine, expire_on_commit=False)
        logger.debug(f"Initialized {self.database_type} database manager")

    def initialize_schema(self) -> None:
        """Create tables that do not exist yet"""
        try:
            Base.metadata.create_all(self.engine)
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to initialize schema: {e}", cause=e)

    def get_session(self) -> Session:
        return self._session_factory()

    def check_connection(self) -> bool:
        try:
            with self.engine.connect() as connection:
                connection.execute(text("SELECT 1"))
            return True
        except SQLAlchemyError as e:
            logger.warning(f"Database connection check failed: {e}")
            return False

    def close(self) -> None:
        self.engine.dispose()
