"""
Local memory store backed by SQLAlchemy
"""

from typing import Any, Dict, List, Optional

from loguru import logger
from sqlalchemy import delete, func, select
from sqlalchemy.exc import SQLAlchemyError

from ..utils.helpers import DateTimeUtils, StringUtils
from ..utils.pydantic_models import MemoryType
from .models import StoredMemory
from .sqlalchemy_manager import SQLAlchemyDatabaseManager


class SQLAlchemyMemoryStore:
    """MemoryStore implementation on top of a SQL database"""

    def __init__(self, db_manager: SQLAlchemyDatabaseManager, source: str = "familymem"):
        self.db_manager = db_manager
        self.source = source

    @classmethod
    def from_url(cls, connection_string: str, echo_sql: bool = False) -> "SQLAlchemyMemoryStore":
        manager = SQLAlchemyDatabaseManager(connection_string, echo_sql=echo_sql)
        manager.initialize_schema()
        return cls(manager)

    def get_memories(
        self, user_id: str, family: str, limit: Optional[int] = 10
    ) -> List[Dict[str, Any]]:
        """Newest memories first, all of them when limit is None"""
        query = (
            select(StoredMemory)
            .where(StoredMemory.user_id == user_id, StoredMemory.family == family)
            .order_by(StoredMemory.created_at.desc())
        )
        if limit is not None:
            query = query.limit(limit)
        with self.db_manager.get_session() as session:
            return [self._serialize(row) for row in session.scalars(query)]

    def store_memory(
        self,
        user_id: str,
        family: str,
        text: str,
        memory_type: MemoryType = MemoryType.CUSTOM,
    ) -> bool:
        session = self.db_manager.get_session()
        try:
            session.add(
                StoredMemory(
                    memory_id=StringUtils.generate_id("mem-"),
                    user_id=user_id,
                    family=family,
                    content=text,
                    memory_type=MemoryType.coerce(memory_type).value,
                    source=self.source,
                    created_at=DateTimeUtils.now(),
                )
            )
            session.commit()
            return True
        except SQLAlchemyError as e:
            session.rollback()
            logger.error(f"Failed to store memory for {user_id}/{family}: {e}")
            return False
        finally:
            session.close()

    def search_memories(
        self, user_id: str, family: str, query: str, limit: int = 10
    ) -> List[Dict[str, Any]]:
        statement = (
            select(StoredMemory)
            .where(
                StoredMemory.user_id == user_id,
                StoredMemory.family == family,
                StoredMemory.content.ilike(f"%{query}%"),
            )
            .order_by(StoredMemory.created_at.desc())
            .limit(limit)
        )
        with self.db_manager.get_session() as session:
            return [self._serialize(row) for row in session.scalars(statement)]

    def clear_memories(self, user_id: str, family: str) -> bool:
        session = self.db_manager.get_session()
        try:
            result = session.execute(
                delete(StoredMemory).where(
                    StoredMemory.user_id == user_id, StoredMemory.family == family
                )
            )
            session.commit()
            logger.info(f"Cleared {result.rowcount} memories for {user_id}/{family}")
            return True
        except SQLAlchemyError as e:
            session.rollback()
            logger.error(f"Failed to clear memories for {user_id}/{family}: {e}")
            return False
        finally:
            session.close()

    def count(self, user_id: str, family: str) -> int:
        statement = (
            select(func.count())
            .select_from(StoredMemory)
            .where(StoredMemory.user_id == user_id, StoredMemory.family == family)
        )
        with self.db_manager.get_session() as session:
            return session.scalar(statement) or 0

    def _serialize(self, row: StoredMemory) -> Dict[str, Any]:
        return {
            "id": row.memory_id,
            "content": row.content,
            "memory": row.content,
            "created_at": DateTimeUtils.to_iso(row.created_at),
            "type": row.memory_type,
        }
