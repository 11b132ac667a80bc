from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Optional

import pytest

from familymem.database.sqlalchemy_store import SQLAlchemyMemoryStore
from familymem.utils.pydantic_models import MemoryRecord, MemoryType


def create_simple_memory(
    text: str,
    memory_type: MemoryType | str = MemoryType.CUSTOM,
    created_at: str = "2024-01-01T00:00:00.000Z",
    record_id: str | None = None,
) -> MemoryRecord:
    """
    Helper used across tests to construct a canonical MemoryRecord with
    content and memory set to the same text.
    """
    return MemoryRecord(
        id=record_id or f"mem-{abs(hash(text)) % 10_000}",
        content=text,
        memory=text,
        created_at=created_at,
        type=MemoryType(memory_type),
    )


class InMemoryStore:
    """MemoryStore double that keeps memories in a dict keyed by owner"""

    def __init__(self, memories: List[Dict[str, Any]] | None = None):
        self.memories: Dict[tuple, List[Dict[str, Any]]] = {}
        self.store_calls: List[str] = []
        self.clear_calls = 0
        for raw in memories or []:
            self.memories.setdefault(("user-A", "mem0"), []).append(raw)

    def get_memories(self, user_id: str, family: str, limit: Optional[int] = 10) -> List[Dict[str, Any]]:
        return list(self.memories.get((user_id, family), []))[:limit]

    def store_memory(self, user_id: str, family: str, text: str) -> bool:
        self.store_calls.append(text)
        self.memories.setdefault((user_id, family), []).append(
            {"id": f"stored-{len(self.store_calls)}", "memory": text}
        )
        return True

    def search_memories(
        self, user_id: str, family: str, query: str, limit: int = 10
    ) -> List[Dict[str, Any]]:
        return [
            raw
            for raw in self.memories.get((user_id, family), [])
            if query.lower() in raw.get("memory", "").lower()
        ][:limit]

    def clear_memories(self, user_id: str, family: str) -> bool:
        self.clear_calls += 1
        self.memories[(user_id, family)] = []
        return True


@pytest.fixture()
def sample_records() -> List[MemoryRecord]:
    return [
        create_simple_memory(
            "Opened budget.xlsx", MemoryType.FILE_OPERATION, "2024-01-05T10:00:00.000Z", "r1"
        ),
        create_simple_memory(
            "Searched for invoices", MemoryType.SEARCH, "2024-02-10T10:00:00.000Z", "r2"
        ),
        create_simple_memory(
            "Prefers dark mode", MemoryType.PREFERENCE, "2024-03-15T10:00:00.000Z", "r3"
        ),
        create_simple_memory(
            "Call grandma on Sunday", MemoryType.CUSTOM, "2024-04-20T10:00:00.000Z", "r4"
        ),
    ]


@pytest.fixture()
def memory_store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture()
def sqlite_store(tmp_path: Path) -> SQLAlchemyMemoryStore:
    store = SQLAlchemyMemoryStore.from_url(f"sqlite:///{tmp_path/'familymem.db'}")
    yield store
    store.db_manager.close()
