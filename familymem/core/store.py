"""
Memory store collaborator interface
"""

from functools import partial
from typing import Any, Callable, Dict, List, Optional, Protocol, Tuple, runtime_checkable

StoreFn = Callable[[str], bool]
ClearFn = Callable[[], bool]


@runtime_checkable
class MemoryStore(Protocol):
    """Anything that can hold memories for a user and an AI family member"""

    def get_memories(
        self, user_id: str, family: str, limit: Optional[int] = 10
    ) -> List[Dict[str, Any]]:
        """Newest first; limit=None returns the whole collection"""
        ...

    def store_memory(self, user_id: str, family: str, text: str) -> bool: ...

    def search_memories(
        self, user_id: str, family: str, query: str, limit: int = 10
    ) -> List[Dict[str, Any]]: ...

    def clear_memories(self, user_id: str, family: str) -> bool: ...


def bind_store(store: MemoryStore, user_id: str, family: str) -> Tuple[StoreFn, ClearFn]:
    """Return (store(text), clear()) callables scoped to one user and family"""
    return (
        partial(store.store_memory, user_id, family),
        partial(store.clear_memories, user_id, family),
    )
