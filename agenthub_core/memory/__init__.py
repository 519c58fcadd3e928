"""Memory package - message history storage for agents."""

from .base import MemoryBase
from .in_memory import InMemoryMemory
from .sqlite_store import SQLiteMemory, SQLiteMsgStore

__all__ = [
    "MemoryBase",
    "InMemoryMemory",
    "SQLiteMemory",
    "SQLiteMsgStore",
]
