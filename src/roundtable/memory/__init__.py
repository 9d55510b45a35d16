# src/roundtable/memory/__init__.py

from .store import DEFAULT_CAPACITY, Memory, MemoryManager, TaskContext

__all__ = ["DEFAULT_CAPACITY", "Memory", "MemoryManager", "TaskContext"]
