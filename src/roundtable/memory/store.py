from __future__ import annotations

import itertools
import logging
import threading
import time
from collections import deque
from typing import Deque, Dict, List, Optional

from roundtable.llm.base_client import ChatMessage


logger = logging.getLogger(__name__)

DEFAULT_CAPACITY = 100

_TASK_COUNTER = itertools.count(1)


class Memory:
    """
    Ordered, capacity-bounded conversation history for one task.

    Appending to a full memory drops the oldest message first (strict FIFO,
    nothing is summarised). Writers must be serialised per task by the
    caller; schedulers guarantee at most one in-flight agent call at a time.
    """

    def __init__(self, capacity: int = DEFAULT_CAPACITY) -> None:
        if capacity < 1:
            raise ValueError("memory capacity must be at least 1")
        self._messages: Deque[ChatMessage] = deque(maxlen=capacity)

    @property
    def capacity(self) -> int:
        return self._messages.maxlen or DEFAULT_CAPACITY

    def append(self, message: ChatMessage) -> None:
        self._messages.append(message)

    def history(self) -> List[ChatMessage]:
        """Chronological copy of the stored messages."""
        return list(self._messages)

    def clear(self) -> None:
        self._messages.clear()

    def __len__(self) -> int:
        return len(self._messages)


class MemoryManager:
    """
    Maps task identifiers to their Memory, creating entries lazily.
    """

    def __init__(self, capacity: int = DEFAULT_CAPACITY) -> None:
        self._capacity = capacity
        self._memories: Dict[str, Memory] = {}
        self._lock = threading.Lock()

    def get_or_create(self, task_id: str) -> Memory:
        with self._lock:
            memory = self._memories.get(task_id)
            if memory is None:
                memory = Memory(self._capacity)
                self._memories[task_id] = memory
            return memory

    def clear_task(self, task_id: str) -> None:
        """Forget a task's memory. Unknown ids are ignored."""
        with self._lock:
            removed = self._memories.pop(task_id, None)
        if removed is not None:
            logger.debug("Cleared memory for task %s (%d messages)", task_id, len(removed))

    def __contains__(self, task_id: object) -> bool:
        with self._lock:
            return task_id in self._memories


def _new_task_id() -> str:
    return f"task_{time.time_ns()}_{next(_TASK_COUNTER)}"


class TaskContext:
    """
    Identifies one discussion and owns the memory handle agents share for it.

    The same TaskContext is handed to the agents and to the scheduler that
    runs them. `dispose()` clears the task's memory and switches to a fresh
    identifier, so the next discussion starts from an empty history.
    """

    def __init__(
        self,
        memory_manager: Optional[MemoryManager] = None,
        task_id: Optional[str] = None,
    ) -> None:
        self._manager = memory_manager or MemoryManager()
        self._task_id = task_id or _new_task_id()
        self._lock = threading.Lock()

    @property
    def task_id(self) -> str:
        with self._lock:
            return self._task_id

    @property
    def memory_manager(self) -> MemoryManager:
        return self._manager

    @property
    def memory(self) -> Memory:
        return self._manager.get_or_create(self.task_id)

    def dispose(self) -> None:
        with self._lock:
            old_id = self._task_id
            self._task_id = _new_task_id()
        self._manager.clear_task(old_id)
        logger.debug("Task %s disposed; next task is %s", old_id, self._task_id)
