from __future__ import annotations

import threading
from typing import Dict, List

from roundtable.errors import ToolNotFoundError
from roundtable.tools.base import Tool


class ToolRegistry:
    """
    Thread-safe name -> Tool lookup shared by agents.
    """

    def __init__(self) -> None:
        self._tools: Dict[str, Tool] = {}
        self._lock = threading.Lock()

    def register(self, tool: Tool) -> None:
        with self._lock:
            self._tools[tool.name] = tool

    def get(self, name: str) -> Tool:
        with self._lock:
            try:
                return self._tools[name]
            except KeyError:
                raise ToolNotFoundError(name) from None

    def tools(self) -> List[Tool]:
        """Registered tools, in registration order."""
        with self._lock:
            return list(self._tools.values())

    def names(self) -> List[str]:
        with self._lock:
            return sorted(self._tools)

    def __contains__(self, name: object) -> bool:
        with self._lock:
            return name in self._tools

    def __len__(self) -> int:
        with self._lock:
            return len(self._tools)
