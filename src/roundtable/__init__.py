# src/roundtable/__init__.py
"""
Roundtable: round-based multi-agent discussion engine.
"""

__all__ = [
    "agents",
    "config",
    "errors",
    "io",
    "llm",
    "memory",
    "orchestration",
    "tools",
    "utils",
]
