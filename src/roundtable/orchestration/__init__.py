# src/roundtable/orchestration/__init__.py
"""
Round-based scheduling: dependency graph, group scheduler, scoring,
selectors, callbacks and run context.

Import from the submodules directly; this package keeps no re-exports so
that agents and tools can depend on `context`/`callbacks` without pulling
in the schedulers.
"""
