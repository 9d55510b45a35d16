# src/roundtable/agents/__init__.py
"""
Agent interface and its variants (expert, tool, chain) plus the panel
factory.
"""
