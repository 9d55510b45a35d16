# src/roundtable/io/__init__.py
