# src/progress/__init__.py — v1
