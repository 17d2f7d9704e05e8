# src/bundles/__init__.py — v1
