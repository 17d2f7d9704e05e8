# src/ledger/__init__.py — v1
