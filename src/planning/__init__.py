# src/planning/__init__.py — v1
