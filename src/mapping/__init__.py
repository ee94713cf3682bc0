# src/mapping/__init__.py — v1
