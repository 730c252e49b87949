"""Utility helpers for dmn-engine (file I/O, logging setup)."""
