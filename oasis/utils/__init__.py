"""Persistence, broadcast and logging helpers."""
