"""Database and retry helpers."""
