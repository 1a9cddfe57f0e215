"""Eventify: campus event registration service."""

# Re-export the common database helpers for convenience.
from .database import Base, get_db, init_models  # noqa: F401

__all__ = ["Base", "get_db", "init_models"]
