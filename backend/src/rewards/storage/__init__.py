"""Persistence: database engine, sessions and upload storage."""

from rewards.storage.db import Base, Database, db

__all__ = ["Base", "Database", "db"]
