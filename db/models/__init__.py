"""
Model package exports.

Import all SQLAlchemy models here so metadata registration and Alembic
autogeneration work without extra imports.
"""

from db.models.storage_slot import StorageSlot

__all__ = [
    "StorageSlot",
]
