"""
Repository exports.
"""

from db.repositories.storage_slot_repository import StorageSlotRepository

__all__ = ["StorageSlotRepository"]
