"""
Record backup exports.
"""

from app.crawl.storage.base import RecordBackup
from app.crawl.storage.sqlalchemy_storage import SQLAlchemyRecordBackup

__all__ = ["RecordBackup", "SQLAlchemyRecordBackup"]
