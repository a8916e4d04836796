"""
app/services package marker.
"""

from app.services.crawl_service import CrawlService, CrawlStatusView, get_crawl_service
from app.services.export_service import CSVExport, CSVExportService

__all__ = [
    "CrawlService",
    "CrawlStatusView",
    "CSVExport",
    "CSVExportService",
    "get_crawl_service",
]
