"""
app/services/export_service.py

Spreadsheet-compatible CSV export of the record collection.

Layout
------
    Name, Phone1, Phone2, Address, City, District, Category, SourceLink

Every field is double-quoted with embedded quotes doubled, the file is
UTF-8 with a byte-order mark so spreadsheet tools detect the encoding, and
the filename embeds the record count. Exporting never mutates the collection.
"""

from __future__ import annotations

import csv
import io
from collections.abc import Sequence
from dataclasses import dataclass

from app.crawl.errors import EmptyExportError
from app.domain.business_record import BusinessRecord

EXPORT_HEADERS: tuple[str, ...] = (
    "Name",
    "Phone1",
    "Phone2",
    "Address",
    "City",
    "District",
    "Category",
    "SourceLink",
)

UTF8_BOM = "\ufeff"


@dataclass(frozen=True)
class CSVExport:
    """
    Serialised export ready for download or writing to disk.
    """

    filename: str
    content: bytes
    row_count: int


def record_to_row(record: BusinessRecord) -> list[str]:
    """
    Flatten one record into export column order; phones split into two columns.
    """

    phones = record.phones
    return [
        record.name,
        phones[0] if len(phones) > 0 else "",
        phones[1] if len(phones) > 1 else "",
        record.address,
        record.city,
        record.district,
        record.category,
        record.source_url,
    ]


def export_filename(record_count: int, prefix: str = "business_records") -> str:
    return f"{prefix}_{record_count}_rows.csv"


def render_csv(records: Sequence[BusinessRecord]) -> str:
    """
    Render records as CSV text, BOM included.
    """

    buf = io.StringIO()
    buf.write(UTF8_BOM)
    writer = csv.writer(buf, quoting=csv.QUOTE_ALL, lineterminator="\r\n")
    writer.writerow(EXPORT_HEADERS)
    for record in records:
        writer.writerow(record_to_row(record))
    return buf.getvalue()


class CSVExportService:
    """
    Builds CSV downloads from a record snapshot.
    """

    def __init__(self, *, filename_prefix: str = "business_records") -> None:
        self._filename_prefix = filename_prefix

    def export(self, records: Sequence[BusinessRecord]) -> CSVExport:
        if not records:
            raise EmptyExportError("There are no records to export.")
        return CSVExport(
            filename=export_filename(len(records), self._filename_prefix),
            content=render_csv(records).encode("utf-8"),
            row_count=len(records),
        )
