"""Tabular (CSV) rendering of a backup payload, one table per collection."""

import csv
import io
import json
from typing import Any, Dict, List

from ..._utils import logger
from ...base import Document
from ..models import BackupPayload

EMPTY_TABLE_ROW = {"id": "No Data Available", "note": "This collection is empty"}


def _cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, (dict, list)):
        return json.dumps(value, sort_keys=True, default=str, ensure_ascii=False)
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


class TabularExporter:
    """Render each collection of a payload as a CSV table."""

    def __init__(self, delimiter: str = ","):
        self.delimiter = delimiter

    def export(self, payload: BackupPayload) -> Dict[str, bytes]:
        """Render the payload.

        Returns:
            Mapping of ``tables/<collection>.csv`` to UTF-8 CSV bytes
        """
        tables = {
            f"tables/{collection}.csv": self.render(documents)
            for collection, documents in payload.items()
        }
        logger.debug(f"Rendered {len(tables)} table(s)")
        return tables

    def render(self, documents: List[Document]) -> bytes:
        """Render one collection.

        Columns are ``id`` followed by the sorted union of top-level field
        names. Nested values are written as JSON.
        """
        buffer = io.StringIO()
        if not documents:
            writer = csv.DictWriter(buffer, fieldnames=list(EMPTY_TABLE_ROW), delimiter=self.delimiter)
            writer.writeheader()
            writer.writerow(EMPTY_TABLE_ROW)
            return buffer.getvalue().encode("utf-8")

        columns = sorted({key for doc in documents for key in doc["fields"] if key != "id"})
        writer = csv.writer(buffer, delimiter=self.delimiter)
        writer.writerow(["id", *columns])
        for doc in documents:
            writer.writerow([doc["id"], *(_cell(doc["fields"].get(column)) for column in columns)])
        return buffer.getvalue().encode("utf-8")
