"""
CSV renderer for report endpoints.

Selected through DRF content negotiation (``?format=csv`` or an
``Accept: text/csv`` header).  The view passes a list of flat dicts;
column order follows the view's ``csv_columns`` when present, otherwise
the keys of the first row.  Dict payloads such as error bodies are
written as ``field, value`` pairs.
"""

from __future__ import annotations

import csv
import io
from typing import Any

from rest_framework.renderers import BaseRenderer


class CSVRenderer(BaseRenderer):
    media_type = "text/csv"
    format = "csv"
    charset = "utf-8"

    def render(self, data: Any, accepted_media_type=None, renderer_context=None) -> bytes:
        if data is None:
            return b""

        renderer_context = renderer_context or {}
        view = renderer_context.get("view")
        buffer = io.StringIO()

        if isinstance(data, dict):
            writer = csv.writer(buffer)
            writer.writerow(["field", "value"])
            for key, value in data.items():
                writer.writerow([key, value])
            return buffer.getvalue().encode(self.charset)

        rows = list(data)
        columns = list(getattr(view, "csv_columns", None) or (rows[0].keys() if rows else []))
        writer = csv.DictWriter(buffer, fieldnames=columns, extrasaction="ignore")
        writer.writeheader()
        writer.writerows(rows)
        return buffer.getvalue().encode(self.charset)
