"""Helper sinks for exporting mapped receipt rows."""
from __future__ import annotations

import csv
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List

from openpyxl import Workbook

from receiptflow.mapping.templates import TEMPLATE_HEADERS

logger = logging.getLogger(__name__)

SHEET_TITLE = "mapped_receipts"


def ensure_output_dir(output_path: Path) -> None:
    """Create parent folders for sink outputs when missing."""

    output_path.parent.mkdir(parents=True, exist_ok=True)


def write_csv(rows: Iterable[Dict[str, Any]], output_path: Path) -> None:
    """Write template rows to a CSV file with consistent headers."""

    rows = list(rows)
    ensure_output_dir(output_path)

    with output_path.open("w", newline="", encoding="utf-8") as csvfile:
        writer = csv.DictWriter(csvfile, fieldnames=TEMPLATE_HEADERS)
        writer.writeheader()
        writer.writerows(rows)


def write_excel(rows: Iterable[Dict[str, Any]], output_path: Path) -> None:
    """Write template rows to a single-sheet Excel workbook."""

    rows = list(rows)
    if not rows:
        logger.info("No rows to export; skipping Excel workbook %s", output_path)
        return

    ensure_output_dir(output_path)
    workbook = Workbook()
    sheet = workbook.active
    sheet.title = SHEET_TITLE
    headers: List[str] = list(TEMPLATE_HEADERS)
    sheet.append(headers)
    for row in rows:
        sheet.append([row.get(header, "") for header in headers])
    workbook.save(output_path)
