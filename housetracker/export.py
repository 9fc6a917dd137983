"""Spreadsheet export of the tracked listings."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable

from openpyxl import Workbook
from openpyxl.utils import get_column_letter

from .models import Listing

logger = logging.getLogger(__name__)

EXPORT_COLUMNS = (
    "id",
    "link",
    "vote",
    "comment",
    "city",
    "zone",
    "street",
    "lat",
    "lng",
    "rooms_number",
    "square_meters",
)
WIDE_COLUMNS = ("link", "comment")


def build_workbook(listings: Iterable[Listing]) -> Workbook:
    """One row per listing, in collection order, below a header row."""
    workbook = Workbook()
    worksheet = workbook.active
    worksheet.title = "listings"
    worksheet.append(list(EXPORT_COLUMNS))
    for listing in listings:
        worksheet.append([getattr(listing, column) for column in EXPORT_COLUMNS])

    for index, column in enumerate(EXPORT_COLUMNS, start=1):
        width = 40 if column in WIDE_COLUMNS else max(len(column), 10) + 2
        worksheet.column_dimensions[get_column_letter(index)].width = width
    worksheet.freeze_panes = "A2"
    return workbook


def export_listings_to_xlsx(listings: Iterable[Listing], path: Path) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    workbook = build_workbook(listings)
    workbook.save(path)
    logger.info("Exported %d listings to %s", workbook.active.max_row - 1, path)
    return path
