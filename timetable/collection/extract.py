"""
HTML timetable extraction: table body -> rows -> de-tagged cell strings.

Extraction is strict. A missing body, no rows, or a single row without cells raises
MarkupShapeError; skipping a row would shift the positional column mapping of every row after it.
"""
import logging
import re
from typing import List, Optional

from bs4 import BeautifulSoup

from timetable.collection.errors import MarkupShapeError

logger = logging.getLogger(__name__)

_WHITESPACE_RE = re.compile(r"\s+")


def clean_cell(text: str) -> str:
    """Collapse whitespace (including decoded &nbsp;) and trim."""
    return _WHITESPACE_RE.sub(" ", text).strip()


def is_positive_int(value: str) -> bool:
    return value.isdigit() and int(value) > 0


def extract_rows(html: str, selector: Optional[str] = None, numbered_only: bool = False) -> List[List[str]]:
    """
    Return the rows of the first table body (or the element matched by the CSS selector) as
    lists of cell strings.
    numbered_only: drop rows whose first cell is not a positive integer (header/decoration rows).
    """
    soup = BeautifulSoup(html or "", "html.parser")

    body = soup.select_one(selector) if selector else soup.find("tbody")
    if body is None:
        raise MarkupShapeError("No table body found in timetable page")

    row_tags = body.find_all("tr")
    if not row_tags:
        raise MarkupShapeError("No rows found in timetable body")

    rows: List[List[str]] = []
    for position, row in enumerate(row_tags):
        cell_tags = row.find_all(["td", "th"])
        if not cell_tags:
            raise MarkupShapeError(f"Row {position} has no cells")
        rows.append([clean_cell(cell.get_text(" ")) for cell in cell_tags])

    if numbered_only:
        kept = [row for row in rows if is_positive_int(row[0])]
        logger.debug(f"Kept {len(kept)} of {len(rows)} rows with a numeric first cell")
        rows = kept

    return rows
