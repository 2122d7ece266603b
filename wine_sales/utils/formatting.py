"""
Display formatting helpers shared by the CLI and exports.
"""
import math
from datetime import date, datetime
from typing import Any, List, Tuple

from ..config import CURRENCY_SYMBOL, ITEMS_PER_PAGE, PAGINATION_MAX_BUTTONS
from ..domain.models import parse_iso_date


def format_date(value: Any) -> str:
    """YYYY/MM/DD, or "" for empty or unparsable input."""
    if not value:
        return ""
    if isinstance(value, datetime):
        value = value.date()
    parsed = value if isinstance(value, date) else parse_iso_date(value)
    if parsed is None:
        return ""
    return parsed.strftime("%Y/%m/%d")


def format_number(value: Any) -> str:
    """Thousands separators (1,234,567); "" for None or non-numeric input."""
    if value is None or value == "":
        return ""
    try:
        number = float(value)
    except (TypeError, ValueError):
        return ""
    if number.is_integer():
        return f"{int(number):,}"
    return f"{number:,.2f}".rstrip("0").rstrip(".")


def format_currency(amount: Any) -> str:
    """Yen amount (¥123,456); "" for None."""
    formatted = format_number(amount)
    if not formatted:
        return ""
    if formatted.startswith("-"):
        return f"-{CURRENCY_SYMBOL}{formatted[1:]}"
    return f"{CURRENCY_SYMBOL}{formatted}"


def pagination_range(current_page: int, total_pages: int,
                     max_buttons: int = PAGINATION_MAX_BUTTONS) -> Tuple[int, int]:
    """
    First and last page button to show around the current page.

    The window is always odd-sized so the current page can sit in the
    middle; it shifts left near the last page.
    """
    if max_buttons % 2 == 0:
        max_buttons += 1
    half = max_buttons // 2

    start_page = max(current_page - half, 1)
    end_page = min(start_page + max_buttons - 1, total_pages)

    if end_page - start_page + 1 < max_buttons:
        start_page = max(end_page - max_buttons + 1, 1)

    return start_page, end_page


def paginate(records: List[Any], page: int, per_page: int = ITEMS_PER_PAGE) -> Tuple[List[Any], int]:
    """
    Slice one page out of *records*.

    Pages are 1-based and clamped to the valid range.

    Returns:
        (records on the page, total number of pages (at least 1))
    """
    total_pages = max(1, math.ceil(len(records) / per_page))
    page = min(max(page, 1), total_pages)
    start = (page - 1) * per_page
    return records[start:start + per_page], total_pages
