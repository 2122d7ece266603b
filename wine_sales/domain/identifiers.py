"""
Record id allocation.

Two id shapes are in use:

- sequential:   <prefix><seq>          e.g. C001, D012, CS004
- year-scoped:  <prefix><YYYY><seq>    e.g. O-2024001, INV-2024012

The sequence is zero-padded to a minimum width and is allowed to grow past
it (C999 -> C1000). Allocation takes the numeric maximum over the existing
ids, never a string sort, so widening never produces a duplicate.
Year-scoped sequences restart at 1 every calendar year.
"""
import re
from dataclasses import dataclass
from datetime import date
from typing import Iterable, Optional, Tuple

DEFAULT_WIDTH = 3


@dataclass(frozen=True)
class IdFormat:
    """Id layout for one collection."""
    prefix: str
    width: int = DEFAULT_WIDTH
    year_scoped: bool = False

    @property
    def pattern(self) -> "re.Pattern[str]":
        if self.year_scoped:
            return re.compile(rf"^{re.escape(self.prefix)}(\d{{4}})(\d{{{self.width},}})$")
        return re.compile(rf"^{re.escape(self.prefix)}(\d{{{self.width},}})$")

    def parse(self, record_id: object) -> Optional[Tuple[int, int]]:
        """
        Split an id into (year, sequence).

        Year is 0 for sequential formats. Returns None for ids that do not
        follow this format.
        """
        if not isinstance(record_id, str):
            return None
        match = self.pattern.match(record_id)
        if not match:
            return None
        if self.year_scoped:
            return int(match.group(1)), int(match.group(2))
        return 0, int(match.group(1))

    def format(self, sequence: int, year: Optional[int] = None) -> str:
        if sequence < 1:
            raise ValueError(f"Sequence must be >= 1, got {sequence}")
        seq = str(sequence).zfill(self.width)
        if self.year_scoped:
            if year is None:
                raise ValueError(f"{self.prefix} ids need a year")
            return f"{self.prefix}{year:04d}{seq}"
        return f"{self.prefix}{seq}"

    def next_id(self, existing_ids: Iterable[object], today: Optional[date] = None) -> str:
        """
        Allocate the id following the highest existing one.

        Args:
            existing_ids: Ids already present in the collection
            today: Allocation date (year-scoped formats only, default: today)
        """
        year = (today or date.today()).year if self.year_scoped else 0
        highest = 0
        for record_id in existing_ids:
            parsed = self.parse(record_id)
            if parsed and parsed[0] == year:
                highest = max(highest, parsed[1])
        return self.format(highest + 1, year if self.year_scoped else None)

    def sort_key(self, record_id: object) -> Tuple[int, int]:
        """Numeric ordering key; ids in a foreign format sort first."""
        return self.parse(record_id) or (-1, -1)


CUSTOMER_ID = IdFormat("C")
DELIVERY_LOCATION_ID = IdFormat("D")
PRODUCT_ID = IdFormat("P")
CELLAR_STOCK_ID = IdFormat("CS")
DISCOUNT_RULE_ID = IdFormat("DR")
NOTICE_ID = IdFormat("N")
ORDER_ID = IdFormat("O-", year_scoped=True)
USAGE_RECORD_ID = IdFormat("U-", year_scoped=True)
ACTIVITY_ID = IdFormat("A-", year_scoped=True)
INVOICE_ID = IdFormat("INV-", year_scoped=True)
DELIVERY_ID = IdFormat("DEL-", year_scoped=True)
