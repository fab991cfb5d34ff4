from __future__ import annotations

from typing import Iterable

from kiln.domain.models import Entry

FIRST_CHALLAN_NO = 1001


def next_challan_number(entries: Iterable[Entry]) -> int:
    """
    Next memo number: one above the highest challan seen on any sale.

    Always derived from the entries passed in, so restoring a backup with
    higher numbers resumes above them.
    """
    numbers = [int(e.challan_no or 0) for e in entries if e.is_sale]
    if not numbers:
        return FIRST_CHALLAN_NO
    return max(numbers) + 1


def challan_in_use(entries: Iterable[Entry], challan_no: int) -> bool:
    return any(e.is_sale and e.challan_no == challan_no for e in entries)
