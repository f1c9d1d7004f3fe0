"""
Date and year utilities for consistent time handling across the system.
"""

import re
from dataclasses import dataclass, field
from datetime import date
from typing import List, Optional

_YEAR = re.compile(r'\d{4}')
_YEAR_MONTH = re.compile(r'^(\d{4})(?:-(\d{1,2}))?')
_EXPLICIT_YEAR = re.compile(r'\b(20\d{2})\b')


@dataclass
class TemporalHints:
    """Years and relative-time cues found in a query."""
    years: List[int] = field(default_factory=list)
    relative: Optional[str] = None  # current, upcoming, past or recent

    def add_year(self, year: int) -> None:
        if year not in self.years:
            self.years.append(year)


def today(current: Optional[date] = None) -> date:
    """Return the supplied date, or the current date if None."""
    return current or date.today()


def parse_year(value: Optional[str]) -> Optional[int]:
    """Extract the first four-digit year from a date or term string.

    Args:
        value: Text such as '2023-01', 'Fall 2022' or None

    Returns:
        The year, or None if no year is present
    """
    if not value:
        return None
    match = _YEAR.search(value)
    return int(match.group(0)) if match else None


def months_since(value: Optional[str], current: Optional[date] = None) -> Optional[int]:
    """Whole months between a 'YYYY[-MM[-DD]]' date and today.

    Args:
        value: Date string
        current: Reference date (defaults to today)

    Returns:
        Months elapsed (never negative), or None if the value is not a date
    """
    if not value:
        return None
    match = _YEAR_MONTH.match(value.strip())
    if not match:
        return None

    year = int(match.group(1))
    month = int(match.group(2) or 1)
    ref = today(current)
    return max(0, (ref.year - year) * 12 + (ref.month - month))


def derive_temporal_hints(query: str, current: Optional[date] = None) -> TemporalHints:
    """Collect explicit and relative year hints from a query.

    Args:
        query: Raw user query
        current: Reference date (defaults to today)

    Returns:
        TemporalHints with the hinted years in discovery order
    """
    now_year = today(current).year
    hints = TemporalHints()
    lower = query.lower()

    for match in _EXPLICIT_YEAR.findall(query):
        hints.add_year(int(match))

    if re.search(r'\b(this|current)\s+year\b|\bcurrent(ly)?\b|\bnow\b', lower):
        hints.add_year(now_year)
        hints.relative = hints.relative or 'current'

    if re.search(r'\bnext\s+year\b|\bupcoming\b', lower):
        hints.add_year(now_year + 1)
        hints.relative = 'upcoming'

    if re.search(r'\b(last|previous)\s+year\b|\bpast\s+year\b', lower):
        hints.add_year(now_year - 1)
        hints.relative = 'past'

    if re.search(r'\bpast\s+(?:two|couple of)\s+years\b', lower):
        hints.add_year(now_year)
        hints.add_year(now_year - 1)
        hints.relative = 'recent'

    if re.search(r'\brecent\b', lower) and not hints.relative:
        hints.relative = 'recent'

    return hints


def year_distance(year: Optional[int], hinted_years: List[int]) -> Optional[int]:
    """Distance in years to the nearest hinted year, or None when either side is unknown."""
    if year is None or not hinted_years:
        return None
    return min(abs(hinted - year) for hinted in hinted_years)
