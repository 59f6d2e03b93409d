from __future__ import annotations

import time
from datetime import date, datetime


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    return datetime.strptime(value, "%Y-%m-%d").date()


def format_iso_date(value: date) -> str:
    return value.strftime("%Y-%m-%d")


def now_ms() -> int:
    """Milliseconds since the epoch, the timestamp unit stored on records."""
    return int(time.time() * 1000)


def today() -> date:
    """Current local day.

    Note: Wrapped so tests can patch/mocked easier.
    """
    return date.today()
