"""Injectable wall clock in the office timezone."""

from __future__ import annotations

from datetime import datetime
from typing import Callable

from hr_payroll.config import Settings, get_settings

Clock = Callable[[], datetime]


def office_clock(settings: Settings | None = None) -> Clock:
    """Return a clock producing timezone-aware "now" in the office timezone."""
    tz = (settings or get_settings()).tz

    def now() -> datetime:
        return datetime.now(tz)

    return now
