"""Clock — wall-clock reads in the job timezone."""

from __future__ import annotations

import zoneinfo
from datetime import datetime


class Clock:
    """Reads wall-clock time in a fixed timezone.

    Every window check and key derivation goes through ``now()`` so tests can
    pin the time.

    Args:
        timezone: IANA timezone name used for every ``now()`` read.
    """

    def __init__(self, timezone: str) -> None:
        self._tz = zoneinfo.ZoneInfo(timezone)

    @property
    def tz(self) -> zoneinfo.ZoneInfo:
        return self._tz

    def now(self) -> datetime:
        return datetime.now(self._tz)
