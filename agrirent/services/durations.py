"""Compact duration strings such as ``30m``, ``1h`` or ``7d``."""

import re
from datetime import timedelta

DEFAULT_DURATION = timedelta(hours=1)

_DURATION_RE = re.compile(r"^(\d+)([smhd])$", re.IGNORECASE)
_UNIT_SECONDS = {"s": 1, "m": 60, "h": 3600, "d": 86400}


def parse_duration(value: object) -> timedelta:
    """Parse ``<int><s|m|h|d>`` into a timedelta.

    Anything that does not match the grammar falls back to one hour.
    """
    if not isinstance(value, str):
        return DEFAULT_DURATION
    match = _DURATION_RE.match(value.strip())
    if not match:
        return DEFAULT_DURATION
    amount, unit = match.groups()
    return timedelta(seconds=int(amount) * _UNIT_SECONDS[unit.lower()])
