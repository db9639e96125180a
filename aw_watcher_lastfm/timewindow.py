"""
Compact duration tokens for --sync: "7d", "24h", "30m".
"""

from __future__ import annotations
import argparse
import re
from datetime import timedelta

_TOKEN = re.compile(r"(\d+)([dhm])", re.ASCII)

_UNITS = {"d": "days", "h": "hours", "m": "minutes"}


def parse_time_window(token: str) -> timedelta | None:
    """Return the duration for `token`, or None if it isn't <digits><d|h|m>."""
    m = _TOKEN.fullmatch(token or "")
    if m is None:
        return None
    amount, unit = m.groups()
    try:
        return timedelta(**{_UNITS[unit]: int(amount)})
    except OverflowError:
        return None


def sync_window(token: str) -> timedelta:
    # argparse `type=` hook: bad tokens abort at parse time
    window = parse_time_window(token)
    if window is None:
        raise argparse.ArgumentTypeError(
            f"invalid sync duration {token!r}; use a format like 7d, 24h or 30m"
        )
    return window
