"""
TIME INFORMATION UTILITY
========================

Timestamps for envelopes and stream events. Always UTC, ISO-8601 with
millisecond precision and a trailing "Z" (e.g. 2026-02-05T09:30:12.345Z),
which is what JavaScript clients produce with Date.toISOString().
"""

import datetime


def iso_timestamp(now: datetime.datetime = None) -> str:
    """Return the given (or current) time as an ISO-8601 UTC string."""
    now = now or datetime.datetime.now(datetime.timezone.utc)
    now = now.astimezone(datetime.timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")
