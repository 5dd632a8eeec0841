# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Clock and reference-timezone helpers.

Field operations run on a single fixed-offset wall clock (America/Lima,
UTC-5, no DST). Every function that needs "now" takes it as an explicit
argument or a clock callable so tests can pin time deterministically.
"""

from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

REFERENCE_TIMEZONE = timezone(timedelta(hours=-5), "America/Lima")

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def reference_now(tz: timezone = REFERENCE_TIMEZONE) -> datetime:
    """Current wall-clock time in the reference timezone."""
    return datetime.now(tz)


def ensure_aware(value: datetime, tz: timezone = REFERENCE_TIMEZONE) -> datetime:
    """
    Attach the reference timezone to naive datetimes.
    
    Stored timestamps without an offset are wall-clock readings in the
    reference timezone. Aware values are returned unchanged.
    """
    if value.tzinfo is None or value.utcoffset() is None:
        return value.replace(tzinfo=tz)
    return value


def to_reference_time(value: datetime, tz: timezone = REFERENCE_TIMEZONE) -> datetime:
    """Convert a datetime to the reference timezone."""
    return ensure_aware(value, tz).astimezone(tz)


def resolve_now(
    now: Optional[datetime] = None,
    clock: Optional[Clock] = None,
    tz: timezone = REFERENCE_TIMEZONE
) -> datetime:
    """
    Pick the effective current time.
    
    An explicit ``now`` wins over ``clock``; with neither, the real
    reference-timezone clock is read.
    """
    if now is not None:
        return ensure_aware(now, tz)
    if clock is not None:
        return ensure_aware(clock(), tz)
    return reference_now(tz)


def format_reference_timestamp(value: datetime, tz: timezone = REFERENCE_TIMEZONE) -> str:
    """Render a timestamp as ISO-8601 with the reference offset, e.g. 2024-11-07T10:30:45-05:00."""
    return to_reference_time(value, tz).isoformat(timespec="seconds")
