# SPDX-License-Identifier: Apache-2.0

"""
SLA deadline computation and reporting.

Deadlines are plain fixed-offset hour arithmetic on the reference wall
clock. Functions that need the current time take it explicitly.
"""

from datetime import datetime, timedelta, timezone
from typing import Dict, FrozenSet, Iterable, Optional, Union

from ..models.entities import Site, Ticket
from ..models.enums import Priority
from ..models.results import SLAStatus
from ..utils.clock import REFERENCE_TIMEZONE, Clock, ensure_aware, resolve_now

METRO_ZONES: FrozenSet[str] = frozenset({"CENTRO", "NORTE", "SUR"})

SLA_HOURS: Dict[str, int] = {
    Priority.P1.value: 8,
    Priority.P2.value: 24,
    Priority.P3.value: 72,
}
P0_METRO_HOURS = 2
P0_REGIONAL_HOURS = 4
DEFAULT_SLA_HOURS = 24

ONE_MINUTE = timedelta(minutes=1)


def _priority_key(priority: Union[Priority, str, None]) -> str:
    if isinstance(priority, Priority):
        return priority.value
    return str(priority) if priority is not None else ""


def is_metro_zone(zone: Optional[str]) -> bool:
    """Check if a zone belongs to the metropolitan area (case-insensitive)."""
    return bool(zone) and zone.strip().upper() in METRO_ZONES


def get_sla_hours_by_priority(priority: Union[Priority, str], zone: Optional[str] = None) -> int:
    """
    Look up the SLA window for a priority.

    Args:
        priority: Ticket priority (P0..P3)
        zone: Site zone; only relevant for P0

    Returns:
        SLA window in hours, 24 for unknown priorities
    """
    key = _priority_key(priority)

    if key == Priority.P0.value:
        return P0_METRO_HOURS if is_metro_zone(zone) else P0_REGIONAL_HOURS

    return SLA_HOURS.get(key, DEFAULT_SLA_HOURS)


def calculate_sla_deadline(
    opened_at: datetime,
    priority: Union[Priority, str],
    zone: Optional[str] = None
) -> datetime:
    """Deadline as ``opened_at`` plus the SLA window, independent of calendar boundaries."""
    return opened_at + timedelta(hours=get_sla_hours_by_priority(priority, zone))


def effective_sla_deadline(ticket: Ticket, site: Optional[Site] = None) -> datetime:
    """Stored deadline of the ticket, or one computed from its priority and site zone."""
    if ticket.sla_deadline_at is not None:
        return ticket.sla_deadline_at
    return calculate_sla_deadline(ticket.opened_at, ticket.priority, site.zone if site else None)


def calculate_sla_remaining(
    ticket: Ticket,
    now: Optional[datetime] = None,
    clock: Optional[Clock] = None,
    tz: timezone = REFERENCE_TIMEZONE
) -> SLAStatus:
    """
    Remaining SLA time of a ticket.

    Remaining minutes are floored, so a deadline 30 seconds in the past
    already counts as overdue. The displayed value is clamped at zero while
    the overdue flag uses the signed value.

    Args:
        ticket: Ticket with an optional deadline
        now: Current time; takes precedence over ``clock``
        clock: Time source used when ``now`` is not given
        tz: Reference timezone for naive timestamps

    Returns:
        SLAStatus with remaining minutes and overdue flag
    """
    if ticket.sla_deadline_at is None:
        return SLAStatus(remaining_minutes=0, is_overdue=False)

    current = resolve_now(now, clock, tz)
    deadline = ensure_aware(ticket.sla_deadline_at, tz)
    remaining = (deadline - current) // ONE_MINUTE

    return SLAStatus(remaining_minutes=max(0, remaining), is_overdue=remaining < 0)


def calculate_sla_minutes(
    opened_at: datetime,
    neutralized_at: datetime,
    tz: timezone = REFERENCE_TIMEZONE
) -> int:
    """Elapsed whole minutes between opening and neutralization, floored."""
    return (ensure_aware(neutralized_at, tz) - ensure_aware(opened_at, tz)) // ONE_MINUTE


def format_sla_time(minutes: int) -> str:
    """Render minutes as ``45m`` or ``2h 5m``."""
    if minutes < 60:
        return f"{minutes}m"
    hours = minutes // 60
    mins = minutes % 60
    return f"{hours}h {mins}m"


def is_within_sla(ticket: Ticket) -> Optional[bool]:
    """
    Check if a ticket was neutralized before its deadline.

    Returns None when compliance cannot be judged: the ticket is excluded
    from SLA, not yet neutralized, or has no deadline.
    """
    if ticket.is_sla_excluded():
        return None
    if ticket.neutralized_at is None or ticket.sla_deadline_at is None:
        return None
    return ensure_aware(ticket.neutralized_at) <= ensure_aware(ticket.sla_deadline_at)


def sla_compliance_rate(tickets: Iterable[Ticket]) -> float:
    """Percentage of evaluable tickets neutralized within SLA."""
    verdicts = [v for v in (is_within_sla(t) for t in tickets) if v is not None]
    if not verdicts:
        return 0.0
    return round(100.0 * sum(1 for v in verdicts if v) / len(verdicts), 1)
