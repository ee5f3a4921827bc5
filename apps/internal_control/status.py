# apps/internal_control/status.py
"""
Time-relative status derived at read time. Nothing here writes to the store.

Every screen that shows "overdue" or "due soon" goes through these functions.
"""
import math
from datetime import datetime

from django.conf import settings
from django.utils import timezone

TERMINAL_STATUSES = frozenset({"closed", "verified", "completed", "cancelled"})
# A CAPA waiting for verification is out of the owner's hands.
CAPA_SETTLED_STATUSES = TERMINAL_STATUSES | {"pending_verification"}

OVERDUE = "overdue"
SECONDS_PER_DAY = 86400


def _now(today=None):
    if today is not None:
        return today
    return timezone.localdate()


def _elapsed_days(due, today) -> int:
    """Whole days from ``due`` to ``today``; negative when ``due`` is still ahead."""
    if isinstance(due, datetime) or isinstance(today, datetime):
        due_dt = due if isinstance(due, datetime) else datetime.combine(due, datetime.min.time())
        now_dt = today if isinstance(today, datetime) else datetime.combine(today, datetime.min.time())
        if timezone.is_aware(due_dt) != timezone.is_aware(now_dt):
            due_dt = due_dt.replace(tzinfo=None)
            now_dt = now_dt.replace(tzinfo=None)
        return math.floor((now_dt - due_dt).total_seconds() / SECONDS_PER_DAY)
    return (today - due).days


def is_overdue(due_date, status=None, today=None, settled=TERMINAL_STATUSES) -> bool:
    if due_date is None or status in settled:
        return False
    return _elapsed_days(due_date, _now(today)) > 0


def days_overdue(due_date, today=None) -> int:
    if due_date is None:
        return 0
    return max(0, _elapsed_days(due_date, _now(today)))


def days_until(due_date, today=None):
    if due_date is None:
        return None
    return -_elapsed_days(due_date, _now(today))


def is_due_soon(due_date, window_days=None, today=None, status=None) -> bool:
    """Due today or within the next ``window_days`` days, and not yet settled."""
    if due_date is None or status in TERMINAL_STATUSES:
        return False
    if window_days is None:
        window_days = getattr(settings, "COMPLIANCE_DUE_SOON_DAYS", 7)
    remaining = days_until(due_date, today)
    return 0 <= remaining <= window_days


def derived_capa_status(capa, today=None) -> str:
    if is_overdue(capa.due_date, capa.status, today=today, settled=CAPA_SETTLED_STATUSES):
        return OVERDUE
    return capa.status


def is_action_overdue(action, today=None) -> bool:
    return is_overdue(action.target_date, action.status, today=today)

