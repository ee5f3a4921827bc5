import datetime

from apps.internal_control import status as derive
from apps.internal_control.models import CAPA

D = datetime.date
DT = datetime.datetime


def test_past_due_is_overdue_same_day_is_not():
    assert derive.is_overdue(D(2025, 1, 1), "in_progress", today=D(2025, 1, 2))
    assert not derive.is_overdue(D(2025, 1, 2), "in_progress", today=D(2025, 1, 2))
    assert not derive.is_overdue(D(2025, 1, 3), "open", today=D(2025, 1, 2))


def test_terminal_states_are_never_overdue():
    for state in ("closed", "verified", "completed", "cancelled"):
        assert not derive.is_overdue(D(2020, 1, 1), state, today=D(2025, 1, 1))


def test_missing_due_date_is_never_overdue():
    assert not derive.is_overdue(None, "open", today=D(2025, 1, 1))
    assert derive.days_overdue(None, today=D(2025, 1, 1)) == 0


def test_partial_days_are_floored():
    due = DT(2025, 1, 1, 10, 0)
    assert not derive.is_overdue(due, "open", today=DT(2025, 1, 2, 9, 59))
    assert derive.is_overdue(due, "open", today=DT(2025, 1, 2, 10, 0))
    assert derive.days_overdue(due, today=DT(2025, 1, 4, 9, 0)) == 2


def test_days_overdue_and_days_until():
    assert derive.days_overdue(D(2025, 1, 1), today=D(2025, 1, 11)) == 10
    assert derive.days_overdue(D(2025, 1, 20), today=D(2025, 1, 11)) == 0
    assert derive.days_until(D(2025, 1, 20), today=D(2025, 1, 11)) == 9


def test_due_soon_window():
    today = D(2025, 3, 1)
    assert derive.is_due_soon(D(2025, 3, 1), window_days=7, today=today)
    assert derive.is_due_soon(D(2025, 3, 8), window_days=7, today=today)
    assert not derive.is_due_soon(D(2025, 3, 9), window_days=7, today=today)
    assert not derive.is_due_soon(D(2025, 2, 28), window_days=7, today=today)
    assert not derive.is_due_soon(D(2025, 3, 2), window_days=7, today=today, status="closed")


def test_due_soon_window_defaults_to_setting(settings):
    settings.COMPLIANCE_DUE_SOON_DAYS = 2
    today = D(2025, 3, 1)
    assert derive.is_due_soon(D(2025, 3, 3), today=today)
    assert not derive.is_due_soon(D(2025, 3, 4), today=today)


def test_capa_status_overlay():
    today = D(2025, 6, 15)
    late = CAPA(due_date=D(2025, 6, 1), status="in_progress")
    closed = CAPA(due_date=D(2025, 6, 1), status="closed")
    waiting = CAPA(due_date=D(2025, 6, 1), status="pending_verification")
    on_time = CAPA(due_date=D(2025, 7, 1), status="open")

    assert derive.derived_capa_status(late, today=today) == "overdue"
    assert derive.derived_capa_status(closed, today=today) == "closed"
    assert derive.derived_capa_status(waiting, today=today) == "pending_verification"
    assert derive.derived_capa_status(on_time, today=today) == "open"
    # derivation never writes back
    assert late.status == "in_progress"
