# apps/internal_control/rollup.py
"""
Aggregates computed from the current lifecycle records on every call.

Nothing is cached or stored, so counts cannot drift from the records they
describe. Reads are not taken from one snapshot: a write landing between two
queries may be half-counted until the next call.
"""
import math
from dataclasses import asdict, dataclass

from django.db.models import Count

from apps.core import errors
from apps.core.persistence import collaborator_call
from apps.internal_control import status as derive
from apps.internal_control.models import CAPA, ActionPlan, Control, ControlTest, Finding
from apps.standards.models import Action, Category


@dataclass(frozen=True)
class RollupCounts:
    controls: int = 0
    tests: int = 0
    findings: int = 0
    capas: int = 0

    def as_dict(self) -> dict:
        return asdict(self)


def _per_action(model, organization_id, plan_id, action_ids=None) -> dict:
    qs = model.objects.filter(organization_id=organization_id, plan_id=plan_id, action__isnull=False)
    if action_ids is not None:
        qs = qs.filter(action_id__in=list(action_ids))
    rows = qs.order_by().values("action_id").annotate(n=Count("id")).values_list("action_id", "n")
    return dict(rows)


def counts_by_action(organization_id, plan_id, action_ids=None) -> dict:
    """{action_id: RollupCounts} with one grouped query per record type."""
    with collaborator_call():
        controls = _per_action(Control, organization_id, plan_id, action_ids)
        tests = _per_action(ControlTest, organization_id, plan_id, action_ids)
        findings = _per_action(Finding, organization_id, plan_id, action_ids)
        capas = _per_action(CAPA, organization_id, plan_id, action_ids)
    keys = set(controls) | set(tests) | set(findings) | set(capas)
    return {
        k: RollupCounts(controls.get(k, 0), tests.get(k, 0), findings.get(k, 0), capas.get(k, 0))
        for k in keys
    }


def aggregate_action_plan(action_plan_id, organization_id, plan_id) -> RollupCounts:
    with collaborator_call():
        try:
            plan = ActionPlan.objects.get(pk=action_plan_id, organization_id=organization_id, plan_id=plan_id)
        except (ActionPlan.DoesNotExist, ValueError, TypeError):
            raise errors.NotFound("ActionPlan", action_plan_id)
    counts = counts_by_action(organization_id, plan_id, [plan.action_id])
    return counts.get(plan.action_id, RollupCounts())


# ========================
# Progress
# ========================

def linked_progress(target_quantity, current_quantity) -> int:
    """round(current / target * 100) clamped to 0..100; 0 without a positive target."""
    if not target_quantity or target_quantity <= 0:
        return 0
    ratio = (current_quantity or 0) / target_quantity * 100
    return max(0, min(100, math.floor(ratio + 0.5)))


def action_progress(action: Action) -> int:
    if action.is_linked:
        return linked_progress(action.target_quantity, action.current_quantity)
    return action.progress_percent or 0


def component_progress(category_id, organization_id, plan_id):
    """
    Mean progress of the actions under a category (component).

    Actions whose sub-standard chain does not resolve are left out rather than
    counted as zero. Returns None when no action qualifies.
    """
    with collaborator_call():
        actions = list(Action.objects.filter(
            organization_id=organization_id,
            plan_id=plan_id,
            sub_standard__main_standard__category_id=category_id,
        ))
    if not actions:
        return None
    return round(sum(action_progress(a) for a in actions) / len(actions), 2)


def component_summary(organization_id, plan_id) -> list:
    with collaborator_call():
        categories = list(Category.objects.all())
        actions = list(Action.objects.filter(
            organization_id=organization_id, plan_id=plan_id, sub_standard__isnull=False,
        ).select_related("sub_standard__main_standard"))

    by_category = {}
    for a in actions:
        by_category.setdefault(a.sub_standard.main_standard.category_id, []).append(action_progress(a))

    out = []
    for c in categories:
        values = by_category.get(c.pk, [])
        out.append({
            "category_id": c.pk,
            "code": c.code,
            "name": c.name,
            "actions": len(values),
            "average_progress": round(sum(values) / len(values), 2) if values else None,
        })
    return out


# ========================
# Due dates
# ========================

def overdue_capas(organization_id, plan_id, today=None) -> list:
    with collaborator_call():
        capas = list(CAPA.objects.filter(organization_id=organization_id, plan_id=plan_id))
    return [c for c in capas if derive.derived_capa_status(c, today=today) == derive.OVERDUE]


def due_soon_capas(organization_id, plan_id, window_days=None, today=None) -> list:
    with collaborator_call():
        capas = list(CAPA.objects.filter(organization_id=organization_id, plan_id=plan_id))
    return [
        c for c in capas
        if c.status not in derive.CAPA_SETTLED_STATUSES
        and derive.is_due_soon(c.due_date, window_days=window_days, today=today, status=c.status)
    ]


def overdue_actions(organization_id, plan_id, today=None) -> list:
    with collaborator_call():
        actions = list(Action.objects.filter(organization_id=organization_id, plan_id=plan_id))
    return [a for a in actions if derive.is_action_overdue(a, today=today)]


def approval_summary(organization_id, plan_id) -> dict:
    with collaborator_call():
        rows = (
            ActionPlan.objects.filter(organization_id=organization_id, plan_id=plan_id)
            .order_by().values("approval_status").annotate(n=Count("id"))
            .values_list("approval_status", "n")
        )
        counted = dict(rows)
    return {key: counted.get(key, 0) for key, _ in ActionPlan.APPROVAL_CHOICES}


def dashboard(organization_id, plan_id, today=None) -> dict:
    scope = {"organization_id": organization_id, "plan_id": plan_id}
    with collaborator_call():
        totals = RollupCounts(
            controls=Control.objects.filter(**scope).count(),
            tests=ControlTest.objects.filter(**scope).count(),
            findings=Finding.objects.filter(**scope).count(),
            capas=CAPA.objects.filter(**scope).count(),
        )
    return {
        "totals": totals.as_dict(),
        "components": component_summary(organization_id, plan_id),
        "approvals": approval_summary(organization_id, plan_id),
        "overdue_capas": [c.capa_code for c in overdue_capas(organization_id, plan_id, today=today)],
        "due_soon_capas": [c.capa_code for c in due_soon_capas(organization_id, plan_id, today=today)],
        "overdue_actions": [a.code for a in overdue_actions(organization_id, plan_id, today=today)],
    }
