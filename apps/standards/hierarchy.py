# apps/standards/hierarchy.py
"""
Category -> MainStandard -> SubStandard -> Action tree for one organization and plan.

Each level is fetched with a single query and grouped by parent id in memory,
so the number of queries does not grow with the size of the taxonomy. When a
unit filter is given, Actions are filtered first and every node left without a
matching Action below it is dropped.
"""
import logging
from collections import defaultdict
from dataclasses import dataclass, field
from typing import List, Optional

from apps.core.persistence import collaborator_call
from apps.core.units import resolve_unit_names
from apps.internal_control import status as derive
from apps.internal_control.models import ActionPlan
from apps.internal_control.rollup import RollupCounts, action_progress, counts_by_action
from apps.standards.models import Action, Category, MainStandard, SubStandard, SubStandardStatus
from apps.standards.scopes import scope_matches

logger = logging.getLogger(__name__)


@dataclass
class ActionNode:
    action: Action
    plan: Optional[ActionPlan]
    counts: RollupCounts
    progress: int
    overdue: bool


@dataclass
class SubStandardNode:
    sub_standard: SubStandard
    status: Optional[SubStandardStatus]
    actions: List[ActionNode] = field(default_factory=list)


@dataclass
class MainStandardNode:
    main_standard: MainStandard
    sub_standards: List[SubStandardNode] = field(default_factory=list)


@dataclass
class CategoryNode:
    category: Category
    main_standards: List[MainStandardNode] = field(default_factory=list)

    def iter_actions(self):
        for ms in self.main_standards:
            for ss in ms.sub_standards:
                yield from ss.actions


def _group(rows, key):
    index = defaultdict(list)
    for row in rows:
        index[getattr(row, key)].append(row)
    return index


def load_hierarchy(organization_id, plan_id, responsible_unit=None, collaborating_unit=None, today=None):
    """
    Returns a list of CategoryNode ordered as the taxonomy is.

    Without filters the whole taxonomy comes back, including branches with no
    Actions for this organization.
    """
    filtering = bool(responsible_unit or collaborating_unit)
    scope = {"organization_id": organization_id, "plan_id": plan_id}

    with collaborator_call():
        categories = list(Category.objects.all())
        main_standards = list(MainStandard.objects.all())
        sub_standards = list(SubStandard.objects.all())
        statuses = {s.sub_standard_id: s for s in SubStandardStatus.objects.filter(**scope)}
        actions = [
            a for a in Action.objects.filter(sub_standard__isnull=False, **scope)
            if scope_matches(a.responsible_scope, responsible_unit)
            and scope_matches(a.collaborating_scope, collaborating_unit)
        ]
        plans = {p.action_id: p for p in ActionPlan.objects.filter(action__in=[a.pk for a in actions], **scope)}
    counts = counts_by_action(organization_id, plan_id, [a.pk for a in actions]) if actions else {}

    mains_by_category = _group(main_standards, "category_id")
    subs_by_main = _group(sub_standards, "main_standard_id")
    actions_by_sub = _group(actions, "sub_standard_id")

    tree = []
    for category in categories:
        c_node = CategoryNode(category)
        for ms in mains_by_category.get(category.pk, []):
            m_node = MainStandardNode(ms)
            for ss in subs_by_main.get(ms.pk, []):
                s_node = SubStandardNode(ss, statuses.get(ss.pk))
                for a in actions_by_sub.get(ss.pk, []):
                    s_node.actions.append(ActionNode(
                        action=a,
                        plan=plans.get(a.pk),
                        counts=counts.get(a.pk, RollupCounts()),
                        progress=action_progress(a),
                        overdue=derive.is_action_overdue(a, today=today),
                    ))
                if s_node.actions or not filtering:
                    m_node.sub_standards.append(s_node)
            if m_node.sub_standards or not filtering:
                c_node.main_standards.append(m_node)
        if c_node.main_standards or not filtering:
            tree.append(c_node)

    logger.debug(
        "Hierarchy for %s/%s: %d categories, %d actions (filtered=%s)",
        organization_id, plan_id, len(tree), len(actions), filtering,
    )
    return tree


# ========================
# Serialization
# ========================

def _unit_payload(scope_all, unit_ids, names):
    return {"all_units": bool(scope_all), "units": [{"id": u, "name": names.get(u, u)} for u in unit_ids]}


def _collect_unit_ids(tree):
    ids = set()
    for c in tree:
        for m in c.main_standards:
            ids.update(m.main_standard.responsible_units or [])
            ids.update(m.main_standard.collaborating_units or [])
            for s in m.sub_standards:
                ids.update(s.sub_standard.responsible_units or [])
                ids.update(s.sub_standard.collaborating_units or [])
                for a in s.actions:
                    ids.update(a.action.responsible_units or [])
                    ids.update(a.action.collaborating_units or [])
    return ids


def _action_dict(node: ActionNode, names):
    a = node.action
    plan = node.plan
    return {
        "id": a.pk,
        "code": a.code,
        "description": a.description,
        "status": a.status,
        "target_date": a.target_date.isoformat() if a.target_date else None,
        "action_type": a.action_type,
        "linked_module": a.linked_module,
        "responsible": _unit_payload(a.all_units_responsible, a.responsible_units, names),
        "collaborating": _unit_payload(a.all_units_collaborating, a.collaborating_units, names),
        "progress": node.progress,
        "overdue": node.overdue,
        "counts": node.counts.as_dict(),
        "action_plan": None if plan is None else {
            "id": plan.pk,
            "plan_code": plan.plan_code,
            "status": plan.status,
            "approval_status": plan.approval_status,
        },
    }


def as_dict(tree) -> list:
    """JSON-ready form of ``load_hierarchy`` output, unit ids resolved to names."""
    names = resolve_unit_names(_collect_unit_ids(tree))
    out = []
    for c in tree:
        mains = []
        for m in c.main_standards:
            ms = m.main_standard
            subs = []
            for s in m.sub_standards:
                ss = s.sub_standard
                subs.append({
                    "id": ss.pk,
                    "code": ss.code,
                    "title": ss.title,
                    "responsible": _unit_payload(False, ss.responsible_units, names),
                    "collaborating": _unit_payload(False, ss.collaborating_units, names),
                    "status": None if s.status is None else {
                        "current_status_text": s.status.current_status_text,
                        "provides_reasonable_assurance": s.status.provides_reasonable_assurance,
                    },
                    "actions": [_action_dict(a, names) for a in s.actions],
                })
            mains.append({
                "id": ms.pk,
                "code": ms.code,
                "title": ms.title,
                "responsible": _unit_payload(ms.all_units_responsible, ms.responsible_units, names),
                "collaborating": _unit_payload(ms.all_units_collaborating, ms.collaborating_units, names),
                "sub_standards": subs,
            })
        out.append({
            "id": c.category.pk,
            "code": c.category.code,
            "name": c.category.name,
            "main_standards": mains,
        })
    return out
