# apps/internal_control/approval.py
"""
Action plans: edits and the two-stage approval workflow.

    draft ──submit──▶ unit_pending ──approve──▶ management_pending ──approve──▶ approved
      ▲                    │                          │
      └──── rejected ◀─────┴────────── reject ────────┘   (rejected plans can be resubmitted)
"""
import logging
from dataclasses import dataclass

from django.db import transaction
from django.utils import timezone

from apps.core import errors
from apps.core.identity import MANAGER_ROLES, require_manager
from apps.core.models import Profile
from apps.core.persistence import collaborator_call
from apps.core.services import RecordService, is_empty, record_history
from apps.internal_control.models import ActionPlan
from apps.internal_control.projector import ensure_plan

logger = logging.getLogger(__name__)

DRAFT = ActionPlan.APPROVAL_DRAFT
UNIT_PENDING = ActionPlan.APPROVAL_UNIT_PENDING
MANAGEMENT_PENDING = ActionPlan.APPROVAL_MANAGEMENT_PENDING
APPROVED = ActionPlan.APPROVAL_APPROVED
REJECTED = ActionPlan.APPROVAL_REJECTED

UNIT_APPROVERS = frozenset({Profile.ROLE_ADMIN, Profile.ROLE_IC_COORDINATOR})
MANAGEMENT_APPROVERS = frozenset({Profile.ROLE_ADMIN, Profile.ROLE_VICE_PRESIDENT})


@dataclass(frozen=True)
class Transition:
    source: str
    target: str
    roles: frozenset
    requires_comment: bool = False
    # Members of the plan's responsible unit may take this step regardless of role.
    responsible_unit_may: bool = False


TRANSITIONS = (
    Transition(DRAFT, UNIT_PENDING, MANAGER_ROLES, responsible_unit_may=True),
    Transition(REJECTED, UNIT_PENDING, MANAGER_ROLES, responsible_unit_may=True),
    Transition(UNIT_PENDING, MANAGEMENT_PENDING, UNIT_APPROVERS),
    Transition(MANAGEMENT_PENDING, APPROVED, MANAGEMENT_APPROVERS),
    Transition(UNIT_PENDING, REJECTED, UNIT_APPROVERS, requires_comment=True),
    Transition(MANAGEMENT_PENDING, REJECTED, MANAGEMENT_APPROVERS, requires_comment=True),
)


def find_transition(source: str, target: str):
    for t in TRANSITIONS:
        if t.source == source and t.target == target:
            return t
    return None


def can_transition(transition: Transition, actor, plan: ActionPlan) -> bool:
    if actor.role in transition.roles:
        return True
    return (
        transition.responsible_unit_may
        and bool(plan.responsible_unit)
        and actor.department_id == plan.responsible_unit
    )


class ActionPlanService(RecordService):
    model = ActionPlan
    record_type = "ActionPlan"
    fields = (
        "current_situation", "planned_actions", "output_result", "notes", "responsible_unit",
        "collaborating_units", "completion_date", "status", "progress_percentage",
    )
    filter_fields = ("status", "approval_status", "responsible_unit", "action")
    history_fields = ("status",)
    ordering = ("plan_code",)

    def create(self, data: dict):
        """Plans are projected from actions; creating one means ensuring it exists."""
        require_manager(self.actor, "create ActionPlan")
        action_id = (data or {}).get("action_id")
        extra = set(data or {}) - {"action_id"}
        problems = {name: "Unknown or read-only field." for name in extra}
        if is_empty(action_id):
            problems["action_id"] = "This field is required."
        if problems:
            raise errors.ValidationError(problems)
        return ensure_plan(action_id, self.actor.organization_id, self.plan_id, actor=self.actor)

    def prepare(self, instance, creating):
        instance.updated_by = self.actor.user_id

    # ---- approval ----

    def transition(self, pk, target: str, comment: str = ""):
        with collaborator_call():
            plan = self.get(pk)
            rule = find_transition(plan.approval_status, target)
            if rule is None:
                raise errors.ValidationError({
                    "approval_status": f"Cannot move from '{plan.approval_status}' to '{target}'."
                })
            if not can_transition(rule, self.actor, plan):
                raise errors.AuthorizationDenied(
                    f"Role '{self.actor.role}' may not move plan {plan.plan_code} to '{target}'"
                )
            if rule.requires_comment and is_empty(comment):
                raise errors.ValidationError({"comment": "A reason is required."})

            previous = plan.approval_status
            now = timezone.now()
            plan.approval_status = target
            plan.updated_by = self.actor.user_id
            if target == UNIT_PENDING:
                plan.submitted_at = now
                plan.rejection_reason = ""
            elif target == APPROVED:
                plan.approved_at = now
                plan.approved_by = self.actor.user_id
            elif target == REJECTED:
                plan.rejection_reason = comment
            with transaction.atomic():
                plan.save()
                record_history(self.actor, plan, self.record_type, "approval_status", previous, target, comment)

        logger.info("Action plan %s: %s -> %s by %s", plan.plan_code, previous, target, self.actor.user_id)
        return plan

    def submit(self, pk, comment=""):
        return self.transition(pk, UNIT_PENDING, comment)

    def approve(self, pk, comment=""):
        plan = self.get(pk)
        target = MANAGEMENT_PENDING if plan.approval_status == UNIT_PENDING else APPROVED
        return self.transition(pk, target, comment)

    def reject(self, pk, reason=""):
        return self.transition(pk, REJECTED, reason)
