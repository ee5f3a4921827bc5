# apps/internal_control/projector.py
"""
Projection of taxonomy Actions into organization Action Plans.

Each (action, organization, plan) has at most one ActionPlan. Edits to the
Action are copied into its plan afterwards, outside the Action's own
transaction: if the copy fails the Action edit stands and the caller gets a
warning instead of an error.
"""
import logging

from django.db import DatabaseError, IntegrityError, transaction

from apps.core import errors
from apps.core.persistence import collaborator_call
from apps.internal_control.codes import allocate_unused
from apps.internal_control.models import ActionPlan
from apps.standards.models import Action, SubStandardStatus

logger = logging.getLogger(__name__)


def plan_status_for(action_status: str) -> str:
    """Only ``not_started`` is renamed; every other status carries over as-is."""
    if action_status == Action.STATUS_NOT_STARTED:
        return "planned"
    return action_status


def _current_situation(action: Action) -> str:
    if action.sub_standard_id is None:
        return ""
    status = SubStandardStatus.objects.filter(
        sub_standard_id=action.sub_standard_id,
        organization_id=action.organization_id,
        plan_id=action.plan_id,
    ).first()
    return status.current_status_text if status else ""


def find_plan(action_id, organization_id, plan_id):
    return ActionPlan.objects.filter(
        action_id=action_id, organization_id=organization_id, plan_id=plan_id
    ).first()


def ensure_plan(action_id, organization_id: str, plan_id: str, actor=None) -> ActionPlan:
    """Returns the Action Plan for the tuple, creating it from the Action on first call."""
    with collaborator_call():
        existing = find_plan(action_id, organization_id, plan_id)
        if existing is not None:
            return existing

        try:
            action = Action.objects.select_related("sub_standard").get(
                pk=action_id, organization_id=organization_id, plan_id=plan_id
            )
        except (Action.DoesNotExist, ValueError, TypeError):
            raise errors.NotFound("Action", action_id)

        user_id = actor.user_id if actor else ""
        taken_codes = ActionPlan.objects.filter(organization_id=organization_id, plan_id=plan_id)
        try:
            with transaction.atomic():
                plan = ActionPlan.objects.create(
                    organization_id=organization_id,
                    plan_id=plan_id,
                    plan_code=allocate_unused("action_plan", taken_codes, "plan_code", organization_id, plan_id),
                    action=action,
                    current_situation=_current_situation(action),
                    planned_actions=action.description,
                    output_result=action.output_result,
                    notes=action.notes,
                    responsible_unit=(action.responsible_units or [""])[0],
                    collaborating_units=list(action.collaborating_units or []),
                    completion_date=action.target_date,
                    status=plan_status_for(action.status),
                    approval_status=ActionPlan.APPROVAL_DRAFT,
                    progress_percentage=0,
                    created_by=user_id,
                    updated_by=user_id,
                )
        except IntegrityError:
            # Another request created it between our read and our insert.
            plan = find_plan(action_id, organization_id, plan_id)
            if plan is None:
                raise
            return plan

    logger.info("Action plan %s created for action %s", plan.plan_code, action.pk)
    return plan


def propagate_action_edit(action: Action, actor=None) -> list:
    """
    Copies description, target date and mapped status into the action's plan.

    Returns a list of warnings; an empty list means the plan is in sync.
    """
    try:
        with collaborator_call(), transaction.atomic():
            plan = find_plan(action.pk, action.organization_id, action.plan_id)
            if plan is None:
                raise errors.NotFound("ActionPlan", f"for action {action.pk}")
            plan.planned_actions = action.description
            plan.output_result = action.output_result
            plan.notes = action.notes
            plan.collaborating_units = list(action.collaborating_units or [])
            plan.completion_date = action.target_date
            plan.status = plan_status_for(action.status)
            if actor is not None:
                plan.updated_by = actor.user_id
            plan.save()
    except (errors.ComplianceError, DatabaseError) as exc:
        logger.warning("Action %s saved but its plan was not updated: %s", action.pk, exc)
        return [f"Action plan not updated: {exc}"]
    return []
