# apps/standards/services.py
import logging

from django.db import DatabaseError

from apps.core import errors
from apps.core.identity import TAXONOMY_ROLES, require_manager
from apps.core.persistence import collaborator_call
from apps.core.services import Outcome, RecordService, is_empty
from apps.internal_control.models import ActionPlan
from apps.internal_control.projector import ensure_plan, propagate_action_edit
from apps.standards.models import Action, Category, MainStandard, SubStandard, SubStandardStatus
from apps.standards.scopes import scope_from_fields, scope_matches

logger = logging.getLogger(__name__)


# ========================
# Taxonomy (global, admin only)
# ========================

class TaxonomyService(RecordService):
    """
    Taxonomy nodes are shared by every organization. Deleting one cascades to
    its descendants, but only while no organization has attached an Action or
    a status to that subtree.
    """

    scoped = False
    write_roles = TAXONOMY_ROLES
    ordering = ("order", "code")
    # Path from Action and SubStandardStatus (both hang off sub_standard) up to this node.
    subtree_lookup = ""

    def dependent_counts(self, instance):
        lookup = {self.subtree_lookup: instance}
        yield "Action", Action.objects.filter(**lookup).count()
        yield "SubStandardStatus", SubStandardStatus.objects.filter(**lookup).count()


class CategoryService(TaxonomyService):
    model = Category
    record_type = "Category"
    fields = ("code", "name", "description", "order")
    required_fields = ("code", "name")
    subtree_lookup = "sub_standard__main_standard__category"


class MainStandardService(TaxonomyService):
    model = MainStandard
    record_type = "MainStandard"
    fields = (
        "category_id", "code", "title", "description", "responsible_units", "collaborating_units",
        "all_units_responsible", "all_units_collaborating", "order",
    )
    required_fields = ("category_id", "code", "title")
    filter_fields = ("category",)
    subtree_lookup = "sub_standard__main_standard"

    def prepare(self, instance, creating):
        _normalize_units(instance)

    def clean_record(self, instance):
        return _unit_list_problems(instance)


class SubStandardService(TaxonomyService):
    model = SubStandard
    record_type = "SubStandard"
    fields = ("main_standard_id", "code", "title", "description", "responsible_units", "collaborating_units", "order")
    required_fields = ("main_standard_id", "code", "title")
    filter_fields = ("main_standard",)
    subtree_lookup = "sub_standard"

    def prepare(self, instance, creating):
        _normalize_units(instance)

    def clean_record(self, instance):
        return _unit_list_problems(instance)


# ========================
# Unit lists
# ========================

UNIT_PAIRS = (
    ("responsible_units", "all_units_responsible"),
    ("collaborating_units", "all_units_collaborating"),
)


def _normalize_units(instance):
    """Stores each unit scope in canonical form: sorted, de-duplicated, empty when 'all units'."""
    for list_name, flag_name in UNIT_PAIRS:
        value = getattr(instance, list_name)
        if not isinstance(value, list) or any(not isinstance(u, str) for u in value):
            continue  # reported by _unit_list_problems
        scope = scope_from_fields(getattr(instance, flag_name, False), value)
        all_units, ids = scope.as_fields()
        setattr(instance, list_name, ids)
        if hasattr(instance, flag_name):
            setattr(instance, flag_name, all_units)


def _unit_list_problems(instance) -> dict:
    problems = {}
    for list_name, _ in UNIT_PAIRS:
        value = getattr(instance, list_name)
        if not isinstance(value, list) or any(not isinstance(u, str) for u in value):
            problems[list_name] = "Must be a list of unit ids."
    return problems


# ========================
# Actions (organization + plan)
# ========================

class ActionService(RecordService):
    """Writes return an Outcome; plan projection problems come back as warnings."""

    model = Action
    record_type = "Action"
    fields = (
        "sub_standard_id", "code", "description", "output_result", "notes", "status", "target_date",
        "responsible_units", "collaborating_units", "all_units_responsible", "all_units_collaborating",
        "action_type", "linked_module", "target_quantity", "current_quantity", "progress_percent", "order",
    )
    required_fields = ("code", "description")
    filter_fields = ("status", "action_type", "linked_module", "sub_standard")
    history_fields = ("status",)
    dependents = (
        ("Control", "controls"),
        ("ControlTest", "control_tests"),
        ("Finding", "findings"),
        ("CAPA", "capas"),
    )
    ordering = ("order", "code", "id")

    def list(self, responsible_unit=None, collaborating_unit=None, **filters):
        actions = super().list(**filters)
        return [
            a for a in actions
            if scope_matches(a.responsible_scope, responsible_unit)
            and scope_matches(a.collaborating_scope, collaborating_unit)
        ]

    def create(self, data: dict) -> Outcome:
        action = super().create(data)
        warnings = []
        try:
            ensure_plan(action.pk, action.organization_id, action.plan_id, actor=self.actor)
        except (errors.ComplianceError, DatabaseError) as exc:
            logger.warning("Action %s created without an action plan: %s", action.pk, exc)
            warnings.append(f"Action plan not created: {exc}")
        return Outcome(action, warnings)

    def update(self, pk, data: dict) -> Outcome:
        action = super().update(pk, data)
        return Outcome(action, propagate_action_edit(action, actor=self.actor))

    def dependent_counts(self, instance):
        yield from super().dependent_counts(instance)
        # Draft and rejected plans go with the action; plans in or past approval block it.
        in_approval = instance.action_plans.exclude(
            approval_status__in=(ActionPlan.APPROVAL_DRAFT, ActionPlan.APPROVAL_REJECTED),
        )
        yield "ActionPlan", in_approval.count()

    def prepare(self, instance, creating):
        _normalize_units(instance)
        if not instance.is_linked:
            instance.linked_module = ""

    def clean_record(self, instance):
        problems = _unit_list_problems(instance)
        if instance.is_linked and is_empty(instance.linked_module):
            problems["linked_module"] = "Required for linked actions."
        for name in ("target_quantity", "current_quantity"):
            try:
                negative = float(getattr(instance, name)) < 0
            except (TypeError, ValueError):
                # None is allowed; anything else unparsable is reported by full_clean.
                continue
            if negative:
                problems[name] = "Must not be negative."
        return problems


def record_sub_standard_status(actor, plan_id, sub_standard_id, current_status_text=None,
                               provides_reasonable_assurance=None) -> SubStandardStatus:
    """Creates or updates the organization's own status for a sub-standard."""
    require_manager(actor, "record sub-standard status")
    if is_empty(plan_id):
        raise errors.ValidationError({"plan_id": "This field is required."})
    with collaborator_call():
        try:
            sub_standard = SubStandard.objects.get(pk=sub_standard_id)
        except (SubStandard.DoesNotExist, ValueError, TypeError):
            raise errors.NotFound("SubStandard", sub_standard_id)
        defaults = {}
        if current_status_text is not None:
            defaults["current_status_text"] = current_status_text
        if provides_reasonable_assurance is not None:
            defaults["provides_reasonable_assurance"] = bool(provides_reasonable_assurance)
        status, created = SubStandardStatus.objects.update_or_create(
            sub_standard=sub_standard,
            organization_id=actor.organization_id,
            plan_id=str(plan_id),
            defaults=defaults,
        )
    logger.info(
        "Sub-standard %s status %s for %s/%s",
        sub_standard.code, "recorded" if created else "updated", actor.organization_id, plan_id,
    )
    return status
