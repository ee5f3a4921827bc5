# apps/internal_control/lifecycle.py
"""
Controls, control tests, findings and CAPAs.

Every record hangs off a taxonomy Action (directly, or through the control,
test or finding it was raised from) so it rolls up into that action's plan.
"""
import logging

from django.db import transaction
from django.utils import timezone

from apps.core import errors
from apps.core.identity import require_manager
from apps.core.persistence import collaborator_call
from apps.core.services import RecordService, is_empty, record_history
from apps.internal_control import status as derive
from apps.internal_control.codes import allocate_unused
from apps.internal_control.models import CAPA, EFFECTIVENESS_CHOICES, Control, ControlTest, Finding

logger = logging.getLogger(__name__)

EFFECTIVENESS_VALUES = frozenset(value for value, _ in EFFECTIVENESS_CHOICES)


class CodedRecordService(RecordService):
    code_record_type = None

    def assign_code(self, instance):
        records = self.model.objects.filter(organization_id=instance.organization_id, plan_id=instance.plan_id)
        code = allocate_unused(
            self.code_record_type, records, self.code_field, instance.organization_id, instance.plan_id,
        )
        setattr(instance, self.code_field, code)


def _mismatch(instance, parent_attr, label):
    """Action given explicitly must agree with the one inherited from the parent record."""
    parent = getattr(instance, parent_attr)
    if parent is not None and instance.action_id is not None and parent.action_id != instance.action_id:
        return {"action_id": f"Does not match the {label}'s action."}
    return {}


class ControlService(CodedRecordService):
    model = Control
    record_type = "Control"
    code_field = "control_code"
    code_record_type = "control"
    field_aliases = {"type": "control_type"}
    fields = (
        "title", "description", "control_type", "nature", "frequency",
        "design_effectiveness", "operating_effectiveness", "owner", "performer", "status",
    )
    create_only_fields = ("action_id",)
    required_fields = ("title", "action_id")
    filter_fields = ("status", "control_type", "nature", "action", "design_effectiveness", "operating_effectiveness")
    history_fields = ("status", "design_effectiveness", "operating_effectiveness")
    dependents = (("ControlTest", "tests"), ("Finding", "findings"))
    ordering = ("control_code",)

    def prepare(self, instance, creating):
        if creating and is_empty(instance.owner):
            instance.owner = self.actor.user_id

    def assess(self, pk, design_effectiveness=None, operating_effectiveness=None):
        """Sets either effectiveness axis independently of the other."""
        require_manager(self.actor, "assess controls")
        problems = {}
        changes = {"design_effectiveness": design_effectiveness, "operating_effectiveness": operating_effectiveness}
        changes = {k: v for k, v in changes.items() if v is not None}
        if not changes:
            problems["design_effectiveness"] = "Provide at least one effectiveness axis."
        for name, value in changes.items():
            if value not in EFFECTIVENESS_VALUES:
                problems[name] = f"'{value}' is not a valid choice."
        if problems:
            raise errors.ValidationError(problems)

        with collaborator_call():
            control = self.get(pk)
            previous = {name: getattr(control, name) for name in changes}
            for name, value in changes.items():
                setattr(control, name, value)
            control.last_assessed_at = timezone.now()
            with transaction.atomic():
                control.save()
                for name, value in changes.items():
                    if previous[name] != value:
                        record_history(self.actor, control, self.record_type, name, previous[name], value)
        logger.info("Control %s assessed by %s: %s", control.control_code, self.actor.user_id, changes)
        return control


class ControlTestService(CodedRecordService):
    model = ControlTest
    record_type = "ControlTest"
    code_field = "test_code"
    code_record_type = "control_test"
    fields = ("test_date", "result", "tester", "sample_size", "exceptions_found", "notes")
    create_only_fields = ("control_id", "action_id")
    required_fields = ("test_date", "result")
    filter_fields = ("result", "control", "action", "test_date")
    history_fields = ("result",)
    dependents = (("Finding", "findings"),)
    ordering = ("-test_date", "test_code")

    def prepare(self, instance, creating):
        if creating:
            if instance.control is not None and instance.action_id is None:
                instance.action_id = instance.control.action_id
            if is_empty(instance.tester):
                instance.tester = self.actor.user_id

    def clean_record(self, instance):
        if instance.control_id is None and instance.action_id is None:
            return {"control_id": "Either control_id or action_id is required."}
        return _mismatch(instance, "control", "control")


class FindingService(CodedRecordService):
    model = Finding
    record_type = "Finding"
    code_field = "finding_code"
    code_record_type = "finding"
    fields = ("finding_title", "description", "severity", "source", "status", "root_cause", "identified_date")
    create_only_fields = ("action_id", "control_id", "control_test_id")
    required_fields = ("finding_title", "severity")
    filter_fields = ("status", "severity", "source", "control", "control_test", "action")
    history_fields = ("status",)
    dependents = (("CAPA", "capas"),)
    ordering = ("-identified_date", "finding_code")

    def prepare(self, instance, creating):
        if not creating:
            return
        test = instance.control_test
        if test is not None and instance.control_id is None:
            instance.control_id = test.control_id
        if instance.action_id is None:
            parent = test or instance.control
            if parent is not None:
                instance.action_id = parent.action_id
        instance.identified_by = self.actor.user_id
        if instance.identified_date is None:
            instance.identified_date = timezone.localdate()

    def clean_record(self, instance):
        problems = {}
        test = instance.control_test
        if test is not None and test.control_id and instance.control_id and test.control_id != instance.control_id:
            problems["control_test_id"] = "Belongs to a different control."
        problems.update(_mismatch(instance, "control_test", "control test"))
        problems.update(_mismatch(instance, "control", "control"))
        if instance.action_id is None:
            problems.setdefault("action_id", "Provide action_id, control_id or control_test_id.")
        return problems


class CapaService(CodedRecordService):
    model = CAPA
    record_type = "CAPA"
    code_field = "capa_code"
    code_record_type = "capa"
    field_aliases = {"type": "capa_type"}
    fields = (
        "title", "description", "capa_type", "root_cause", "proposed_action", "responsible_user",
        "responsible_department", "due_date", "actual_completion_date", "status", "priority",
        "completion_percentage", "is_effective", "verification_notes",
    )
    create_only_fields = ("finding_id", "action_id")
    required_fields = ("title", "proposed_action", "due_date")
    filter_fields = ("priority", "capa_type", "finding", "action", "responsible_user", "responsible_department")
    history_fields = ("status",)
    ordering = ("due_date", "capa_code")

    def list(self, status=None, **filters):
        """``status`` filters on the derived status, so ``overdue`` works as a filter value."""
        records = super().list(**filters)
        if is_empty(status):
            return records
        today = timezone.localdate()
        return [c for c in records if derive.derived_capa_status(c, today=today) == status]

    def prepare(self, instance, creating):
        if creating:
            if instance.finding is not None and instance.action_id is None:
                instance.action_id = instance.finding.action_id
            if is_empty(instance.responsible_user):
                instance.responsible_user = self.actor.user_id

    def clean_record(self, instance):
        if instance.status == derive.OVERDUE:
            return {"status": "'overdue' is derived from the due date and cannot be stored."}
        return _mismatch(instance, "finding", "finding")
