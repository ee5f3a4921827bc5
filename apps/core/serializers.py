# apps/core/serializers.py
"""
Read-side representations. Writes go through the service classes, not serializers.

Foreign keys are emitted as ``<name>_id`` and the control/CAPA kind as ``type``,
the same keys the services accept on write.
"""
from django.utils import timezone
from rest_framework import serializers

from apps.core.models import StatusChange
from apps.internal_control import status as derive
from apps.internal_control.models import CAPA, ActionPlan, Control, ControlTest, Finding
from apps.internal_control.rollup import action_progress
from apps.standards.models import Action, Category, MainStandard, SubStandard, SubStandardStatus


class CategorySerializer(serializers.ModelSerializer):
    class Meta:
        model = Category
        fields = ("id", "code", "name", "description", "order")


class MainStandardSerializer(serializers.ModelSerializer):
    category_id = serializers.IntegerField(read_only=True)

    class Meta:
        model = MainStandard
        fields = (
            "id", "category_id", "code", "title", "description", "responsible_units", "collaborating_units",
            "all_units_responsible", "all_units_collaborating", "order",
        )


class SubStandardSerializer(serializers.ModelSerializer):
    main_standard_id = serializers.IntegerField(read_only=True)

    class Meta:
        model = SubStandard
        fields = ("id", "main_standard_id", "code", "title", "description", "responsible_units",
                  "collaborating_units", "order")


class SubStandardStatusSerializer(serializers.ModelSerializer):
    sub_standard_id = serializers.IntegerField(read_only=True)

    class Meta:
        model = SubStandardStatus
        fields = ("id", "sub_standard_id", "organization_id", "plan_id", "current_status_text",
                  "provides_reasonable_assurance", "updated_at")


class ActionSerializer(serializers.ModelSerializer):
    sub_standard_id = serializers.IntegerField(read_only=True)
    progress = serializers.SerializerMethodField()
    overdue = serializers.SerializerMethodField()

    class Meta:
        model = Action
        fields = (
            "id", "sub_standard_id", "organization_id", "plan_id", "code", "description", "output_result",
            "notes", "status", "target_date", "responsible_units", "collaborating_units",
            "all_units_responsible", "all_units_collaborating", "action_type", "linked_module",
            "target_quantity", "current_quantity", "progress_percent", "order", "progress", "overdue",
            "created_at", "updated_at",
        )

    def get_progress(self, obj):
        return action_progress(obj)

    def get_overdue(self, obj):
        return derive.is_action_overdue(obj)


class ActionPlanSerializer(serializers.ModelSerializer):
    action_id = serializers.IntegerField(read_only=True)

    class Meta:
        model = ActionPlan
        fields = (
            "id", "organization_id", "plan_id", "plan_code", "action_id", "current_situation",
            "planned_actions", "output_result", "notes", "responsible_unit", "collaborating_units",
            "completion_date", "status", "approval_status", "rejection_reason", "progress_percentage",
            "submitted_at", "approved_at", "approved_by", "created_by", "updated_by",
            "created_at", "updated_at",
        )


class ControlSerializer(serializers.ModelSerializer):
    action_id = serializers.IntegerField(read_only=True)
    type = serializers.CharField(source="control_type", read_only=True)

    class Meta:
        model = Control
        fields = (
            "id", "organization_id", "plan_id", "control_code", "action_id", "title", "description",
            "type", "nature", "frequency", "design_effectiveness", "operating_effectiveness",
            "owner", "performer", "status", "last_assessed_at", "created_at", "updated_at",
        )


class ControlTestSerializer(serializers.ModelSerializer):
    control_id = serializers.IntegerField(read_only=True)
    action_id = serializers.IntegerField(read_only=True)

    class Meta:
        model = ControlTest
        fields = (
            "id", "organization_id", "plan_id", "test_code", "control_id", "action_id", "test_date", "result",
            "tester", "sample_size", "exceptions_found", "notes", "created_at",
        )


class FindingSerializer(serializers.ModelSerializer):
    action_id = serializers.IntegerField(read_only=True)
    control_id = serializers.IntegerField(read_only=True)
    control_test_id = serializers.IntegerField(read_only=True)

    class Meta:
        model = Finding
        fields = (
            "id", "organization_id", "plan_id", "finding_code", "finding_title", "description",
            "severity", "source", "status", "action_id", "control_id", "control_test_id", "root_cause",
            "identified_by", "identified_date", "created_at", "updated_at",
        )


class CapaSerializer(serializers.ModelSerializer):
    finding_id = serializers.IntegerField(read_only=True)
    action_id = serializers.IntegerField(read_only=True)
    type = serializers.CharField(source="capa_type", read_only=True)
    derived_status = serializers.SerializerMethodField()
    days_overdue = serializers.SerializerMethodField()

    class Meta:
        model = CAPA
        fields = (
            "id", "organization_id", "plan_id", "capa_code", "title", "description", "type",
            "finding_id", "action_id", "root_cause", "proposed_action", "responsible_user",
            "responsible_department", "due_date", "actual_completion_date", "status", "derived_status",
            "days_overdue", "priority", "completion_percentage", "is_effective", "verification_notes",
            "created_at", "updated_at",
        )

    def _today(self):
        return self.context.get("today") or timezone.localdate()

    def get_derived_status(self, obj):
        return derive.derived_capa_status(obj, today=self._today())

    def get_days_overdue(self, obj):
        if derive.derived_capa_status(obj, today=self._today()) != derive.OVERDUE:
            return 0
        return derive.days_overdue(obj.due_date, today=self._today())


class StatusChangeSerializer(serializers.ModelSerializer):
    class Meta:
        model = StatusChange
        fields = ("id", "record_type", "record_id", "field", "old_value", "new_value", "changed_by",
                  "comment", "changed_at")
