from django.contrib import admin
from .models import CodeAllocation, ActionPlan, Control, ControlTest, Finding, CAPA

@admin.register(CodeAllocation)
class CodeAllocationAdmin(admin.ModelAdmin):
    list_display = ("code", "organization_id", "plan_id", "record_type", "year", "sequence", "allocated_at")
    list_filter = ("record_type", "organization_id", "year")
    search_fields = ("code",)

@admin.register(ActionPlan)
class ActionPlanAdmin(admin.ModelAdmin):
    list_display = ("plan_code", "organization_id", "plan_id", "action", "status", "approval_status", "completion_date")
    list_filter = ("organization_id", "plan_id", "status", "approval_status")
    search_fields = ("plan_code", "planned_actions")
    readonly_fields = ("plan_code",)

@admin.register(Control)
class ControlAdmin(admin.ModelAdmin):
    list_display = ("control_code", "title", "control_type", "design_effectiveness", "operating_effectiveness", "status")
    list_filter = ("organization_id", "plan_id", "control_type", "nature", "status")
    search_fields = ("control_code", "title")
    readonly_fields = ("control_code",)

@admin.register(ControlTest)
class ControlTestAdmin(admin.ModelAdmin):
    list_display = ("test_code", "control", "test_date", "result", "tester")
    list_filter = ("organization_id", "plan_id", "result")
    search_fields = ("test_code",)
    readonly_fields = ("test_code",)

@admin.register(Finding)
class FindingAdmin(admin.ModelAdmin):
    list_display = ("finding_code", "finding_title", "severity", "status", "identified_date")
    list_filter = ("organization_id", "plan_id", "severity", "status", "source")
    search_fields = ("finding_code", "finding_title")
    readonly_fields = ("finding_code",)

@admin.register(CAPA)
class CAPAAdmin(admin.ModelAdmin):
    list_display = ("capa_code", "title", "priority", "status", "due_date", "completion_percentage")
    list_filter = ("organization_id", "plan_id", "status", "priority", "capa_type")
    search_fields = ("capa_code", "title")
    readonly_fields = ("capa_code",)
