from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models

from apps.standards.models import Action

EFFECTIVENESS_CHOICES = (
    ("effective", "Effective"),
    ("partially_effective", "Partially effective"),
    ("ineffective", "Ineffective"),
    ("not_assessed", "Not assessed"),
)

LEVEL_CHOICES = (("low", "Low"), ("medium", "Medium"), ("high", "High"), ("critical", "Critical"))


class CodeAllocation(models.Model):
    """
    Ledger of every code handed out. The unique constraint is what makes two
    concurrent allocators for the same scope collide instead of sharing a code.
    Organization-wide schemes store an empty plan_id and year 0.
    """

    organization_id = models.CharField(max_length=64)
    plan_id = models.CharField(max_length=64, blank=True, default="")
    record_type = models.CharField(max_length=32)
    year = models.IntegerField(default=0)
    sequence = models.PositiveIntegerField()
    code = models.CharField(max_length=48)
    allocated_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(
                fields=["organization_id", "plan_id", "record_type", "year", "sequence"],
                name="uniq_code_allocation_scope",
            ),
        ]

    def __str__(self):
        return self.code


class ActionPlan(models.Model):
    STATUS_CHOICES = (
        ("planned", "Planned"),
        ("in_progress", "In progress"),
        ("completed", "Completed"),
        ("delayed", "Delayed"),
        ("cancelled", "Cancelled"),
    )

    APPROVAL_DRAFT = "draft"
    APPROVAL_UNIT_PENDING = "unit_pending"
    APPROVAL_MANAGEMENT_PENDING = "management_pending"
    APPROVAL_APPROVED = "approved"
    APPROVAL_REJECTED = "rejected"
    APPROVAL_CHOICES = (
        (APPROVAL_DRAFT, "Draft"),
        (APPROVAL_UNIT_PENDING, "Awaiting unit approval"),
        (APPROVAL_MANAGEMENT_PENDING, "Awaiting management approval"),
        (APPROVAL_APPROVED, "Approved"),
        (APPROVAL_REJECTED, "Rejected"),
    )

    organization_id = models.CharField(max_length=64)
    plan_id = models.CharField(max_length=64)
    plan_code = models.CharField(max_length=48)
    action = models.ForeignKey(Action, on_delete=models.CASCADE, related_name="action_plans")
    current_situation = models.TextField(blank=True, default="")
    planned_actions = models.TextField(blank=True, default="")
    output_result = models.TextField(blank=True, default="")
    notes = models.TextField(blank=True, default="")
    responsible_unit = models.CharField(max_length=64, blank=True, default="")
    collaborating_units = models.JSONField(default=list, blank=True)
    completion_date = models.DateField(null=True, blank=True)
    status = models.CharField(max_length=16, choices=STATUS_CHOICES, default="planned")
    approval_status = models.CharField(max_length=24, choices=APPROVAL_CHOICES, default=APPROVAL_DRAFT)
    rejection_reason = models.TextField(blank=True, default="")
    progress_percentage = models.IntegerField(
        default=0, validators=[MinValueValidator(0), MaxValueValidator(100)]
    )
    submitted_at = models.DateTimeField(null=True, blank=True)
    approved_at = models.DateTimeField(null=True, blank=True)
    approved_by = models.CharField(max_length=64, blank=True, default="")
    created_by = models.CharField(max_length=64, blank=True, default="")
    updated_by = models.CharField(max_length=64, blank=True, default="")
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ("plan_code",)
        constraints = [
            models.UniqueConstraint(
                fields=["action", "organization_id", "plan_id"],
                name="uniq_action_plan_per_scope",
            ),
            models.UniqueConstraint(
                fields=["organization_id", "plan_id", "plan_code"],
                name="uniq_action_plan_code",
            ),
        ]

    def __str__(self):
        return f"{self.plan_code} ({self.approval_status})"


class Control(models.Model):
    TYPE_CHOICES = (
        ("preventive", "Preventive"),
        ("detective", "Detective"),
        ("corrective", "Corrective"),
        ("directive", "Directive"),
    )
    NATURE_CHOICES = (("manual", "Manual"), ("automated", "Automated"), ("it_dependent", "IT dependent"))
    FREQUENCY_CHOICES = (
        ("continuous", "Continuous"),
        ("daily", "Daily"),
        ("weekly", "Weekly"),
        ("monthly", "Monthly"),
        ("quarterly", "Quarterly"),
        ("annual", "Annual"),
    )
    STATUS_CHOICES = (("active", "Active"), ("inactive", "Inactive"), ("under_review", "Under review"))

    organization_id = models.CharField(max_length=64)
    plan_id = models.CharField(max_length=64)
    control_code = models.CharField(max_length=48)
    action = models.ForeignKey(Action, on_delete=models.PROTECT, related_name="controls")
    title = models.CharField(max_length=255)
    description = models.TextField(blank=True, default="")
    control_type = models.CharField(max_length=16, choices=TYPE_CHOICES, default="preventive")
    nature = models.CharField(max_length=16, choices=NATURE_CHOICES, default="manual")
    frequency = models.CharField(max_length=16, choices=FREQUENCY_CHOICES, default="monthly")
    design_effectiveness = models.CharField(max_length=24, choices=EFFECTIVENESS_CHOICES, default="not_assessed")
    operating_effectiveness = models.CharField(max_length=24, choices=EFFECTIVENESS_CHOICES, default="not_assessed")
    owner = models.CharField(max_length=64, blank=True, default="")
    performer = models.CharField(max_length=64, blank=True, default="")
    status = models.CharField(max_length=16, choices=STATUS_CHOICES, default="active")
    last_assessed_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ("control_code",)
        constraints = [
            models.UniqueConstraint(
                fields=["organization_id", "plan_id", "control_code"],
                name="uniq_control_code",
            ),
        ]

    def __str__(self):
        return f"{self.control_code} - {self.title}"


class ControlTest(models.Model):
    RESULT_CHOICES = (
        ("passed", "Passed"),
        ("passed_with_exceptions", "Passed with exceptions"),
        ("failed", "Failed"),
    )

    organization_id = models.CharField(max_length=64)
    plan_id = models.CharField(max_length=64)
    test_code = models.CharField(max_length=48)
    control = models.ForeignKey(Control, on_delete=models.PROTECT, null=True, blank=True, related_name="tests")
    action = models.ForeignKey(Action, on_delete=models.PROTECT, related_name="control_tests")
    test_date = models.DateField()
    result = models.CharField(max_length=24, choices=RESULT_CHOICES)
    tester = models.CharField(max_length=64, blank=True, default="")
    sample_size = models.PositiveIntegerField(null=True, blank=True)
    exceptions_found = models.PositiveIntegerField(default=0)
    notes = models.TextField(blank=True, default="")
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ("-test_date", "test_code")
        constraints = [
            models.UniqueConstraint(
                fields=["organization_id", "plan_id", "test_code"],
                name="uniq_control_test_code",
            ),
        ]

    def __str__(self):
        return f"{self.test_code} ({self.result})"


class Finding(models.Model):
    SOURCE_CHOICES = (
        ("control_test", "Control test"),
        ("internal_audit", "Internal audit"),
        ("external_audit", "External audit"),
        ("self_assessment", "Self assessment"),
        ("other", "Other"),
    )
    STATUS_CHOICES = (
        ("open", "Open"),
        ("in_progress", "In progress"),
        ("resolved", "Resolved"),
        ("closed", "Closed"),
    )

    organization_id = models.CharField(max_length=64)
    plan_id = models.CharField(max_length=64)
    finding_code = models.CharField(max_length=48)
    finding_title = models.CharField(max_length=255)
    description = models.TextField(blank=True, default="")
    severity = models.CharField(max_length=16, choices=LEVEL_CHOICES)
    source = models.CharField(max_length=24, choices=SOURCE_CHOICES, default="control_test")
    status = models.CharField(max_length=16, choices=STATUS_CHOICES, default="open")
    action = models.ForeignKey(Action, on_delete=models.PROTECT, related_name="findings")
    control = models.ForeignKey(Control, on_delete=models.PROTECT, null=True, blank=True, related_name="findings")
    control_test = models.ForeignKey(
        ControlTest, on_delete=models.PROTECT, null=True, blank=True, related_name="findings"
    )
    root_cause = models.TextField(blank=True, default="")
    identified_by = models.CharField(max_length=64, blank=True, default="")
    identified_date = models.DateField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ("-identified_date", "finding_code")
        constraints = [
            models.UniqueConstraint(
                fields=["organization_id", "plan_id", "finding_code"],
                name="uniq_finding_code",
            ),
        ]

    def __str__(self):
        return f"{self.finding_code} - {self.finding_title}"


class CAPA(models.Model):
    """Corrective and/or preventive action, optionally raised from a finding."""

    TYPE_CHOICES = (("corrective", "Corrective"), ("preventive", "Preventive"), ("both", "Both"))
    STATUS_CHOICES = (
        ("open", "Open"),
        ("in_progress", "In progress"),
        ("pending_verification", "Pending verification"),
        ("verified", "Verified"),
        ("closed", "Closed"),
    )

    organization_id = models.CharField(max_length=64)
    plan_id = models.CharField(max_length=64)
    capa_code = models.CharField(max_length=48)
    title = models.CharField(max_length=255)
    description = models.TextField(blank=True, default="")
    capa_type = models.CharField(max_length=16, choices=TYPE_CHOICES, default="corrective")
    finding = models.ForeignKey(Finding, on_delete=models.PROTECT, null=True, blank=True, related_name="capas")
    action = models.ForeignKey(Action, on_delete=models.PROTECT, null=True, blank=True, related_name="capas")
    root_cause = models.TextField(blank=True, default="")
    proposed_action = models.TextField()
    responsible_user = models.CharField(max_length=64, blank=True, default="")
    responsible_department = models.CharField(max_length=64, blank=True, default="")
    due_date = models.DateField()
    actual_completion_date = models.DateField(null=True, blank=True)
    status = models.CharField(max_length=24, choices=STATUS_CHOICES, default="open")
    priority = models.CharField(max_length=16, choices=LEVEL_CHOICES, default="medium")
    completion_percentage = models.IntegerField(
        default=0, validators=[MinValueValidator(0), MaxValueValidator(100)]
    )
    is_effective = models.BooleanField(null=True, blank=True)
    verification_notes = models.TextField(blank=True, default="")
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = "CAPA"
        verbose_name_plural = "CAPAs"
        ordering = ("due_date", "capa_code")
        constraints = [
            models.UniqueConstraint(
                fields=["organization_id", "plan_id", "capa_code"],
                name="uniq_capa_code",
            ),
        ]

    def __str__(self):
        return f"{self.capa_code} - {self.title}"
