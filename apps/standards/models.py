from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models

from apps.standards.scopes import scope_from_fields


class UnitScopedMixin:
    """Exposes the stored unit flag + id list pairs as UnitScope values."""

    @property
    def responsible_scope(self):
        return scope_from_fields(getattr(self, "all_units_responsible", False), self.responsible_units)

    @property
    def collaborating_scope(self):
        return scope_from_fields(getattr(self, "all_units_collaborating", False), self.collaborating_units)


# ==== Shared taxonomy (administered globally) ====

class Category(models.Model):
    code = models.CharField(max_length=32, unique=True)
    name = models.CharField(max_length=200)
    description = models.TextField(blank=True, default="")
    order = models.IntegerField(default=0)

    class Meta:
        ordering = ("order", "code")
        verbose_name_plural = "categories"

    def __str__(self):
        return f"{self.code} - {self.name}"


class MainStandard(UnitScopedMixin, models.Model):
    category = models.ForeignKey(Category, on_delete=models.CASCADE, related_name="main_standards")
    code = models.CharField(max_length=32)
    title = models.CharField(max_length=255)
    description = models.TextField(blank=True, default="")
    responsible_units = models.JSONField(default=list, blank=True)
    collaborating_units = models.JSONField(default=list, blank=True)
    all_units_responsible = models.BooleanField(default=False)
    all_units_collaborating = models.BooleanField(default=False)
    order = models.IntegerField(default=0)

    class Meta:
        ordering = ("order", "code")
        unique_together = ("category", "code")

    def __str__(self):
        return f"{self.code} - {self.title}"


class SubStandard(UnitScopedMixin, models.Model):
    main_standard = models.ForeignKey(MainStandard, on_delete=models.CASCADE, related_name="sub_standards")
    code = models.CharField(max_length=32)
    title = models.CharField(max_length=255)
    description = models.TextField(blank=True, default="")
    responsible_units = models.JSONField(default=list, blank=True)
    collaborating_units = models.JSONField(default=list, blank=True)
    order = models.IntegerField(default=0)

    class Meta:
        ordering = ("order", "code")
        unique_together = ("main_standard", "code")

    def __str__(self):
        return f"{self.code} - {self.title}"


# ==== Organization + plan instance data ====

class SubStandardStatus(models.Model):
    """An organization's own assessment of a sub-standard; absent until recorded."""

    sub_standard = models.ForeignKey(SubStandard, on_delete=models.PROTECT, related_name="statuses")
    organization_id = models.CharField(max_length=64)
    plan_id = models.CharField(max_length=64)
    current_status_text = models.TextField(blank=True, default="")
    provides_reasonable_assurance = models.BooleanField(default=False)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(
                fields=["sub_standard", "organization_id", "plan_id"],
                name="uniq_substandard_status_scope",
            ),
        ]

    def __str__(self):
        return f"{self.sub_standard.code} [{self.organization_id}/{self.plan_id}]"


class Action(UnitScopedMixin, models.Model):
    STATUS_NOT_STARTED = "not_started"
    STATUS_IN_PROGRESS = "in_progress"
    STATUS_COMPLETED = "completed"
    STATUS_DELAYED = "delayed"
    STATUS_CHOICES = (
        (STATUS_NOT_STARTED, "Not started"),
        (STATUS_IN_PROGRESS, "In progress"),
        (STATUS_COMPLETED, "Completed"),
        (STATUS_DELAYED, "Delayed"),
    )

    TYPE_STANDARD = "standard"
    TYPE_LINKED = "linked"
    TYPE_CHOICES = ((TYPE_STANDARD, "Standard"), (TYPE_LINKED, "Linked to a module"))

    LINKED_MODULE_CHOICES = (
        ("process_management", "Process management"),
        ("workflow_diagrams", "Workflow diagrams"),
        ("risk_management", "Risk management"),
        ("sensitive_tasks", "Sensitive tasks"),
        ("document_management", "Document management"),
    )

    # Null only for actions whose taxonomy chain could not be resolved (legacy imports).
    sub_standard = models.ForeignKey(
        SubStandard, on_delete=models.PROTECT, null=True, blank=True, related_name="actions"
    )
    organization_id = models.CharField(max_length=64)
    plan_id = models.CharField(max_length=64)
    code = models.CharField(max_length=32)
    description = models.TextField()
    output_result = models.TextField(blank=True, default="")
    notes = models.TextField(blank=True, default="")
    status = models.CharField(max_length=16, choices=STATUS_CHOICES, default=STATUS_NOT_STARTED)
    target_date = models.DateField(null=True, blank=True)
    responsible_units = models.JSONField(default=list, blank=True)
    collaborating_units = models.JSONField(default=list, blank=True)
    all_units_responsible = models.BooleanField(default=False)
    all_units_collaborating = models.BooleanField(default=False)
    action_type = models.CharField(max_length=16, choices=TYPE_CHOICES, default=TYPE_STANDARD)
    linked_module = models.CharField(max_length=32, choices=LINKED_MODULE_CHOICES, blank=True, default="")
    target_quantity = models.FloatField(null=True, blank=True)
    current_quantity = models.FloatField(null=True, blank=True)
    progress_percent = models.IntegerField(
        default=0, validators=[MinValueValidator(0), MaxValueValidator(100)],
        help_text="Manual progress of standard actions; linked actions derive theirs",
    )
    order = models.IntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ("order", "code", "id")
        indexes = [
            models.Index(fields=["organization_id", "plan_id"], name="action_scope_idx"),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=["organization_id", "plan_id", "sub_standard", "code"],
                name="uniq_action_code_scope",
            ),
        ]

    def __str__(self):
        return f"{self.code} - {self.description[:60]}"

    @property
    def is_linked(self) -> bool:
        return self.action_type == self.TYPE_LINKED
