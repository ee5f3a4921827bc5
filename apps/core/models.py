from django.conf import settings
from django.db import models


class Profile(models.Model):
    """Identity data the engine needs about a user: organization, role and unit."""

    ROLE_ADMIN = "admin"
    ROLE_VICE_PRESIDENT = "vice_president"
    ROLE_IC_COORDINATOR = "ic_coordinator"
    ROLE_MEMBER = "member"
    ROLE_CHOICES = (
        (ROLE_ADMIN, "Admin"),
        (ROLE_VICE_PRESIDENT, "Vice president"),
        (ROLE_IC_COORDINATOR, "Internal control coordinator"),
        (ROLE_MEMBER, "Member"),
    )

    user = models.OneToOneField(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="compliance_profile")
    organization_id = models.CharField(max_length=64)
    role = models.CharField(max_length=32, choices=ROLE_CHOICES, default=ROLE_MEMBER)
    department_id = models.CharField(max_length=64, blank=True, default="")
    display_name = models.CharField(max_length=128, blank=True, default="")

    def __str__(self):
        return f"{self.display_name or self.user} ({self.role})"


class StatusChange(models.Model):
    """Append-only history of status and approval transitions."""

    organization_id = models.CharField(max_length=64)
    plan_id = models.CharField(max_length=64, blank=True, default="")
    record_type = models.CharField(max_length=32)
    record_id = models.CharField(max_length=64)
    field = models.CharField(max_length=32, default="status")
    old_value = models.CharField(max_length=32, blank=True, default="")
    new_value = models.CharField(max_length=32)
    changed_by = models.CharField(max_length=64, blank=True, default="")
    comment = models.TextField(blank=True, default="")
    changed_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ("-changed_at", "-id")
        indexes = [
            models.Index(fields=["organization_id", "record_type", "record_id"], name="status_change_record_idx"),
        ]

    def __str__(self):
        return f"{self.record_type} {self.record_id}: {self.old_value} → {self.new_value}"
