import django.core.validators
from django.db import migrations, models
import django.db.models.deletion

EFFECTIVENESS_CHOICES = [
    ("effective", "Effective"),
    ("partially_effective", "Partially effective"),
    ("ineffective", "Ineffective"),
    ("not_assessed", "Not assessed"),
]

LEVEL_CHOICES = [("low", "Low"), ("medium", "Medium"), ("high", "High"), ("critical", "Critical")]

PERCENT_VALIDATORS = [
    django.core.validators.MinValueValidator(0),
    django.core.validators.MaxValueValidator(100),
]


def _id():
    return models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("standards", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="CodeAllocation",
            fields=[
                ("id", _id()),
                ("organization_id", models.CharField(max_length=64)),
                ("plan_id", models.CharField(blank=True, default="", max_length=64)),
                ("record_type", models.CharField(max_length=32)),
                ("year", models.IntegerField(default=0)),
                ("sequence", models.PositiveIntegerField()),
                ("code", models.CharField(max_length=48)),
                ("allocated_at", models.DateTimeField(auto_now_add=True)),
            ],
            options={
                "constraints": [
                    models.UniqueConstraint(
                        fields=("organization_id", "plan_id", "record_type", "year", "sequence"),
                        name="uniq_code_allocation_scope",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="ActionPlan",
            fields=[
                ("id", _id()),
                ("organization_id", models.CharField(max_length=64)),
                ("plan_id", models.CharField(max_length=64)),
                ("plan_code", models.CharField(max_length=48)),
                ("current_situation", models.TextField(blank=True, default="")),
                ("planned_actions", models.TextField(blank=True, default="")),
                ("output_result", models.TextField(blank=True, default="")),
                ("notes", models.TextField(blank=True, default="")),
                ("responsible_unit", models.CharField(blank=True, default="", max_length=64)),
                ("collaborating_units", models.JSONField(blank=True, default=list)),
                ("completion_date", models.DateField(blank=True, null=True)),
                ("status", models.CharField(
                    choices=[
                        ("planned", "Planned"),
                        ("in_progress", "In progress"),
                        ("completed", "Completed"),
                        ("delayed", "Delayed"),
                        ("cancelled", "Cancelled"),
                    ],
                    default="planned", max_length=16,
                )),
                ("approval_status", models.CharField(
                    choices=[
                        ("draft", "Draft"),
                        ("unit_pending", "Awaiting unit approval"),
                        ("management_pending", "Awaiting management approval"),
                        ("approved", "Approved"),
                        ("rejected", "Rejected"),
                    ],
                    default="draft", max_length=24,
                )),
                ("rejection_reason", models.TextField(blank=True, default="")),
                ("progress_percentage", models.IntegerField(default=0, validators=PERCENT_VALIDATORS)),
                ("submitted_at", models.DateTimeField(blank=True, null=True)),
                ("approved_at", models.DateTimeField(blank=True, null=True)),
                ("approved_by", models.CharField(blank=True, default="", max_length=64)),
                ("created_by", models.CharField(blank=True, default="", max_length=64)),
                ("updated_by", models.CharField(blank=True, default="", max_length=64)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("action", models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE,
                    related_name="action_plans",
                    to="standards.action",
                )),
            ],
            options={
                "ordering": ("plan_code",),
                "constraints": [
                    models.UniqueConstraint(
                        fields=("action", "organization_id", "plan_id"), name="uniq_action_plan_per_scope",
                    ),
                    models.UniqueConstraint(
                        fields=("organization_id", "plan_id", "plan_code"), name="uniq_action_plan_code",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="Control",
            fields=[
                ("id", _id()),
                ("organization_id", models.CharField(max_length=64)),
                ("plan_id", models.CharField(max_length=64)),
                ("control_code", models.CharField(max_length=48)),
                ("title", models.CharField(max_length=255)),
                ("description", models.TextField(blank=True, default="")),
                ("control_type", models.CharField(
                    choices=[
                        ("preventive", "Preventive"),
                        ("detective", "Detective"),
                        ("corrective", "Corrective"),
                        ("directive", "Directive"),
                    ],
                    default="preventive", max_length=16,
                )),
                ("nature", models.CharField(
                    choices=[("manual", "Manual"), ("automated", "Automated"), ("it_dependent", "IT dependent")],
                    default="manual", max_length=16,
                )),
                ("frequency", models.CharField(
                    choices=[
                        ("continuous", "Continuous"),
                        ("daily", "Daily"),
                        ("weekly", "Weekly"),
                        ("monthly", "Monthly"),
                        ("quarterly", "Quarterly"),
                        ("annual", "Annual"),
                    ],
                    default="monthly", max_length=16,
                )),
                ("design_effectiveness", models.CharField(
                    choices=EFFECTIVENESS_CHOICES, default="not_assessed", max_length=24,
                )),
                ("operating_effectiveness", models.CharField(
                    choices=EFFECTIVENESS_CHOICES, default="not_assessed", max_length=24,
                )),
                ("owner", models.CharField(blank=True, default="", max_length=64)),
                ("performer", models.CharField(blank=True, default="", max_length=64)),
                ("status", models.CharField(
                    choices=[("active", "Active"), ("inactive", "Inactive"), ("under_review", "Under review")],
                    default="active", max_length=16,
                )),
                ("last_assessed_at", models.DateTimeField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("action", models.ForeignKey(
                    on_delete=django.db.models.deletion.PROTECT,
                    related_name="controls",
                    to="standards.action",
                )),
            ],
            options={
                "ordering": ("control_code",),
                "constraints": [
                    models.UniqueConstraint(
                        fields=("organization_id", "plan_id", "control_code"), name="uniq_control_code",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="ControlTest",
            fields=[
                ("id", _id()),
                ("organization_id", models.CharField(max_length=64)),
                ("plan_id", models.CharField(max_length=64)),
                ("test_code", models.CharField(max_length=48)),
                ("test_date", models.DateField()),
                ("result", models.CharField(
                    choices=[
                        ("passed", "Passed"),
                        ("passed_with_exceptions", "Passed with exceptions"),
                        ("failed", "Failed"),
                    ],
                    max_length=24,
                )),
                ("tester", models.CharField(blank=True, default="", max_length=64)),
                ("sample_size", models.PositiveIntegerField(blank=True, null=True)),
                ("exceptions_found", models.PositiveIntegerField(default=0)),
                ("notes", models.TextField(blank=True, default="")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("action", models.ForeignKey(
                    on_delete=django.db.models.deletion.PROTECT,
                    related_name="control_tests",
                    to="standards.action",
                )),
                ("control", models.ForeignKey(
                    blank=True, null=True,
                    on_delete=django.db.models.deletion.PROTECT,
                    related_name="tests",
                    to="internal_control.control",
                )),
            ],
            options={
                "ordering": ("-test_date", "test_code"),
                "constraints": [
                    models.UniqueConstraint(
                        fields=("organization_id", "plan_id", "test_code"), name="uniq_control_test_code",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="Finding",
            fields=[
                ("id", _id()),
                ("organization_id", models.CharField(max_length=64)),
                ("plan_id", models.CharField(max_length=64)),
                ("finding_code", models.CharField(max_length=48)),
                ("finding_title", models.CharField(max_length=255)),
                ("description", models.TextField(blank=True, default="")),
                ("severity", models.CharField(choices=LEVEL_CHOICES, max_length=16)),
                ("source", models.CharField(
                    choices=[
                        ("control_test", "Control test"),
                        ("internal_audit", "Internal audit"),
                        ("external_audit", "External audit"),
                        ("self_assessment", "Self assessment"),
                        ("other", "Other"),
                    ],
                    default="control_test", max_length=24,
                )),
                ("status", models.CharField(
                    choices=[
                        ("open", "Open"),
                        ("in_progress", "In progress"),
                        ("resolved", "Resolved"),
                        ("closed", "Closed"),
                    ],
                    default="open", max_length=16,
                )),
                ("root_cause", models.TextField(blank=True, default="")),
                ("identified_by", models.CharField(blank=True, default="", max_length=64)),
                ("identified_date", models.DateField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("action", models.ForeignKey(
                    on_delete=django.db.models.deletion.PROTECT,
                    related_name="findings",
                    to="standards.action",
                )),
                ("control", models.ForeignKey(
                    blank=True, null=True,
                    on_delete=django.db.models.deletion.PROTECT,
                    related_name="findings",
                    to="internal_control.control",
                )),
                ("control_test", models.ForeignKey(
                    blank=True, null=True,
                    on_delete=django.db.models.deletion.PROTECT,
                    related_name="findings",
                    to="internal_control.controltest",
                )),
            ],
            options={
                "ordering": ("-identified_date", "finding_code"),
                "constraints": [
                    models.UniqueConstraint(
                        fields=("organization_id", "plan_id", "finding_code"), name="uniq_finding_code",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="CAPA",
            fields=[
                ("id", _id()),
                ("organization_id", models.CharField(max_length=64)),
                ("plan_id", models.CharField(max_length=64)),
                ("capa_code", models.CharField(max_length=48)),
                ("title", models.CharField(max_length=255)),
                ("description", models.TextField(blank=True, default="")),
                ("capa_type", models.CharField(
                    choices=[("corrective", "Corrective"), ("preventive", "Preventive"), ("both", "Both")],
                    default="corrective", max_length=16,
                )),
                ("root_cause", models.TextField(blank=True, default="")),
                ("proposed_action", models.TextField()),
                ("responsible_user", models.CharField(blank=True, default="", max_length=64)),
                ("responsible_department", models.CharField(blank=True, default="", max_length=64)),
                ("due_date", models.DateField()),
                ("actual_completion_date", models.DateField(blank=True, null=True)),
                ("status", models.CharField(
                    choices=[
                        ("open", "Open"),
                        ("in_progress", "In progress"),
                        ("pending_verification", "Pending verification"),
                        ("verified", "Verified"),
                        ("closed", "Closed"),
                    ],
                    default="open", max_length=24,
                )),
                ("priority", models.CharField(choices=LEVEL_CHOICES, default="medium", max_length=16)),
                ("completion_percentage", models.IntegerField(default=0, validators=PERCENT_VALIDATORS)),
                ("is_effective", models.BooleanField(blank=True, null=True)),
                ("verification_notes", models.TextField(blank=True, default="")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("action", models.ForeignKey(
                    blank=True, null=True,
                    on_delete=django.db.models.deletion.PROTECT,
                    related_name="capas",
                    to="standards.action",
                )),
                ("finding", models.ForeignKey(
                    blank=True, null=True,
                    on_delete=django.db.models.deletion.PROTECT,
                    related_name="capas",
                    to="internal_control.finding",
                )),
            ],
            options={
                "verbose_name": "CAPA",
                "verbose_name_plural": "CAPAs",
                "ordering": ("due_date", "capa_code"),
                "constraints": [
                    models.UniqueConstraint(
                        fields=("organization_id", "plan_id", "capa_code"), name="uniq_capa_code",
                    ),
                ],
            },
        ),
    ]
