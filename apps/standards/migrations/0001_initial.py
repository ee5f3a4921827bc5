import django.core.validators
from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Category",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("code", models.CharField(max_length=32, unique=True)),
                ("name", models.CharField(max_length=200)),
                ("description", models.TextField(blank=True, default="")),
                ("order", models.IntegerField(default=0)),
            ],
            options={
                "ordering": ("order", "code"),
                "verbose_name_plural": "categories",
            },
        ),
        migrations.CreateModel(
            name="MainStandard",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("code", models.CharField(max_length=32)),
                ("title", models.CharField(max_length=255)),
                ("description", models.TextField(blank=True, default="")),
                ("responsible_units", models.JSONField(blank=True, default=list)),
                ("collaborating_units", models.JSONField(blank=True, default=list)),
                ("all_units_responsible", models.BooleanField(default=False)),
                ("all_units_collaborating", models.BooleanField(default=False)),
                ("order", models.IntegerField(default=0)),
                ("category", models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE,
                    related_name="main_standards",
                    to="standards.category",
                )),
            ],
            options={
                "ordering": ("order", "code"),
                "unique_together": {("category", "code")},
            },
        ),
        migrations.CreateModel(
            name="SubStandard",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("code", models.CharField(max_length=32)),
                ("title", models.CharField(max_length=255)),
                ("description", models.TextField(blank=True, default="")),
                ("responsible_units", models.JSONField(blank=True, default=list)),
                ("collaborating_units", models.JSONField(blank=True, default=list)),
                ("order", models.IntegerField(default=0)),
                ("main_standard", models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE,
                    related_name="sub_standards",
                    to="standards.mainstandard",
                )),
            ],
            options={
                "ordering": ("order", "code"),
                "unique_together": {("main_standard", "code")},
            },
        ),
        migrations.CreateModel(
            name="SubStandardStatus",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("organization_id", models.CharField(max_length=64)),
                ("plan_id", models.CharField(max_length=64)),
                ("current_status_text", models.TextField(blank=True, default="")),
                ("provides_reasonable_assurance", models.BooleanField(default=False)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("sub_standard", models.ForeignKey(
                    on_delete=django.db.models.deletion.PROTECT,
                    related_name="statuses",
                    to="standards.substandard",
                )),
            ],
            options={
                "constraints": [
                    models.UniqueConstraint(
                        fields=("sub_standard", "organization_id", "plan_id"),
                        name="uniq_substandard_status_scope",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="Action",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("organization_id", models.CharField(max_length=64)),
                ("plan_id", models.CharField(max_length=64)),
                ("code", models.CharField(max_length=32)),
                ("description", models.TextField()),
                ("output_result", models.TextField(blank=True, default="")),
                ("notes", models.TextField(blank=True, default="")),
                ("status", models.CharField(
                    choices=[
                        ("not_started", "Not started"),
                        ("in_progress", "In progress"),
                        ("completed", "Completed"),
                        ("delayed", "Delayed"),
                    ],
                    default="not_started", max_length=16,
                )),
                ("target_date", models.DateField(blank=True, null=True)),
                ("responsible_units", models.JSONField(blank=True, default=list)),
                ("collaborating_units", models.JSONField(blank=True, default=list)),
                ("all_units_responsible", models.BooleanField(default=False)),
                ("all_units_collaborating", models.BooleanField(default=False)),
                ("action_type", models.CharField(
                    choices=[("standard", "Standard"), ("linked", "Linked to a module")],
                    default="standard", max_length=16,
                )),
                ("linked_module", models.CharField(
                    blank=True, default="", max_length=32,
                    choices=[
                        ("process_management", "Process management"),
                        ("workflow_diagrams", "Workflow diagrams"),
                        ("risk_management", "Risk management"),
                        ("sensitive_tasks", "Sensitive tasks"),
                        ("document_management", "Document management"),
                    ],
                )),
                ("target_quantity", models.FloatField(blank=True, null=True)),
                ("current_quantity", models.FloatField(blank=True, null=True)),
                ("progress_percent", models.IntegerField(
                    default=0,
                    help_text="Manual progress of standard actions; linked actions derive theirs",
                    validators=[
                        django.core.validators.MinValueValidator(0),
                        django.core.validators.MaxValueValidator(100),
                    ],
                )),
                ("order", models.IntegerField(default=0)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("sub_standard", models.ForeignKey(
                    blank=True, null=True,
                    on_delete=django.db.models.deletion.PROTECT,
                    related_name="actions",
                    to="standards.substandard",
                )),
            ],
            options={
                "ordering": ("order", "code", "id"),
                "indexes": [
                    models.Index(fields=["organization_id", "plan_id"], name="action_scope_idx"),
                ],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("organization_id", "plan_id", "sub_standard", "code"),
                        name="uniq_action_code_scope",
                    ),
                ],
            },
        ),
    ]
