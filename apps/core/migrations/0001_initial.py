from django.conf import settings
from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Profile",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("organization_id", models.CharField(max_length=64)),
                ("role", models.CharField(
                    choices=[
                        ("admin", "Admin"),
                        ("vice_president", "Vice president"),
                        ("ic_coordinator", "Internal control coordinator"),
                        ("member", "Member"),
                    ],
                    default="member", max_length=32,
                )),
                ("department_id", models.CharField(blank=True, default="", max_length=64)),
                ("display_name", models.CharField(blank=True, default="", max_length=128)),
                ("user", models.OneToOneField(
                    on_delete=django.db.models.deletion.CASCADE,
                    related_name="compliance_profile",
                    to=settings.AUTH_USER_MODEL,
                )),
            ],
        ),
        migrations.CreateModel(
            name="StatusChange",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("organization_id", models.CharField(max_length=64)),
                ("plan_id", models.CharField(blank=True, default="", max_length=64)),
                ("record_type", models.CharField(max_length=32)),
                ("record_id", models.CharField(max_length=64)),
                ("field", models.CharField(default="status", max_length=32)),
                ("old_value", models.CharField(blank=True, default="", max_length=32)),
                ("new_value", models.CharField(max_length=32)),
                ("changed_by", models.CharField(blank=True, default="", max_length=64)),
                ("comment", models.TextField(blank=True, default="")),
                ("changed_at", models.DateTimeField(auto_now_add=True)),
            ],
            options={
                "ordering": ("-changed_at", "-id"),
                "indexes": [
                    models.Index(fields=["organization_id", "record_type", "record_id"], name="status_change_record_idx"),
                ],
            },
        ),
    ]
