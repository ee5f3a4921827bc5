from django.contrib import admin
from .models import Profile, StatusChange

@admin.register(Profile)
class ProfileAdmin(admin.ModelAdmin):
    list_display = ("user", "display_name", "organization_id", "role", "department_id")
    list_filter = ("role", "organization_id")
    search_fields = ("user__username", "display_name", "department_id")

@admin.register(StatusChange)
class StatusChangeAdmin(admin.ModelAdmin):
    list_display = ("changed_at", "record_type", "record_id", "field", "old_value", "new_value", "changed_by")
    list_filter = ("record_type", "field", "organization_id", "plan_id")
    search_fields = ("record_id", "changed_by", "comment")
    ordering = ("-changed_at",)
