from django.contrib import admin
from .models import Category, MainStandard, SubStandard, SubStandardStatus, Action

@admin.register(Category)
class CategoryAdmin(admin.ModelAdmin):
    list_display = ("code", "name", "order")
    search_fields = ("code", "name")
    ordering = ("order", "code")

@admin.register(MainStandard)
class MainStandardAdmin(admin.ModelAdmin):
    list_display = ("category", "code", "title", "all_units_responsible", "order")
    list_filter = ("category",)
    search_fields = ("code", "title")

@admin.register(SubStandard)
class SubStandardAdmin(admin.ModelAdmin):
    list_display = ("main_standard", "code", "title", "order")
    list_filter = ("main_standard__category",)
    search_fields = ("code", "title")

@admin.register(SubStandardStatus)
class SubStandardStatusAdmin(admin.ModelAdmin):
    list_display = ("sub_standard", "organization_id", "plan_id", "provides_reasonable_assurance", "updated_at")
    list_filter = ("organization_id", "plan_id", "provides_reasonable_assurance")

@admin.register(Action)
class ActionAdmin(admin.ModelAdmin):
    list_display = ("code", "organization_id", "plan_id", "sub_standard", "status", "action_type", "target_date")
    list_filter = ("organization_id", "plan_id", "status", "action_type", "linked_module")
    search_fields = ("code", "description")
