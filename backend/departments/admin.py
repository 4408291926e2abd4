from django.contrib import admin

from .models import Department


@admin.register(Department)
class DepartmentAdmin(admin.ModelAdmin):
    list_display = ("code", "name", "status", "head", "contact_email")
    list_filter = ("status",)
    search_fields = ("code", "name")
    raw_id_fields = ("head",)
