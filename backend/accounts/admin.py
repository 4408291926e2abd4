from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin

from .models import User


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    list_display = ("email", "name", "role", "department", "status", "last_active")
    search_fields = ("email", "name", "phone")
    list_filter = ("status", "role", "department", "is_staff")
    ordering = ("email",)
    filter_horizontal = ("groups", "user_permissions")
    fieldsets = (
        (None, {"fields": ("email", "password")}),
        ("Personal Info", {"fields": ("name", "phone", "address")}),
        ("Role", {"fields": ("role", "department", "status")}),
        ("Notifications", {"fields": ("notify_email", "notify_sms",
                                      "notify_status_updates",
                                      "notify_feedback_reminders")}),
        ("Permissions", {"fields": ("is_staff", "is_superuser",
                                    "groups", "user_permissions")}),
        ("Important dates", {"fields": ("last_login", "last_active", "date_joined")}),
    )
    add_fieldsets = (
        (None, {
            "classes": ("wide",),
            "fields": ("email", "name", "role", "department",
                       "password1", "password2"),
        }),
    )
