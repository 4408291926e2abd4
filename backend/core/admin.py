from django.contrib import admin

from .models import Notification


@admin.register(Notification)
class NotificationAdmin(admin.ModelAdmin):
    list_display = ("title", "recipient", "type", "is_read", "created_at")
    list_filter = ("type", "is_read")
    search_fields = ("title", "recipient__email")
    raw_id_fields = ("recipient",)
    readonly_fields = ("content_type", "object_id", "read_at")
