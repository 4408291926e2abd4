from django.contrib import admin

from .models import (
    Complaint,
    ComplaintAttachment,
    ComplaintComment,
    ComplaintFeedback,
    ComplaintSequence,
    ComplaintTimelineEntry,
)


class ComplaintTimelineInline(admin.TabularInline):
    model = ComplaintTimelineEntry
    extra = 0
    can_delete = False
    readonly_fields = ("status", "description", "updated_by",
                       "department", "timestamp")

    def has_add_permission(self, request, obj=None):
        return False


class ComplaintCommentInline(admin.TabularInline):
    model = ComplaintComment
    extra = 0
    readonly_fields = ("author", "text", "timestamp")


class ComplaintAttachmentInline(admin.TabularInline):
    model = ComplaintAttachment
    extra = 0
    readonly_fields = ("filename", "mime_type", "size",
                       "uploaded_by", "uploaded_at")


@admin.register(Complaint)
class ComplaintAdmin(admin.ModelAdmin):
    list_display = ("complaint_id", "category", "status", "priority",
                    "assigned_department", "assigned_officer", "created_at")
    list_filter = ("status", "category", "priority", "assigned_department")
    search_fields = ("complaint_id", "description", "location", "citizen__email")
    readonly_fields = ("complaint_id", "version", "resolved_at",
                       "created_at", "updated_at")
    inlines = [ComplaintTimelineInline, ComplaintCommentInline,
               ComplaintAttachmentInline]


@admin.register(ComplaintFeedback)
class ComplaintFeedbackAdmin(admin.ModelAdmin):
    list_display = ("complaint", "rating", "submitted_at")
    list_filter = ("rating",)


@admin.register(ComplaintSequence)
class ComplaintSequenceAdmin(admin.ModelAdmin):
    list_display = ("period", "last_value")
