"""
Reports app serializers.

Response shapes for the JSON variants of the reports.  The complaint
report reuses ``ComplaintDetailSerializer`` from the complaints app.
"""

from __future__ import annotations

from rest_framework import serializers

from complaints.serializers import ComplaintListSerializer, DepartmentSummarySerializer
from core.serializers import CountItemSerializer


class FeedbackStatsSerializer(serializers.Serializer):
    average = serializers.FloatField(allow_null=True)
    count = serializers.IntegerField()
    distribution = serializers.DictField(child=serializers.IntegerField())


class DepartmentReportSummarySerializer(serializers.Serializer):
    total = serializers.IntegerField()
    resolved = serializers.IntegerField()
    high_priority = serializers.IntegerField()
    by_status = CountItemSerializer(many=True)
    by_priority = CountItemSerializer(many=True)
    resolution_rate = serializers.FloatField()
    average_resolution_days = serializers.FloatField(allow_null=True)
    feedback = FeedbackStatsSerializer()


class DepartmentReportSerializer(serializers.Serializer):
    """``GET /api/reports/departments/{id}/?format=json``"""

    department = DepartmentSummarySerializer()
    period = serializers.CharField()
    since = serializers.DateTimeField()
    generated_at = serializers.DateTimeField()
    summary = DepartmentReportSummarySerializer()
    complaints = ComplaintListSerializer(many=True)


class SystemComplaintTotalsSerializer(serializers.Serializer):
    total = serializers.IntegerField()
    new = serializers.IntegerField()
    resolved = serializers.IntegerField()
    resolved_in_period = serializers.IntegerField()
    resolution_rate = serializers.FloatField()
    average_resolution_days = serializers.FloatField(allow_null=True)
    by_status = CountItemSerializer(many=True)


class SystemUserTotalsSerializer(serializers.Serializer):
    total = serializers.IntegerField()
    new = serializers.IntegerField()
    by_role = CountItemSerializer(many=True)


class DepartmentSummaryRowSerializer(serializers.Serializer):
    id = serializers.IntegerField()
    code = serializers.CharField()
    name = serializers.CharField()
    total = serializers.IntegerField()
    new = serializers.IntegerField()
    resolved = serializers.IntegerField()
    open = serializers.IntegerField()


class SystemReportSerializer(serializers.Serializer):
    """``GET /api/reports/system/``"""

    period = serializers.CharField()
    since = serializers.DateTimeField()
    generated_at = serializers.DateTimeField()
    complaints = SystemComplaintTotalsSerializer()
    users = SystemUserTotalsSerializer()
    departments = DepartmentSummaryRowSerializer(many=True)
