"""
Reports app views.

Thin views over ``ReportService``.  The department and system reports
support two output formats chosen by DRF content negotiation:
``?format=json`` (default) and ``?format=csv``.
"""

from __future__ import annotations

from django.utils import timezone
from drf_spectacular.utils import OpenApiParameter, OpenApiResponse, extend_schema
from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.renderers import JSONRenderer
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from complaints.serializers import ComplaintDetailSerializer

from .renderers import CSVRenderer
from .serializers import DepartmentReportSerializer, SystemReportSerializer
from .services import DEPARTMENT_CSV_COLUMNS, ReportService

_PERIOD_PARAMETER = OpenApiParameter(
    name="period",
    type=str,
    location=OpenApiParameter.QUERY,
    description="week, month (default), quarter or year.",
)
_FORMAT_PARAMETER = OpenApiParameter(
    name="format",
    type=str,
    location=OpenApiParameter.QUERY,
    description="json (default) or csv.",
)


def _wants_csv(request: Request) -> bool:
    return getattr(request.accepted_renderer, "format", None) == CSVRenderer.format


def _attachment_headers(filename: str) -> dict[str, str]:
    return {"Content-Disposition": f'attachment; filename="{filename}"'}


class ComplaintReportView(APIView):
    """GET /api/reports/complaints/{id}/"""

    permission_classes = [IsAuthenticated]
    renderer_classes = [JSONRenderer]

    @extend_schema(
        summary="Complaint report",
        description="Full complaint detail with timeline, comments, attachments and feedback.",
        responses={
            200: OpenApiResponse(description="Complaint report."),
            403: OpenApiResponse(description="Not authorized to access this complaint."),
            404: OpenApiResponse(description="Complaint not found."),
        },
        tags=["Reports"],
    )
    def get(self, request: Request, pk: int) -> Response:
        complaint = ReportService.complaint_report(pk, request.user)
        payload = {
            "generated_at": timezone.now(),
            "complaint": ComplaintDetailSerializer(complaint, context={"request": request}).data,
        }
        return Response(payload, status=status.HTTP_200_OK)


class DepartmentReportView(APIView):
    """GET /api/reports/departments/{id}/?period=&format="""

    permission_classes = [IsAuthenticated]
    renderer_classes = [JSONRenderer, CSVRenderer]
    csv_columns = DEPARTMENT_CSV_COLUMNS

    @extend_schema(
        summary="Department report",
        description="Admin or a supervisor of the department.",
        parameters=[_PERIOD_PARAMETER, _FORMAT_PARAMETER],
        responses={
            200: OpenApiResponse(response=DepartmentReportSerializer, description="Department report."),
            400: OpenApiResponse(description="Invalid period."),
            403: OpenApiResponse(description="Not authorized to access this department's reports."),
            404: OpenApiResponse(description="Department not found."),
        },
        tags=["Reports"],
    )
    def get(self, request: Request, pk: int) -> Response:
        report = ReportService.department_report(pk, request.query_params.get("period"), request.user)
        if _wants_csv(request):
            filename = f"department-report-{report['department'].code}-{report['period']}.csv"
            return Response(
                ReportService.department_csv_rows(report),
                status=status.HTTP_200_OK,
                headers=_attachment_headers(filename),
            )
        return Response(DepartmentReportSerializer(report).data, status=status.HTTP_200_OK)


class SystemReportView(APIView):
    """GET /api/reports/system/?period=&format="""

    permission_classes = [IsAuthenticated]
    renderer_classes = [JSONRenderer, CSVRenderer]
    csv_columns = ("metric", "value")

    @extend_schema(
        summary="System report",
        description="Admin only. Totals, activity within the period and a per-department summary.",
        parameters=[_PERIOD_PARAMETER, _FORMAT_PARAMETER],
        responses={
            200: OpenApiResponse(response=SystemReportSerializer, description="System report."),
            400: OpenApiResponse(description="Invalid period."),
            403: OpenApiResponse(description="Admin only."),
        },
        tags=["Reports"],
    )
    def get(self, request: Request) -> Response:
        report = ReportService.system_report(request.query_params.get("period"), request.user)
        if _wants_csv(request):
            filename = f"system-report-{report['period']}.csv"
            return Response(
                ReportService.system_csv_rows(report),
                status=status.HTTP_200_OK,
                headers=_attachment_headers(filename),
            )
        return Response(SystemReportSerializer(report).data, status=status.HTTP_200_OK)
