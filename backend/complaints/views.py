"""
Complaints app ViewSets.

Architecture: Views are intentionally thin.
Every view follows the strict three-step pattern:

    1. Parse / validate input via a serializer.
    2. Delegate all business logic to the appropriate service class.
    3. Serialize the result and return a DRF ``Response``.

No database queries, lifecycle logic, or notification fan-out lives here.

Views
-----
- ``ComplaintViewSet``     — list / create / retrieve / lifecycle update,
  plus attachment and timeline sub-resources as ``@action`` methods.
- ``ComplaintTrackingView`` — public look-up by human-readable ID.
"""

from __future__ import annotations

import logging

from drf_spectacular.utils import (
    OpenApiParameter,
    OpenApiResponse,
    extend_schema,
)
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.parsers import FormParser, JSONParser, MultiPartParser
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from core.domain.pagination import StandardPagination

from .serializers import (
    ComplaintCreateSerializer,
    ComplaintDetailSerializer,
    ComplaintListSerializer,
    ComplaintTrackingSerializer,
    ComplaintUpdateSerializer,
    TimelineEntrySerializer,
)
from .services import (
    ComplaintAttachmentService,
    ComplaintCreationService,
    ComplaintLifecycleService,
    ComplaintQueryService,
    ComplaintTrackingService,
)

logger = logging.getLogger(__name__)

_LIST_PARAMETERS = [
    OpenApiParameter(name="status", type=str, location=OpenApiParameter.QUERY, description="Filter by status; supports status[in]=a,b."),
    OpenApiParameter(name="category", type=str, location=OpenApiParameter.QUERY, description="Filter by category."),
    OpenApiParameter(name="priority", type=str, location=OpenApiParameter.QUERY, description="Filter by priority."),
    OpenApiParameter(name="department", type=int, location=OpenApiParameter.QUERY, description="Filter by assigned department PK."),
    OpenApiParameter(name="officer", type=int, location=OpenApiParameter.QUERY, description="Filter by assigned officer PK."),
    OpenApiParameter(name="created_at[gte]", type=str, location=OpenApiParameter.QUERY, description="ISO 8601 date. Created on or after."),
    OpenApiParameter(name="created_at[lte]", type=str, location=OpenApiParameter.QUERY, description="ISO 8601 date. Created on or before."),
    OpenApiParameter(name="search", type=str, location=OpenApiParameter.QUERY, description="Free-text search on ID, description and location."),
    OpenApiParameter(name="sort", type=str, location=OpenApiParameter.QUERY, description="Comma-separated sort keys, '-' for descending (e.g. -created_at,priority)."),
    OpenApiParameter(name="page", type=int, location=OpenApiParameter.QUERY, description="Page number (1-based)."),
    OpenApiParameter(name="limit", type=int, location=OpenApiParameter.QUERY, description="Page size."),
]


class ComplaintViewSet(viewsets.ViewSet):
    """
    Central ViewSet for the complaints app.

    Uses ``viewsets.ViewSet`` (not ``ModelViewSet``) so every action is
    explicitly defined.

    Permission Strategy
    -------------------
    The base permission is ``IsAuthenticated``.  Ownership and
    department checks are enforced exclusively inside the service layer.
    """

    permission_classes = [IsAuthenticated]
    parser_classes = [JSONParser, MultiPartParser, FormParser]
    lookup_value_regex = r"\d+"

    # ── Standard CRUD ────────────────────────────────────────────────

    @extend_schema(
        summary="List complaints",
        description=(
            "List complaints visible to the authenticated user: citizens see "
            "their own, staff see their department's, admins see all."
        ),
        parameters=_LIST_PARAMETERS,
        responses={
            200: OpenApiResponse(response=ComplaintListSerializer(many=True), description="Paginated list of complaints."),
            400: OpenApiResponse(description="Invalid filter operator, value or sort key."),
        },
        tags=["Complaints"],
    )
    def list(self, request: Request) -> Response:
        """
        GET /api/complaints/
        """
        qs = ComplaintQueryService.get_filtered_queryset(request.user, request.query_params)
        paginator = StandardPagination()
        page = paginator.paginate_queryset(qs, request, view=self)
        serializer = ComplaintListSerializer(page, many=True)
        return paginator.get_paginated_response(serializer.data)

    @extend_schema(
        summary="File a complaint",
        description=(
            "Create a complaint in 'submitted' status. The complaint is auto-assigned "
            "to the first active department servicing its category. Files may be "
            "uploaded under the multipart key 'attachments'. Citizen or admin only."
        ),
        request=ComplaintCreateSerializer,
        responses={
            201: OpenApiResponse(response=ComplaintDetailSerializer, description="Complaint created."),
            400: OpenApiResponse(description="Validation error or invalid attachment."),
            403: OpenApiResponse(description="Only citizens and admins may file complaints."),
        },
        tags=["Complaints"],
    )
    def create(self, request: Request) -> Response:
        """
        POST /api/complaints/

        Steps
        -----
        1. Validate with ``ComplaintCreateSerializer``.
        2. Delegate to ``ComplaintCreationService.create_complaint`` with the
           uploaded ``attachments``.
        3. Return HTTP 201 with ``ComplaintDetailSerializer``.
        """
        serializer = ComplaintCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        complaint = ComplaintCreationService.create_complaint(
            dict(serializer.validated_data),
            request.user,
            files=request.FILES.getlist("attachments"),
        )
        out = ComplaintDetailSerializer(complaint, context={"request": request})
        return Response(out.data, status=status.HTTP_201_CREATED)

    @extend_schema(
        summary="Retrieve complaint details",
        description="Full complaint with timeline, comments, attachments and feedback.",
        responses={
            200: OpenApiResponse(response=ComplaintDetailSerializer, description="Complaint detail."),
            403: OpenApiResponse(description="Not authorized to access this complaint."),
            404: OpenApiResponse(description="Complaint not found."),
        },
        tags=["Complaints"],
    )
    def retrieve(self, request: Request, pk: int = None) -> Response:
        """
        GET /api/complaints/{id}/
        """
        complaint = ComplaintQueryService.get_complaint(pk, request.user)
        serializer = ComplaintDetailSerializer(complaint, context={"request": request})
        return Response(serializer.data, status=status.HTTP_200_OK)

    @extend_schema(
        summary="Update complaint",
        description=(
            "Apply a partial lifecycle update: status, priority, assignment, "
            "estimated resolution date, comment and/or feedback. Each change is "
            "recorded on the timeline and triggers the matching notifications. "
            "Send 'version' to reject the update if the complaint changed since "
            "it was read."
        ),
        request=ComplaintUpdateSerializer,
        responses={
            200: OpenApiResponse(response=ComplaintDetailSerializer, description="Complaint updated."),
            400: OpenApiResponse(description="Validation error, illegal transition or feedback before resolution."),
            403: OpenApiResponse(description="Not authorized to update or assign this complaint."),
            404: OpenApiResponse(description="Complaint not found."),
            409: OpenApiResponse(description="Stale version or feedback already submitted."),
        },
        tags=["Complaints"],
    )
    def partial_update(self, request: Request, pk: int = None) -> Response:
        """
        PATCH /api/complaints/{id}/

        Steps
        -----
        1. Validate with ``ComplaintUpdateSerializer``.
        2. Delegate to ``ComplaintLifecycleService.update_complaint``.
        3. Return HTTP 200 with ``ComplaintDetailSerializer``.
        """
        serializer = ComplaintUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        complaint = ComplaintLifecycleService.update_complaint(
            pk, serializer.validated_data, request.user,
        )
        out = ComplaintDetailSerializer(complaint, context={"request": request})
        return Response(out.data, status=status.HTTP_200_OK)

    # ── Sub-resource @actions ─────────────────────────────────────────

    @extend_schema(
        summary="Upload attachments",
        description=(
            "Attach one or more files (multipart key 'attachments'). Images, PDF "
            "and Word documents up to 5 MB each, at most 5 per request."
        ),
        request={"multipart/form-data": {"type": "object", "properties": {"attachments": {"type": "array", "items": {"type": "string", "format": "binary"}}}}},
        responses={
            201: OpenApiResponse(response=ComplaintDetailSerializer, description="Attachments stored."),
            400: OpenApiResponse(description="No files, too many files, bad type or oversized file."),
            403: OpenApiResponse(description="Not authorized to update this complaint."),
            404: OpenApiResponse(description="Complaint not found."),
        },
        tags=["Complaints – Attachments"],
    )
    @action(detail=True, methods=["post"], url_path="attachments")
    def attachments(self, request: Request, pk: int = None) -> Response:
        """
        POST /api/complaints/{id}/attachments/
        """
        complaint = ComplaintAttachmentService.add_attachments(
            pk, request.FILES.getlist("attachments"), request.user,
        )
        out = ComplaintDetailSerializer(complaint, context={"request": request})
        return Response(out.data, status=status.HTTP_201_CREATED)

    @extend_schema(
        summary="Remove an attachment",
        description="Delete one attachment. The stored file is removed after the change commits.",
        request=None,
        responses={
            200: OpenApiResponse(response=ComplaintDetailSerializer, description="Attachment removed."),
            403: OpenApiResponse(description="Not authorized to update this complaint."),
            404: OpenApiResponse(description="Complaint or attachment not found."),
        },
        tags=["Complaints – Attachments"],
    )
    @action(
        detail=True,
        methods=["delete"],
        url_path=r"attachments/(?P<attachment_id>\d+)",
    )
    def remove_attachment(self, request: Request, pk: int = None, attachment_id: int = None) -> Response:
        """
        DELETE /api/complaints/{id}/attachments/{attachment_id}/
        """
        complaint = ComplaintAttachmentService.remove_attachment(
            pk, int(attachment_id), request.user,
        )
        out = ComplaintDetailSerializer(complaint, context={"request": request})
        return Response(out.data, status=status.HTTP_200_OK)

    @extend_schema(
        summary="Complaint timeline",
        description="Chronological, append-only history of the complaint.",
        responses={
            200: OpenApiResponse(response=TimelineEntrySerializer(many=True), description="Timeline entries, oldest first."),
            403: OpenApiResponse(description="Not authorized to access this complaint."),
            404: OpenApiResponse(description="Complaint not found."),
        },
        tags=["Complaints"],
    )
    @action(detail=True, methods=["get"], url_path="timeline")
    def timeline(self, request: Request, pk: int = None) -> Response:
        """
        GET /api/complaints/{id}/timeline/
        """
        entries = ComplaintQueryService.get_timeline(pk, request.user)
        serializer = TimelineEntrySerializer(entries, many=True)
        return Response(serializer.data, status=status.HTTP_200_OK)


class ComplaintTrackingView(APIView):
    """
    Public tracking endpoint.

    No authentication is attempted, so a stale token in the browser
    never turns a public look-up into a 401.
    """

    permission_classes = [AllowAny]
    authentication_classes: list = []

    @extend_schema(
        summary="Track a complaint",
        description=(
            "Look up a complaint by its human-readable ID (e.g. CMP-24-05-0001). "
            "Returns status, dates and timeline only; no personal data."
        ),
        responses={
            200: OpenApiResponse(response=ComplaintTrackingSerializer, description="Public tracking projection."),
            404: OpenApiResponse(description="No complaint with that ID."),
        },
        tags=["Complaints"],
    )
    def get(self, request: Request, complaint_id: str) -> Response:
        complaint = ComplaintTrackingService.track(complaint_id)
        serializer = ComplaintTrackingSerializer(complaint)
        return Response(serializer.data, status=status.HTTP_200_OK)
