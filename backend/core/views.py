"""
Core app views — **Thin Views**.

Each view delegates all business logic to the corresponding service in
``core.services``.  Views are responsible only for:

1. Extracting query parameters from the request.
2. Calling the service with the authenticated user and parameters.
3. Serialising the result and returning an HTTP ``Response``.

No model imports, no aggregation logic, no cross-app queries.
"""

from __future__ import annotations

from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from drf_spectacular.utils import (
    OpenApiParameter,
    OpenApiResponse,
    extend_schema,
)

from .domain.pagination import StandardPagination
from .serializers import (
    DashboardStatsSerializer,
    NotificationSerializer,
    SystemConstantsSerializer,
)
from .services import (
    DashboardAggregationService,
    NotificationInboxService,
    SystemConstantsService,
)


class DashboardStatsView(APIView):
    """
    **GET /api/core/dashboard/**

    Return aggregated dashboard statistics for the authenticated user.

    The response payload is **role-aware**: a citizen sees their own
    complaints, officers and supervisors see their department, admins
    see the whole system.  See ``DashboardAggregationService`` for the
    full scoping logic.

    **Authentication**: Required (``IsAuthenticated``).

    **Error Responses**:
        - ``401 Unauthorized``: Missing or invalid credentials.
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        summary="Dashboard statistics",
        description=(
            "Return role-aware dashboard statistics. Keys specific to another "
            "role are omitted from the payload."
        ),
        responses={200: OpenApiResponse(response=DashboardStatsSerializer, description="Dashboard stats.")},
        tags=["Dashboard"],
    )
    def get(self, request: Request) -> Response:
        service = DashboardAggregationService(user=request.user)
        data = service.get_stats()
        serializer = DashboardStatsSerializer(data)
        return Response(serializer.data, status=status.HTTP_200_OK)


class SystemConstantsView(APIView):
    """
    **GET /api/core/constants/**

    Return all system-wide choice enumerations so the frontend can
    dynamically build dropdowns, filters, and labels without
    hardcoding values.

    **Authentication**: Not required (``AllowAny``).
    These constants are public configuration data.
    """

    permission_classes = [AllowAny]
    authentication_classes = []

    @extend_schema(
        summary="System constants",
        description=(
            "Return complaint categories, statuses, priorities and the status "
            "transition table, plus user, department and notification enums."
        ),
        responses={200: OpenApiResponse(response=SystemConstantsSerializer, description="System constants.")},
        tags=["System"],
    )
    def get(self, request: Request) -> Response:
        data = SystemConstantsService.get_constants()
        serializer = SystemConstantsSerializer(data)
        return Response(serializer.data, status=status.HTTP_200_OK)


class NotificationViewSet(viewsets.ViewSet):
    """
    **Notification API** — the authenticated user's inbox.

    Endpoints
    ---------
    GET    /api/core/notifications/              → paginated list + unread_count
    POST   /api/core/notifications/{id}/read/    → mark a notification as read
    POST   /api/core/notifications/read-all/     → mark every notification as read
    DELETE /api/core/notifications/{id}/         → delete a notification

    **Authentication**: Required (``IsAuthenticated``).
    """

    permission_classes = [IsAuthenticated]
    lookup_value_regex = r"\d+"

    @extend_schema(
        summary="List notifications",
        description="Return the authenticated user's notifications, newest first.",
        parameters=[
            OpenApiParameter(name="is_read", type=bool, location=OpenApiParameter.QUERY, description="Filter by read state."),
            OpenApiParameter(name="type", type=str, location=OpenApiParameter.QUERY, description="Filter by notification type."),
        ],
        responses={200: OpenApiResponse(response=NotificationSerializer(many=True), description="Paginated notifications with unread_count.")},
        tags=["Notifications"],
    )
    def list(self, request: Request) -> Response:
        service = NotificationInboxService(user=request.user)
        notifications = service.list_notifications(request.query_params)
        paginator = StandardPagination()
        page = paginator.paginate_queryset(notifications, request, view=self)
        response = paginator.get_paginated_response(NotificationSerializer(page, many=True).data)
        response.data["unread_count"] = service.unread_count()
        return response

    @extend_schema(
        summary="Mark notification as read",
        description="Mark a single notification as read. Recipient only.",
        request=None,
        responses={
            200: OpenApiResponse(response=NotificationSerializer, description="Updated notification."),
            403: OpenApiResponse(description="Not the recipient."),
            404: OpenApiResponse(description="Notification not found."),
        },
        tags=["Notifications"],
    )
    @action(detail=True, methods=["post"], url_path="read")
    def mark_as_read(self, request: Request, pk: int = None) -> Response:
        service = NotificationInboxService(user=request.user)
        notification = service.mark_as_read(notification_id=pk)
        serializer = NotificationSerializer(notification)
        return Response(serializer.data, status=status.HTTP_200_OK)

    @extend_schema(
        summary="Mark all notifications as read",
        request=None,
        responses={200: OpenApiResponse(description="Number of notifications updated.")},
        tags=["Notifications"],
    )
    @action(detail=False, methods=["post"], url_path="read-all")
    def mark_all_as_read(self, request: Request) -> Response:
        updated = NotificationInboxService(user=request.user).mark_all_as_read()
        return Response({"updated": updated}, status=status.HTTP_200_OK)

    @extend_schema(
        summary="Delete notification",
        responses={
            204: OpenApiResponse(description="Notification deleted."),
            403: OpenApiResponse(description="Not the recipient."),
            404: OpenApiResponse(description="Notification not found."),
        },
        tags=["Notifications"],
    )
    def destroy(self, request: Request, pk: int = None) -> Response:
        NotificationInboxService(user=request.user).delete_notification(notification_id=pk)
        return Response(status=status.HTTP_204_NO_CONTENT)
