"""
Departments app ViewSets.

Thin views: validate with a serializer, delegate to ``services.py``,
serialize the result.
"""

from __future__ import annotations

from drf_spectacular.utils import OpenApiParameter, OpenApiResponse, extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.request import Request
from rest_framework.response import Response

from complaints.serializers import ComplaintListSerializer
from core.domain.pagination import StandardPagination

from .serializers import (
    DepartmentMemberSerializer,
    DepartmentSerializer,
    DepartmentWriteSerializer,
)
from .services import (
    DepartmentMemberService,
    DepartmentQueryService,
    DepartmentService,
)


class DepartmentViewSet(viewsets.ViewSet):
    """
    CRUD for departments plus department-scoped complaint and user lists.

    Any authenticated user may list and read departments; writes are
    admin-only (enforced in ``DepartmentService``).
    """

    permission_classes = [IsAuthenticated]
    lookup_value_regex = r"\d+"

    def _paginate(self, request: Request, qs, serializer_class) -> Response:
        paginator = StandardPagination()
        page = paginator.paginate_queryset(qs, request, view=self)
        serializer = serializer_class(page, many=True)
        return paginator.get_paginated_response(serializer.data)

    @extend_schema(
        summary="List departments",
        parameters=[
            OpenApiParameter(name="status", type=str, location=OpenApiParameter.QUERY, description="active or inactive."),
            OpenApiParameter(name="sort", type=str, location=OpenApiParameter.QUERY, description="name, code or created_at; '-' for descending."),
        ],
        responses={200: OpenApiResponse(response=DepartmentSerializer(many=True), description="Paginated departments.")},
        tags=["Departments"],
    )
    def list(self, request: Request) -> Response:
        qs = DepartmentQueryService.list_departments(request.query_params)
        return self._paginate(request, qs, DepartmentSerializer)

    @extend_schema(
        summary="Create a department",
        description="Admin only. The code is stored upper-case and must be unique.",
        request=DepartmentWriteSerializer,
        responses={
            201: OpenApiResponse(response=DepartmentSerializer, description="Department created."),
            403: OpenApiResponse(description="Admin only."),
            409: OpenApiResponse(description="Code or name already in use."),
        },
        tags=["Departments"],
    )
    def create(self, request: Request) -> Response:
        serializer = DepartmentWriteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        department = DepartmentService.create_department(
            dict(serializer.validated_data), request.user,
        )
        return Response(DepartmentSerializer(department).data, status=status.HTTP_201_CREATED)

    @extend_schema(
        summary="Retrieve a department",
        responses={
            200: OpenApiResponse(response=DepartmentSerializer, description="Department detail."),
            404: OpenApiResponse(description="Department not found."),
        },
        tags=["Departments"],
    )
    def retrieve(self, request: Request, pk: int = None) -> Response:
        department = DepartmentQueryService.get_department(pk)
        return Response(DepartmentSerializer(department).data, status=status.HTTP_200_OK)

    @extend_schema(
        summary="Update a department",
        description=(
            "Admin only. Changing 'head' promotes the new head to supervisor of "
            "this department and demotes the previous head to officer unless "
            "they head another department."
        ),
        request=DepartmentWriteSerializer,
        responses={
            200: OpenApiResponse(response=DepartmentSerializer, description="Department updated."),
            403: OpenApiResponse(description="Admin only."),
            404: OpenApiResponse(description="Department not found."),
            409: OpenApiResponse(description="Code or name already in use."),
        },
        tags=["Departments"],
    )
    def partial_update(self, request: Request, pk: int = None) -> Response:
        serializer = DepartmentWriteSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        department = DepartmentService.update_department(
            pk, dict(serializer.validated_data), request.user,
        )
        return Response(DepartmentSerializer(department).data, status=status.HTTP_200_OK)

    @extend_schema(
        summary="Delete a department",
        description="Admin only. Refused while users or complaints are assigned.",
        responses={
            204: OpenApiResponse(description="Department deleted."),
            403: OpenApiResponse(description="Admin only."),
            404: OpenApiResponse(description="Department not found."),
            409: OpenApiResponse(description="Department still has users or complaints."),
        },
        tags=["Departments"],
    )
    def destroy(self, request: Request, pk: int = None) -> Response:
        DepartmentService.delete_department(pk, request.user)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @extend_schema(
        summary="Department complaints",
        description="Complaints assigned to the department. Admin or staff of the department.",
        responses={
            200: OpenApiResponse(response=ComplaintListSerializer(many=True), description="Paginated complaints."),
            403: OpenApiResponse(description="Not a member of this department."),
        },
        tags=["Departments"],
    )
    @action(detail=True, methods=["get"], url_path="complaints")
    def complaints(self, request: Request, pk: int = None) -> Response:
        qs = DepartmentMemberService.list_department_complaints(pk, request.query_params, request.user)
        return self._paginate(request, qs, ComplaintListSerializer)

    @extend_schema(
        summary="Department users",
        description="Users belonging to the department. Admin or a supervisor of the department.",
        responses={
            200: OpenApiResponse(response=DepartmentMemberSerializer(many=True), description="Paginated users."),
            403: OpenApiResponse(description="Admin or department supervisor only."),
        },
        tags=["Departments"],
    )
    @action(detail=True, methods=["get"], url_path="users")
    def users(self, request: Request, pk: int = None) -> Response:
        qs = DepartmentMemberService.list_department_users(pk, request.query_params, request.user)
        return self._paginate(request, qs, DepartmentMemberSerializer)
