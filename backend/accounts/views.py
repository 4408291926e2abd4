"""
Accounts app views.

All views follow the **Thin View** pattern: validate input via
serializers, delegate to the service layer, and return the result
wrapped in a DRF ``Response``.  **No business logic** resides here.

View Map
--------
- ``RegisterView``       — POST /auth/register/
- ``LoginView``          — POST /auth/login/
- ``ForgotPasswordView`` — POST /auth/password/forgot/
- ``ResetPasswordView``  — POST /auth/password/reset/
- ``MeView``             — GET / PATCH /me/
- ``ChangePasswordView`` — POST /me/password/
- ``MyComplaintsView``   — GET /me/complaints/
- ``UserViewSet``        — /users/  (list, create, retrieve, update,
                           destroy, role, status)
"""

from __future__ import annotations

from drf_spectacular.utils import OpenApiResponse, extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from complaints.serializers import ComplaintListSerializer
from core.domain.pagination import StandardPagination

from .serializers import (
    ChangePasswordSerializer,
    ChangeRoleSerializer,
    ChangeStatusSerializer,
    CustomTokenObtainPairSerializer,
    ForgotPasswordSerializer,
    MeUpdateSerializer,
    RegisterRequestSerializer,
    ResetPasswordSerializer,
    TokenResponseSerializer,
    UserCreateSerializer,
    UserDetailSerializer,
    UserListSerializer,
    UserUpdateSerializer,
)
from .services import (
    AuthenticationService,
    CurrentUserService,
    UserManagementService,
    UserRegistrationService,
)


# ═══════════════════════════════════════════════════════════════════
#  Authentication Views
# ═══════════════════════════════════════════════════════════════════


class RegisterView(APIView):
    """
    POST /api/accounts/auth/register/

    Public endpoint.  Creates a citizen account and signs it in.

    Request body  → ``RegisterRequestSerializer``
    Response body → ``TokenResponseSerializer`` (201 Created)
    """

    permission_classes = [AllowAny]

    @extend_schema(
        summary="Register as a citizen",
        request=RegisterRequestSerializer,
        responses={
            201: OpenApiResponse(response=TokenResponseSerializer, description="Account created; tokens issued."),
            400: OpenApiResponse(description="Validation error."),
            409: OpenApiResponse(description="Email already registered."),
        },
        tags=["Auth"],
    )
    def post(self, request: Request) -> Response:
        serializer = RegisterRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = UserRegistrationService.register_user(dict(serializer.validated_data))
        AuthenticationService.record_login(user)
        payload = AuthenticationService.generate_tokens(user)
        payload["user"] = UserDetailSerializer(user).data
        return Response(payload, status=status.HTTP_201_CREATED)


class LoginView(APIView):
    """
    POST /api/accounts/auth/login/

    Public endpoint.  Authenticates with ``email`` + ``password``.

    Request body  → ``CustomTokenObtainPairSerializer``
    Response body → ``TokenResponseSerializer`` (200 OK)
    """

    permission_classes = [AllowAny]

    @extend_schema(
        summary="Log in",
        request=CustomTokenObtainPairSerializer,
        responses={
            200: OpenApiResponse(response=TokenResponseSerializer, description="Tokens issued."),
            401: OpenApiResponse(description="Invalid credentials."),
            403: OpenApiResponse(description="Account is inactive or suspended."),
        },
        tags=["Auth"],
    )
    def post(self, request: Request) -> Response:
        serializer = CustomTokenObtainPairSerializer(
            data=request.data,
            context={"request": request},
        )
        serializer.is_valid(raise_exception=True)

        payload = dict(serializer.validated_data)
        payload["user"] = UserDetailSerializer(serializer.user).data
        return Response(payload, status=status.HTTP_200_OK)


class ForgotPasswordView(APIView):
    """
    POST /api/accounts/auth/password/forgot/

    Public endpoint.  E-mails a reset link to the account owner.
    """

    permission_classes = [AllowAny]

    @extend_schema(
        summary="Request a password reset",
        request=ForgotPasswordSerializer,
        responses={
            200: OpenApiResponse(description="Reset e-mail sent."),
            404: OpenApiResponse(description="No user found with that email."),
        },
        tags=["Auth"],
    )
    def post(self, request: Request) -> Response:
        serializer = ForgotPasswordSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        AuthenticationService.request_password_reset(serializer.validated_data["email"])
        return Response({"detail": "Email sent."}, status=status.HTTP_200_OK)


class ResetPasswordView(APIView):
    """
    POST /api/accounts/auth/password/reset/

    Public endpoint.  Sets a new password from the e-mailed ``uid`` and
    ``token`` and signs the user in.
    """

    permission_classes = [AllowAny]

    @extend_schema(
        summary="Reset password",
        request=ResetPasswordSerializer,
        responses={
            200: OpenApiResponse(response=TokenResponseSerializer, description="Password reset; tokens issued."),
            400: OpenApiResponse(description="Invalid or expired token, or weak password."),
            403: OpenApiResponse(description="Account is inactive or suspended."),
        },
        tags=["Auth"],
    )
    def post(self, request: Request) -> Response:
        serializer = ResetPasswordSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = AuthenticationService.reset_password(
            serializer.validated_data["uid"],
            serializer.validated_data["token"],
            serializer.validated_data["new_password"],
        )
        AuthenticationService.record_login(user)
        payload = AuthenticationService.generate_tokens(user)
        payload["user"] = UserDetailSerializer(user).data
        return Response(payload, status=status.HTTP_200_OK)


# ═══════════════════════════════════════════════════════════════════
#  Current User ("Me") Views
# ═══════════════════════════════════════════════════════════════════


class MeView(APIView):
    """
    GET   /api/accounts/me/ → Retrieve current user profile.
    PATCH /api/accounts/me/ → Update own profile fields.
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        summary="Current user profile",
        responses={200: UserDetailSerializer},
        tags=["Me"],
    )
    def get(self, request: Request) -> Response:
        user = CurrentUserService.get_profile(request.user)
        return Response(UserDetailSerializer(user).data, status=status.HTTP_200_OK)

    @extend_schema(
        summary="Update own profile",
        description="Name, phone, address and notification preferences.",
        request=MeUpdateSerializer,
        responses={
            200: OpenApiResponse(response=UserDetailSerializer, description="Profile updated."),
            400: OpenApiResponse(description="Validation error."),
        },
        tags=["Me"],
    )
    def patch(self, request: Request) -> Response:
        serializer = MeUpdateSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        user = CurrentUserService.update_profile(request.user, dict(serializer.validated_data))
        return Response(UserDetailSerializer(user).data, status=status.HTTP_200_OK)


class ChangePasswordView(APIView):
    """POST /api/accounts/me/password/"""

    permission_classes = [IsAuthenticated]

    @extend_schema(
        summary="Change password",
        description="Requires the current password. Returns a fresh token pair.",
        request=ChangePasswordSerializer,
        responses={
            200: OpenApiResponse(description="Password changed; new tokens issued."),
            400: OpenApiResponse(description="Current password is incorrect or new password is too weak."),
        },
        tags=["Me"],
    )
    def post(self, request: Request) -> Response:
        serializer = ChangePasswordSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        tokens = CurrentUserService.change_password(
            request.user,
            serializer.validated_data["current_password"],
            serializer.validated_data["new_password"],
        )
        return Response(tokens, status=status.HTTP_200_OK)


class MyComplaintsView(APIView):
    """GET /api/accounts/me/complaints/"""

    permission_classes = [IsAuthenticated]

    @extend_schema(
        summary="My complaints",
        description="Complaints filed by the current user. Accepts the complaint list filters.",
        responses={200: ComplaintListSerializer(many=True)},
        tags=["Me"],
    )
    def get(self, request: Request) -> Response:
        qs = CurrentUserService.list_my_complaints(request.user, request.query_params)
        paginator = StandardPagination()
        page = paginator.paginate_queryset(qs, request, view=self)
        return paginator.get_paginated_response(ComplaintListSerializer(page, many=True).data)


# ═══════════════════════════════════════════════════════════════════
#  User Management ViewSet
# ═══════════════════════════════════════════════════════════════════


class UserViewSet(viewsets.ViewSet):
    """
    User administration.

    Admins manage every user.  Supervisors may list and read users of
    their own department and citizens.  All checks live in
    ``UserManagementService``.
    """

    permission_classes = [IsAuthenticated]
    lookup_value_regex = r"\d+"

    @extend_schema(
        summary="List users",
        responses={200: UserListSerializer(many=True)},
        tags=["Users"],
    )
    def list(self, request: Request) -> Response:
        qs = UserManagementService.list_users(request.user, request.query_params)
        paginator = StandardPagination()
        page = paginator.paginate_queryset(qs, request, view=self)
        return paginator.get_paginated_response(UserListSerializer(page, many=True).data)

    @extend_schema(
        summary="Create a user",
        description="Admin only. Officers and supervisors need a department.",
        request=UserCreateSerializer,
        responses={
            201: OpenApiResponse(response=UserDetailSerializer, description="User created."),
            403: OpenApiResponse(description="Admin only."),
            409: OpenApiResponse(description="Email already registered."),
        },
        tags=["Users"],
    )
    def create(self, request: Request) -> Response:
        serializer = UserCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = UserManagementService.create_user(dict(serializer.validated_data), request.user)
        return Response(UserDetailSerializer(user).data, status=status.HTTP_201_CREATED)

    @extend_schema(
        summary="Retrieve a user",
        responses={
            200: UserDetailSerializer,
            403: OpenApiResponse(description="Not authorized to access this user."),
            404: OpenApiResponse(description="User not found."),
        },
        tags=["Users"],
    )
    def retrieve(self, request: Request, pk: int = None) -> Response:
        user = UserManagementService.get_user(pk, request.user)
        return Response(UserDetailSerializer(user).data, status=status.HTTP_200_OK)

    @extend_schema(
        summary="Update a user",
        description="Admin only. Role and department are changed through /role/.",
        request=UserUpdateSerializer,
        responses={200: UserDetailSerializer},
        tags=["Users"],
    )
    def partial_update(self, request: Request, pk: int = None) -> Response:
        serializer = UserUpdateSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        user = UserManagementService.update_user(pk, dict(serializer.validated_data), request.user)
        return Response(UserDetailSerializer(user).data, status=status.HTTP_200_OK)

    @extend_schema(
        summary="Delete a user",
        responses={
            204: OpenApiResponse(description="User deleted."),
            409: OpenApiResponse(description="User is referenced by complaints or comments."),
        },
        tags=["Users"],
    )
    def destroy(self, request: Request, pk: int = None) -> Response:
        UserManagementService.delete_user(pk, request.user)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @extend_schema(
        summary="Change role",
        request=ChangeRoleSerializer,
        responses={
            200: UserDetailSerializer,
            400: OpenApiResponse(description="Department is required for officers and supervisors."),
        },
        tags=["Users"],
    )
    @action(detail=True, methods=["patch"], url_path="role")
    def role(self, request: Request, pk: int = None) -> Response:
        serializer = ChangeRoleSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = UserManagementService.change_role(
            pk,
            serializer.validated_data["role"],
            serializer.validated_data.get("department"),
            request.user,
        )
        return Response(UserDetailSerializer(user).data, status=status.HTTP_200_OK)

    @extend_schema(
        summary="Change status",
        request=ChangeStatusSerializer,
        responses={200: UserDetailSerializer},
        tags=["Users"],
    )
    @action(detail=True, methods=["patch"], url_path="status")
    def change_status(self, request: Request, pk: int = None) -> Response:
        serializer = ChangeStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = UserManagementService.change_status(
            pk, serializer.validated_data["status"], request.user,
        )
        return Response(UserDetailSerializer(user).data, status=status.HTTP_200_OK)
