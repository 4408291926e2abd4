"""
Accounts app URL configuration.

All routes are namespaced under ``accounts`` and designed to be included
in the project-level ``urls.py`` as::

    path('api/accounts/', include('accounts.urls')),

Endpoint Map
------------
Authentication
    POST   /auth/register/              → RegisterView
    POST   /auth/login/                 → LoginView
    POST   /auth/token/refresh/         → TokenRefreshView (SimpleJWT)
    POST   /auth/password/forgot/       → ForgotPasswordView
    POST   /auth/password/reset/        → ResetPasswordView

Current User Profile ("Me")
    GET    /me/                         → MeView  (retrieve)
    PATCH  /me/                         → MeView  (partial update)
    POST   /me/password/                → ChangePasswordView
    GET    /me/complaints/              → MyComplaintsView

User Management (Admin; Supervisor read-only)
    GET    /users/                      → UserViewSet.list
    POST   /users/                      → UserViewSet.create
    GET    /users/{id}/                 → UserViewSet.retrieve
    PATCH  /users/{id}/                 → UserViewSet.partial_update
    DELETE /users/{id}/                 → UserViewSet.destroy
    PATCH  /users/{id}/role/            → UserViewSet.role
    PATCH  /users/{id}/status/          → UserViewSet.change_status
"""

from django.urls import include, path
from rest_framework.routers import DefaultRouter
from rest_framework_simplejwt.views import TokenRefreshView

from .views import (
    ChangePasswordView,
    ForgotPasswordView,
    LoginView,
    MeView,
    MyComplaintsView,
    RegisterView,
    ResetPasswordView,
    UserViewSet,
)

app_name = "accounts"

router = DefaultRouter()
router.register(r"users", UserViewSet, basename="user")

urlpatterns = [
    # ── Authentication ───────────────────────────────────────────────
    path("auth/register/", RegisterView.as_view(), name="register"),
    path("auth/login/", LoginView.as_view(), name="login"),
    path(
        "auth/token/refresh/",
        TokenRefreshView.as_view(),
        name="token-refresh",
    ),
    path("auth/password/forgot/", ForgotPasswordView.as_view(), name="password-forgot"),
    path("auth/password/reset/", ResetPasswordView.as_view(), name="password-reset"),

    # ── Current User (Me) ───────────────────────────────────────────
    path("me/", MeView.as_view(), name="me"),
    path("me/password/", ChangePasswordView.as_view(), name="me-password"),
    path("me/complaints/", MyComplaintsView.as_view(), name="me-complaints"),

    # ── Router-registered viewsets (users/) ──────────────────────────
    path("", include(router.urls)),
]
