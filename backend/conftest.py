"""
Root conftest.py — shared fixtures for the entire test suite.

Provides:
  - ``api_client`` fixture returning a DRF ``APIClient``.
  - ``create_department`` factory fixture for departments.
  - ``create_user`` factory fixture for creating test users.
  - ``auth_header`` fixture for authenticated requests (JWT).
"""

from __future__ import annotations

import pytest
from rest_framework.test import APIClient


@pytest.fixture(autouse=True)
def _media_root(settings, tmp_path):
    """Keep uploaded attachments out of the working tree."""
    settings.MEDIA_ROOT = str(tmp_path / "media")


@pytest.fixture()
def api_client() -> APIClient:
    """Unauthenticated DRF test client."""
    return APIClient()


@pytest.fixture()
def create_department(db):
    """
    Factory fixture that creates a department.

    Usage::

        water = create_department(code="WATER", categories=["water"])
        closed = create_department(status="inactive")
    """
    from departments.models import Department

    _counter = 0

    def _factory(
        *,
        name: str | None = None,
        code: str | None = None,
        categories: list[str] | None = None,
        **kwargs,
    ) -> Department:
        nonlocal _counter
        _counter += 1
        if code is None:
            code = f"DEPT{_counter}"
        if name is None:
            name = f"Department {code}"
        return Department.objects.create(
            name=name,
            code=code,
            categories=categories if categories is not None else ["water"],
            **kwargs,
        )

    return _factory


@pytest.fixture()
def create_user(db):
    """
    Factory fixture that creates a user with sensible defaults.

    Usage::

        def test_something(create_user):
            citizen = create_user()
            officer = create_user(role="officer", department=water)
            blocked = create_user(status="suspended")
    """
    from accounts.models import User

    _counter = 0

    def _factory(
        *,
        email: str | None = None,
        password: str = "TestPass123!",
        name: str | None = None,
        role: str = "citizen",
        department=None,
        **kwargs,
    ) -> User:
        nonlocal _counter
        _counter += 1
        if email is None:
            email = f"{role}{_counter}@test.local"
        if name is None:
            name = f"Test {role.title()} {_counter}"

        return User.objects.create_user(
            email=email,
            password=password,
            name=name,
            role=role,
            department=department,
            **kwargs,
        )

    return _factory


@pytest.fixture()
def auth_header():
    """
    Returns a helper that builds an ``Authorization`` header dict with a
    valid JWT access token for an existing user.

    Usage::

        def test_protected(create_user, auth_header, api_client):
            user = create_user(role="admin")
            api_client.credentials(HTTP_AUTHORIZATION=auth_header(user)["Authorization"])
            resp = api_client.get("/api/core/dashboard/")
            assert resp.status_code == 200

    The returned dict looks like::

        {"Authorization": "Bearer eyJ..."}
    """
    from rest_framework_simplejwt.tokens import AccessToken

    def _make(user) -> dict[str, str]:
        token = AccessToken.for_user(user)
        return {"Authorization": f"Bearer {token}"}

    return _make


@pytest.fixture()
def client_for(auth_header):
    """Return a fresh ``APIClient`` authenticated as the given user."""

    def _make(user) -> APIClient:
        client = APIClient()
        client.credentials(HTTP_AUTHORIZATION=auth_header(user)["Authorization"])
        return client

    return _make
