"""
Root conftest.py — shared fixtures for the entire test suite.

Provides:
  - ``api_client`` fixture returning a DRF ``APIClient``.
  - ``roles`` fixture seeding Admin / Supervisor / Officer via ``setup_rbac``.
  - ``create_user`` factory fixture for creating test officers.
  - ``auth_header`` fixture for authenticated requests (JWT).
"""

from __future__ import annotations

from io import StringIO

import pytest
from django.core.management import call_command
from rest_framework.test import APIClient

DEFAULT_PASSCODE = "Str0ng!Pass99"


@pytest.fixture()
def api_client() -> APIClient:
    """Unauthenticated DRF test client."""
    return APIClient()


@pytest.fixture()
def roles(db) -> dict:
    """
    Seed the base roles exactly as production does and return them by
    name: ``{"Admin": <Role>, "Supervisor": <Role>, "Officer": <Role>}``.
    """
    from accounts.models import Role

    call_command("setup_rbac", stdout=StringIO())
    return {role.name: role for role in Role.objects.all()}


@pytest.fixture()
def create_user(db, roles):
    """
    Factory fixture that creates an officer with sensible defaults.

    Usage::

        def test_something(create_user):
            officer = create_user(police_id="P100")
            admin = create_user(police_id="A1", role="Admin")
    """
    from accounts.models import Role, User

    _counter = 0

    def _factory(
        *,
        police_id: str | None = None,
        password: str = DEFAULT_PASSCODE,
        email: str | None = None,
        role: str | Role | None = "Officer",
        is_active: bool = True,
        **kwargs,
    ) -> User:
        nonlocal _counter
        _counter += 1
        if police_id is None:
            police_id = f"P{_counter:03d}"
        if email is None:
            email = f"{police_id.lower()}@police.test"
        if isinstance(role, str):
            role = roles[role]

        kwargs.setdefault("first_name", "Test")
        kwargs.setdefault("last_name", police_id)
        return User.objects.create_user(
            police_id=police_id,
            email=email,
            password=password,
            role=role,
            is_active=is_active,
            **kwargs,
        )

    return _factory


@pytest.fixture()
def auth_header(create_user):
    """
    Returns a helper that creates an officer and returns an
    ``Authorization`` header dict with a valid JWT access token.

    Usage::

        def test_protected(auth_header, api_client):
            header = auth_header(police_id="P100", role="Supervisor")
            api_client.credentials(HTTP_AUTHORIZATION=header["Authorization"])
    """
    from rest_framework_simplejwt.tokens import AccessToken

    def _make(*, police_id: str | None = None, role="Officer", **user_kwargs) -> dict[str, str]:
        user = create_user(police_id=police_id, role=role, **user_kwargs)
        token = AccessToken.for_user(user)
        return {"Authorization": f"Bearer {token}"}

    return _make


@pytest.fixture()
def client_for(api_client):
    """Return ``api_client`` authenticated (JWT) as the given user."""
    from rest_framework_simplejwt.tokens import AccessToken

    def _as(user) -> APIClient:
        api_client.credentials(HTTP_AUTHORIZATION=f"Bearer {AccessToken.for_user(user)}")
        return api_client

    return _as
