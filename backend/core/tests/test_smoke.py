"""
Smoke tests — verify that Django boots, URL routing resolves, the API
schema renders and the core domain helpers behave.
"""

from __future__ import annotations

import pytest
from django.urls import resolve, reverse

from core.domain.exceptions import InvalidTransition, NotFound, ValidationFailure
from core.domain.results import Outcome, returns_outcome


# ════════════════════════════════════════════════════════════════════
#  URL Routing Smoke Tests
# ════════════════════════════════════════════════════════════════════

class TestURLRouting:
    """Ensure all top-level app URL namespaces resolve."""

    EXPECTED_URLS = [
        # (url_name, expected_path)
        ("accounts:login",                "/api/accounts/auth/login/"),
        ("accounts:me",                   "/api/accounts/me/"),
        ("accounts:user-list",            "/api/accounts/users/"),
        ("cases:case-list",               "/api/cases/"),
        ("cases:case-statistics",         "/api/cases/statistics/"),
        ("core:notification-list",        "/api/core/notifications/"),
        ("core:notification-unread-count", "/api/core/notifications/unread-count/"),
    ]

    @pytest.mark.parametrize("url_name,expected_path", EXPECTED_URLS)
    def test_url_reverses(self, url_name: str, expected_path: str):
        assert reverse(url_name) == expected_path

    @pytest.mark.parametrize("url_name,expected_path", EXPECTED_URLS)
    def test_path_resolves_to_view(self, url_name: str, expected_path: str):
        assert resolve(expected_path).func is not None


@pytest.mark.django_db
def test_schema_renders(api_client):
    resp = api_client.get(reverse("schema"))
    assert resp.status_code == 200


# ════════════════════════════════════════════════════════════════════
#  Outcome helpers
# ════════════════════════════════════════════════════════════════════

class TestOutcome:

    def test_domain_error_becomes_failure(self):
        @returns_outcome
        def boom():
            raise NotFound("Case with id 7 not found.")

        outcome = boom()
        assert not outcome.ok
        assert outcome.reason == "Case with id 7 not found."
        with pytest.raises(NotFound):
            outcome.unwrap()

    def test_plain_value_is_wrapped(self):
        outcome = returns_outcome(lambda: 42)()
        assert outcome.ok
        assert outcome.unwrap() == 42
        assert outcome.events == []

    def test_outcome_passes_through(self):
        original = Outcome.failure(ValidationFailure("Comment text cannot be empty."))
        assert returns_outcome(lambda: original)() is original

    def test_invalid_transition_message(self):
        exc = InvalidTransition(current="P1", target="P1", reason="Case is already assigned to this officer.")
        assert "from 'P1' to 'P1'" in exc.message
