"""
Service-level tests for ``CaseLifecycleService``.

Covers:
  - creation defaults, case numbers, auto-approval and officer resolution
  - approval and permission checks
  - status validation and the closed / resolved bookkeeping
  - direct assignment versus audited handover
  - comments and search
  - statistics totals
"""

from __future__ import annotations

import re
from unittest import mock

import pytest

from accounts.identity import IdentityLookup
from accounts.models import User
from cases.models import Case, CaseComment, CaseStatus
from cases.services import AssignmentKind, CaseLifecycleService
from core.constants import SYSTEM_AUTHOR_ID, UNASSIGNED_OFFICER_ID
from core.domain.exceptions import (
    InvalidTransition,
    NotFound,
    PermissionDenied,
    ValidationFailure,
)


@pytest.fixture()
def officer(create_user):
    return create_user(police_id="P1", role="Officer")


@pytest.fixture()
def second_officer(create_user):
    return create_user(police_id="P2", role="Officer")


@pytest.fixture()
def supervisor(create_user):
    return create_user(police_id="S1", role="Supervisor")


@pytest.fixture()
def admin(create_user):
    return create_user(police_id="A1", role="Admin")


@pytest.fixture()
def case(officer):
    return CaseLifecycleService.create(
        {"title": "Burglary on 5th Street", "description": "Back door forced open."},
        officer,
    ).unwrap()


def _comments(case_obj):
    return list(CaseComment.objects.filter(case=case_obj).order_by("created_at", "id"))


# ── Creation ─────────────────────────────────────────────────────────


@pytest.mark.django_db
class TestCreate:

    def test_defaults(self, officer):
        outcome = CaseLifecycleService.create({"title": "Stolen bicycle"}, officer)
        assert outcome.ok, outcome.reason
        case = outcome.value

        assert case.status == CaseStatus.PENDING
        assert case.created_by == officer
        assert case.assigned_officer_id == "P1"
        assert case.previous_officer_id is None
        assert case.is_approved is False
        assert case.reported_at is not None
        assert re.fullmatch(rf"CR-{case.reported_at:%Y}-{case.pk:05d}", case.case_number)

    def test_supplied_case_number_is_kept(self, officer):
        case = CaseLifecycleService.create(
            {"title": "Fraud", "case_number": "FR-77"}, officer
        ).unwrap()
        assert case.case_number == "FR-77"

    def test_admin_cases_are_auto_approved(self, admin):
        case = CaseLifecycleService.create({"title": "Armed robbery"}, admin).unwrap()
        assert case.is_approved is True

    def test_assigned_officer_resolved_by_police_id(self, officer, second_officer):
        outcome = CaseLifecycleService.create(
            {"title": "Vandalism", "assigned_officer_id": "P2"}, officer
        )
        assert outcome.value.assigned_officer_id == "P2"
        assert [e.recipient_id for e in outcome.events] == [second_officer.pk]

    def test_assigned_officer_resolved_by_user_id(self, officer, second_officer):
        case = CaseLifecycleService.create(
            {"title": "Vandalism", "assigned_officer_id": str(second_officer.pk)}, officer
        ).unwrap()
        assert case.assigned_officer_id == "P2"

    def test_unknown_assigned_officer_rejected(self, officer):
        outcome = CaseLifecycleService.create(
            {"title": "Vandalism", "assigned_officer_id": "NOPE"}, officer
        )
        assert not outcome.ok
        assert isinstance(outcome.error, NotFound)
        assert not Case.objects.exists()

    def test_unknown_status_rejected(self, officer):
        outcome = CaseLifecycleService.create({"title": "X", "status": "Reopened"}, officer)
        assert isinstance(outcome.error, ValidationFailure)
        assert not Case.objects.exists()

    def test_blank_title_rejected(self, officer):
        outcome = CaseLifecycleService.create({"title": "   "}, officer)
        assert isinstance(outcome.error, ValidationFailure)


# ── Approval ─────────────────────────────────────────────────────────


@pytest.mark.django_db
class TestApprove:

    def test_supervisor_approves_and_creator_is_notified(self, case, supervisor, officer):
        outcome = CaseLifecycleService.approve(case.pk, supervisor)
        assert outcome.ok, outcome.reason
        case.refresh_from_db()
        assert case.is_approved is True
        assert [e.recipient_id for e in outcome.events] == [officer.pk]
        assert outcome.events[0].related_case_id == case.pk

    def test_officer_cannot_approve(self, case, officer):
        outcome = CaseLifecycleService.approve(case.pk, officer)
        assert isinstance(outcome.error, PermissionDenied)
        case.refresh_from_db()
        assert case.is_approved is False

    def test_missing_case(self, supervisor):
        outcome = CaseLifecycleService.approve(999999, supervisor)
        assert isinstance(outcome.error, NotFound)
        assert "999999" in outcome.reason


# ── Status ───────────────────────────────────────────────────────────


@pytest.mark.django_db
class TestUpdateStatus:

    def test_unknown_status_leaves_case_untouched(self, case, officer):
        outcome = CaseLifecycleService.update_status(case.pk, "Archived", officer)
        assert isinstance(outcome.error, ValidationFailure)
        case.refresh_from_db()
        assert case.status == CaseStatus.PENDING

    def test_closing_sets_flag_and_resolved_at(self, case, officer):
        case = CaseLifecycleService.update_status(case.pk, CaseStatus.CLOSED, officer).unwrap()
        assert case.status == CaseStatus.CLOSED
        assert case.is_closed is True
        assert case.resolved_at is not None

    def test_resolved_stamps_resolved_at_only(self, case, officer):
        case = CaseLifecycleService.update_status(case.pk, CaseStatus.RESOLVED, officer).unwrap()
        assert case.resolved_at is not None
        assert case.is_closed is False

    def test_any_order_is_accepted_and_reopening_clears(self, case, officer):
        CaseLifecycleService.update_status(case.pk, CaseStatus.CLOSED, officer).unwrap()
        case = CaseLifecycleService.update_status(case.pk, CaseStatus.PENDING, officer).unwrap()
        assert case.status == CaseStatus.PENDING
        assert case.is_closed is False
        assert case.resolved_at is None

    def test_assigned_officer_notified(self, case, officer, supervisor):
        outcome = CaseLifecycleService.update_status(case.pk, CaseStatus.OPEN, supervisor)
        assert [e.recipient_id for e in outcome.events] == [officer.pk]


# ── Direct assignment ────────────────────────────────────────────────


@pytest.mark.django_db
class TestAssignToOfficer:

    def test_direct_assignment_keeps_previous_and_adds_no_comment(self, case, supervisor, second_officer):
        outcome = CaseLifecycleService.assign_to_officer(case.pk, "P2", supervisor)
        assert outcome.ok, outcome.reason
        change = outcome.value

        assert change.kind is AssignmentKind.DIRECT
        assert change.from_officer_id == "P1"
        assert change.to_officer_id == "P2"
        assert change.audit_comment is None

        case.refresh_from_db()
        assert case.assigned_officer_id == "P2"
        assert case.previous_officer_id is None
        assert _comments(case) == []
        assert [e.recipient_id for e in outcome.events] == [second_officer.pk]

    def test_requires_assign_permission(self, case, officer, second_officer):
        outcome = CaseLifecycleService.assign_to_officer(case.pk, "P2", officer)
        assert isinstance(outcome.error, PermissionDenied)

    def test_unknown_officer(self, case, supervisor):
        outcome = CaseLifecycleService.assign_to_officer(case.pk, "ZZZ", supervisor)
        assert isinstance(outcome.error, NotFound)
        case.refresh_from_db()
        assert case.assigned_officer_id == "P1"


# ── Handover ─────────────────────────────────────────────────────────


@pytest.mark.django_db
class TestHandover:

    def test_handover_records_provenance_and_audit_comment(self, case, officer, second_officer):
        outcome = CaseLifecycleService.handover(case.pk, "P2", officer)
        assert outcome.ok, outcome.reason
        change = outcome.value
        assert change.kind is AssignmentKind.HANDOVER

        case.refresh_from_db()
        assert case.assigned_officer_id == "P2"
        assert case.previous_officer_id == "P1"

        comments = _comments(case)
        assert len(comments) == 1
        assert comments[0].text == "Case handed over from officer P1 to officer P2."
        assert comments[0].author_id == SYSTEM_AUTHOR_ID
        assert comments[0].is_system is True
        assert change.audit_comment == comments[0]

        assert {e.recipient_id for e in outcome.events} == {officer.pk, second_officer.pk}

    def test_handover_to_current_officer_is_rejected(self, case, officer):
        outcome = CaseLifecycleService.handover(case.pk, "P1", officer)
        assert isinstance(outcome.error, InvalidTransition)
        case.refresh_from_db()
        assert case.assigned_officer_id == "P1"
        assert case.previous_officer_id is None
        assert _comments(case) == []

    def test_handover_by_user_id_compares_police_ids(self, case, officer):
        outcome = CaseLifecycleService.handover(case.pk, str(officer.pk), officer)
        assert isinstance(outcome.error, InvalidTransition)

    def test_unknown_officer(self, case, officer):
        outcome = CaseLifecycleService.handover(case.pk, "GHOST", officer)
        assert isinstance(outcome.error, NotFound)
        assert _comments(case) == []

    def test_missing_case(self, officer, second_officer):
        outcome = CaseLifecycleService.handover(424242, "P2", officer)
        assert isinstance(outcome.error, NotFound)
        assert not CaseComment.objects.exists()

    def test_round_trip_keeps_full_audit_trail(self, officer, second_officer):
        case = CaseLifecycleService.create({"title": "Case 10"}, officer).unwrap()

        CaseLifecycleService.handover(case.pk, "P2", officer).unwrap()
        CaseLifecycleService.handover(case.pk, "P1", second_officer).unwrap()

        case.refresh_from_db()
        assert case.assigned_officer_id == "P1"
        assert case.previous_officer_id == "P2"
        assert [c.text for c in _comments(case)] == [
            "Case handed over from officer P1 to officer P2.",
            "Case handed over from officer P2 to officer P1.",
        ]

    @pytest.mark.parametrize("target", [UNASSIGNED_OFFICER_ID, SYSTEM_AUTHOR_ID])
    def test_sentinel_ids_are_not_officers(self, case, officer, supervisor, target):
        # A row holding the sentinel, e.g. created before the guard existed.
        User(police_id=target, email=f"{target.lower()}@police.test").save()

        assert IdentityLookup.resolve(target) is None
        assert isinstance(CaseLifecycleService.handover(case.pk, target, officer).error, NotFound)
        assert isinstance(
            CaseLifecycleService.assign_to_officer(case.pk, target, supervisor).error, NotFound
        )
        case.refresh_from_db()
        assert case.assigned_officer_id == "P1"
        assert _comments(case) == []

    def test_concurrent_handovers_last_writer_wins(self, case, officer, second_officer, create_user):
        # No row lock: two handovers working from the same stale read both
        # succeed, and the later save silently overwrites the earlier one.
        create_user(police_id="P3")
        stale_a = Case.objects.get(pk=case.pk)
        stale_b = Case.objects.get(pk=case.pk)

        with mock.patch("cases.services._load_case", side_effect=[stale_a, stale_b]):
            first = CaseLifecycleService.handover(case.pk, "P2", officer)
            second = CaseLifecycleService.handover(case.pk, "P3", officer)

        assert first.ok and second.ok
        case.refresh_from_db()
        assert case.assigned_officer_id == "P3"
        assert case.previous_officer_id == "P1"
        assert [c.text for c in _comments(case)] == [
            "Case handed over from officer P1 to officer P2.",
            "Case handed over from officer P1 to officer P3.",
        ]

    def test_direct_assignment_after_handover_keeps_previous(self, case, officer, supervisor, create_user):
        create_user(police_id="P3")
        CaseLifecycleService.handover(case.pk, "P3", officer).unwrap()
        CaseLifecycleService.assign_to_officer(case.pk, "P1", supervisor).unwrap()

        case.refresh_from_db()
        assert case.assigned_officer_id == "P1"
        assert case.previous_officer_id == "P1"
        assert len(_comments(case)) == 1


# ── Comments ─────────────────────────────────────────────────────────


@pytest.mark.django_db
class TestAddComment:

    def test_comment_returns_aggregate(self, case, second_officer, officer):
        outcome = CaseLifecycleService.add_comment(case.pk, second_officer, "Witness located.")
        assert outcome.ok, outcome.reason
        aggregate = outcome.value
        assert [c.text for c in aggregate.comments.all()] == ["Witness located."]
        assert aggregate.comments.get().author_id == "P2"
        assert [e.recipient_id for e in outcome.events] == [officer.pk]

    @pytest.mark.parametrize("text", ["", "   "])
    def test_blank_comment_rejected(self, case, officer, text):
        outcome = CaseLifecycleService.add_comment(case.pk, officer, text)
        assert isinstance(outcome.error, ValidationFailure)
        assert _comments(case) == []

    def test_missing_case(self, officer):
        outcome = CaseLifecycleService.add_comment(31337, officer, "Hello")
        assert isinstance(outcome.error, NotFound)
        assert not CaseComment.objects.exists()


# ── Details / delete ─────────────────────────────────────────────────


@pytest.mark.django_db
class TestDetailsAndDelete:

    def test_update_details_ignores_lifecycle_fields(self, case, officer):
        CaseLifecycleService.update_details(
            case.pk, {"title": "Burglary (updated)", "status": "Closed"}, officer
        ).unwrap()
        case.refresh_from_db()
        assert case.title == "Burglary (updated)"
        assert case.status == CaseStatus.PENDING

    def test_officer_cannot_delete(self, case, officer):
        outcome = CaseLifecycleService.delete(case.pk, officer)
        assert isinstance(outcome.error, PermissionDenied)
        assert Case.objects.filter(pk=case.pk).exists()

    def test_admin_delete_cascades(self, case, officer, admin):
        CaseLifecycleService.add_comment(case.pk, officer, "note").unwrap()
        CaseLifecycleService.delete(case.pk, admin).unwrap()
        assert not Case.objects.exists()
        assert not CaseComment.objects.exists()


# ── Queries ──────────────────────────────────────────────────────────


@pytest.mark.django_db
class TestQueries:

    def test_search_matches_title_or_description(self, officer):
        CaseLifecycleService.create({"title": "Stolen car", "description": "Red sedan"}, officer)
        CaseLifecycleService.create({"title": "Noise complaint", "description": "car alarm"}, officer)
        CaseLifecycleService.create({"title": "Lost dog"}, officer)

        found = CaseLifecycleService.search("car").unwrap()
        assert {c.title for c in found} == {"Stolen car", "Noise complaint"}

    @pytest.mark.parametrize("keyword", ["", "  ", None])
    def test_search_requires_keyword(self, keyword):
        outcome = CaseLifecycleService.search(keyword)
        assert isinstance(outcome.error, ValidationFailure)

    def test_list_for_user_covers_created_and_assigned(self, officer, second_officer, supervisor):
        mine = CaseLifecycleService.create({"title": "mine"}, officer).unwrap()
        given = CaseLifecycleService.create(
            {"title": "given", "assigned_officer_id": "P1"}, second_officer
        ).unwrap()
        CaseLifecycleService.create({"title": "other"}, second_officer).unwrap()

        assert set(CaseLifecycleService.list_for_user(officer)) == {mine, given}

    def test_list_all_filters_by_status(self, case, officer):
        other = CaseLifecycleService.create({"title": "open one", "status": "Open"}, officer).unwrap()
        assert list(CaseLifecycleService.list_all({"status": "Open"})) == [other]

    def test_get_aggregate_missing(self):
        assert isinstance(CaseLifecycleService.get_aggregate(12345).error, NotFound)
        assert isinstance(CaseLifecycleService.get_aggregate("abc").error, NotFound)


@pytest.mark.django_db
class TestStatistics:

    def test_totals_include_unrecognised_statuses(self, officer, supervisor, admin):
        CaseLifecycleService.create({"title": "a"}, officer).unwrap()
        opened = CaseLifecycleService.create({"title": "b", "status": "Open"}, officer).unwrap()
        CaseLifecycleService.create({"title": "c"}, admin).unwrap()
        stale = CaseLifecycleService.create({"title": "d"}, officer).unwrap()
        Case.objects.filter(pk=stale.pk).update(status="Legacy", is_archived=True)
        CaseLifecycleService.update_status(opened.pk, "Closed", officer).unwrap()

        stats = CaseLifecycleService.statistics(supervisor).unwrap()

        assert stats["by_status"] == {
            "Pending": 2,
            "Open": 0,
            "Investigating": 0,
            "Closed": 1,
            "Resolved": 0,
        }
        assert stats["unrecognised"] == 1
        assert stats["approved"] == 1
        assert stats["archived"] == 1
        assert stats["total"] == 4
        assert stats["total"] == sum(stats["by_status"].values()) + stats["unrecognised"]

    def test_officer_cannot_view_statistics(self, officer):
        assert isinstance(CaseLifecycleService.statistics(officer).error, PermissionDenied)
