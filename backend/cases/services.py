"""
Cases app Service Layer.

This module is the **single source of truth** for all business logic
in the ``cases`` app.  Views must remain thin: validate input via
serializers, call a service method, hand the returned notification
events to ``core.domain.notifications.settle`` and return the result
wrapped in a DRF ``Response``.

Architecture
------------
- ``CaseLifecycleService`` — the only code that mutates a case's
  status, approval and assignment fields or appends audit comments.
- ``AssignmentChange``     — result of the two assignment paths.

Assignment paths
----------------
Two distinct operations write ``assigned_officer_id``:

  DIRECT    ``assign_to_officer``  overwrites the officer; never touches
            ``previous_officer_id``; no audit comment.
  HANDOVER  ``handover``           records ``previous_officer_id``,
            appends exactly one system comment
            "Case handed over from officer X to officer Y.", rejects
            handing a case to its current officer.

Status model
------------
``status`` must be one of ``CaseStatus``; unknown values are rejected.
The intended flow (Pending → Open → Investigating → Closed/Resolved) is
*not* enforced: any listed status may follow any other.

Every operation takes the acting user explicitly, runs as one
``transaction.atomic`` unit of work and returns an ``Outcome``.  Handovers
take no row lock: two concurrent handovers of the same case race and the
last save wins.

Permission constants used here (from ``core.permissions_constants.CasesPerms``):
  - ADD_CASE / CHANGE_CASE / DELETE_CASE   → create / edit / remove
  - ADD_CASECOMMENT / ADD_CASEDOCUMENT     → comments / documents
  - CAN_APPROVE_CASE                       → Admin, Supervisor
  - CAN_AUTO_APPROVE_CASE                  → Admin
  - CAN_ASSIGN_CASE                        → Admin, Supervisor
  - CAN_VIEW_STATISTICS                    → Admin, Supervisor
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from django.db import DatabaseError, transaction
from django.db.models import Count, Prefetch, Q, QuerySet
from django.utils import timezone

from accounts.identity import IdentityLookup
from core.constants import SYSTEM_AUTHOR_ID
from core.domain.access import require_permission
from core.domain.exceptions import (
    InvalidTransition,
    NotFound,
    PersistenceFailure,
    ValidationFailure,
)
from core.domain.notifications import NotificationEvent
from core.domain.results import Outcome, returns_outcome
from core.domain.transactions import get_or_not_found
from core.permissions_constants import CasesPerms

from .models import TERMINAL_STATUSES, Case, CaseComment, CaseDocument, CaseStatus
from .storage import DocumentStorage

if TYPE_CHECKING:
    from accounts.models import User

logger = logging.getLogger(__name__)

# Descriptive fields editable through ``update_details``.
DETAIL_FIELDS = ("title", "description", "category", "severity", "case_number")


class AssignmentKind(str, enum.Enum):
    DIRECT = "direct"
    HANDOVER = "handover"


@dataclass(frozen=True)
class AssignmentChange:
    """
    Result of ``assign_to_officer`` (DIRECT) or ``handover`` (HANDOVER).

    ``previous_officer_id`` is the value of that field after the change
    (unchanged by a DIRECT assignment); ``audit_comment`` is only set
    for handovers.
    """

    kind: AssignmentKind
    case: Case
    from_officer_id: str
    to_officer_id: str
    previous_officer_id: str | None
    audit_comment: CaseComment | None = None


def handover_comment_text(from_officer_id: str, to_officer_id: str) -> str:
    return f"Case handed over from officer {from_officer_id} to officer {to_officer_id}."


# ═══════════════════════════════════════════════════════════════════
#  Internal helpers
# ═══════════════════════════════════════════════════════════════════


def _aggregate_queryset() -> QuerySet[Case]:
    return Case.objects.select_related("created_by").prefetch_related(
        Prefetch("comments", queryset=CaseComment.objects.order_by("created_at", "id")),
        Prefetch("documents", queryset=CaseDocument.objects.order_by("uploaded_at", "id")),
    )


def _load_case(case_id: Any) -> Case:
    return get_or_not_found(Case, case_id, label="Case")


def _load_aggregate(case_id: Any) -> Case:
    return get_or_not_found(Case, case_id, label="Case", queryset=_aggregate_queryset())


def _resolve_officer(identifier: Any) -> User:
    """Resolve an assignment target or raise."""
    officer = IdentityLookup.resolve(identifier)
    if officer is None:
        raise NotFound(f"Officer '{identifier}' not found.")
    if not (officer.police_id or "").strip():
        raise InvalidTransition(f"Officer '{identifier}' has no police ID and cannot be assigned.")
    return officer


def _notify_officer(
    police_id: str | None,
    title: str,
    message: str,
    *,
    case: Case,
    actor: User,
) -> list[NotificationEvent]:
    """Event for the officer owning ``police_id``, if that officer exists."""
    officer = IdentityLookup.find_by_police_id(police_id)
    if officer is None:
        return []
    return [NotificationEvent.case_event(officer, title, message, case=case, actor=actor)]


def _check_status(value: Any) -> str:
    if value not in CaseStatus.values:
        raise ValidationFailure(
            f"'{value}' is not a valid case status. "
            f"Expected one of: {', '.join(CaseStatus.values)}."
        )
    return value


# ═══════════════════════════════════════════════════════════════════
#  Case Lifecycle Service
# ═══════════════════════════════════════════════════════════════════


class CaseLifecycleService:
    """
    Validates and applies every case transition: creation, approval,
    status change, direct assignment, handover, comments and documents.
    """

    # ── Creation / editing ──────────────────────────────────────────

    @staticmethod
    @returns_outcome
    @transaction.atomic
    def create(draft: dict[str, Any], actor: User) -> Outcome[Case]:
        """
        Persist a new case.

        Parameters
        ----------
        draft : dict
            ``title`` (required), ``description``, ``category``,
            ``severity``, ``case_number``, ``status`` and
            ``assigned_officer_id``.
        actor : User
            The reporting officer; becomes ``created_by``.

        Implementation Contract
        -----------------------
        1. ``status`` defaults to Pending; a supplied value must be a
           ``CaseStatus``.
        2. ``assigned_officer_id`` defaults to the actor's police ID; a
           supplied identifier must resolve to an officer.
        3. Actors holding ``can_auto_approve_case`` create approved cases.
        4. A blank ``case_number`` becomes ``CR-<year>-<id>``.
        5. The assigned officer (when not the actor) is notified.
        """
        require_permission(actor, CasesPerms.full(CasesPerms.ADD_CASE))

        data = {k: v for k, v in draft.items() if v is not None}
        title = (data.get("title") or "").strip()
        if not title:
            raise ValidationFailure("Case title is required.")

        status = _check_status(data.get("status") or CaseStatus.PENDING)

        assignee_ref = data.get("assigned_officer_id")
        if assignee_ref not in (None, ""):
            assignee_id = _resolve_officer(assignee_ref).police_id
        else:
            assignee_id = actor.police_id

        now = timezone.now()
        case = Case.objects.create(
            title=title,
            description=data.get("description", ""),
            category=data.get("category", ""),
            severity=data.get("severity") or Case._meta.get_field("severity").default,
            case_number=(data.get("case_number") or "").strip(),
            status=status,
            assigned_officer_id=assignee_id,
            created_by=actor,
            reported_at=now,
            is_approved=actor.has_perm(CasesPerms.full(CasesPerms.CAN_AUTO_APPROVE_CASE)),
            is_closed=status == CaseStatus.CLOSED,
            resolved_at=now if status in TERMINAL_STATUSES else None,
        )
        if not case.case_number:
            case.case_number = f"CR-{now:%Y}-{case.pk:05d}"
            case.save(update_fields=["case_number"])

        logger.info(
            "Case #%d created by %s (assigned to %s, approved=%s)",
            case.pk,
            actor.police_id,
            assignee_id,
            case.is_approved,
        )

        events = []
        if assignee_id != actor.police_id:
            events = _notify_officer(
                assignee_id,
                "New Case Assigned",
                f"Case {case.case_number} '{case.title}' has been assigned to you.",
                case=case,
                actor=actor,
            )
        return Outcome.success(case, events=events)

    @staticmethod
    @returns_outcome
    @transaction.atomic
    def update_details(case_id: int, data: dict[str, Any], actor: User) -> Outcome[Case]:
        """Edit the descriptive fields only; lifecycle fields are untouched."""
        require_permission(actor, CasesPerms.full(CasesPerms.CHANGE_CASE))
        case = _load_case(case_id)

        update_fields = []
        for field in DETAIL_FIELDS:
            if field in data and data[field] is not None:
                setattr(case, field, data[field])
                update_fields.append(field)
        if "title" in update_fields and not case.title.strip():
            raise ValidationFailure("Case title is required.")

        if update_fields:
            case.save(update_fields=update_fields + ["updated_at"])
            logger.info("Case #%d details updated by %s", case.pk, actor.police_id)
        return case

    @staticmethod
    @returns_outcome
    @transaction.atomic
    def delete(case_id: int, actor: User) -> Outcome[None]:
        """Remove a case together with its comments and documents."""
        require_permission(actor, CasesPerms.full(CasesPerms.DELETE_CASE))
        case = _load_case(case_id)
        pk = case.pk
        case.delete()
        logger.info("Case #%d deleted by %s", pk, actor.police_id)
        return None

    # ── Lifecycle transitions ───────────────────────────────────────

    @staticmethod
    @returns_outcome
    @transaction.atomic
    def approve(case_id: int, actor: User) -> Outcome[Case]:
        """
        Set ``is_approved``.  There is no reverse operation; approving an
        approved case succeeds without change.
        """
        require_permission(actor, CasesPerms.full(CasesPerms.CAN_APPROVE_CASE))
        case = _load_case(case_id)
        if case.is_approved:
            return case

        case.is_approved = True
        case.save(update_fields=["is_approved", "updated_at"])
        logger.info("Case #%d approved by %s", case.pk, actor.police_id)

        events = []
        if case.created_by is not None:
            events.append(
                NotificationEvent.case_event(
                    case.created_by,
                    "Case Approved",
                    f"Case {case.case_number} '{case.title}' has been approved.",
                    case=case,
                    actor=actor,
                )
            )
        return Outcome.success(case, events=events)

    @staticmethod
    @returns_outcome
    @transaction.atomic
    def update_status(case_id: int, new_status: str, actor: User) -> Outcome[Case]:
        """
        Overwrite ``status`` with any ``CaseStatus`` value.

        Implementation Contract
        -----------------------
        1. Reject values outside ``CaseStatus`` (``ValidationFailure``)
           before touching the store.
        2. No transition graph: any listed status may follow any other.
        3. Entering Closed sets ``is_closed``; entering Closed or
           Resolved stamps ``resolved_at``; moving back to Pending,
           Open or Investigating clears both.
        4. The assigned officer is notified.
        """
        require_permission(actor, CasesPerms.full(CasesPerms.CHANGE_CASE))
        status = _check_status(new_status)
        case = _load_case(case_id)
        old_status = case.status

        case.status = status
        if status in TERMINAL_STATUSES:
            if old_status not in TERMINAL_STATUSES or case.resolved_at is None:
                case.resolved_at = timezone.now()
            if status == CaseStatus.CLOSED:
                case.is_closed = True
        else:
            case.is_closed = False
            case.resolved_at = None

        case.save(update_fields=["status", "is_closed", "resolved_at", "updated_at"])
        logger.info(
            "Case #%d status %s -> %s by %s", case.pk, old_status, status, actor.police_id
        )

        events = _notify_officer(
            case.assigned_officer_id,
            "Case Status Updated",
            f"Case {case.case_number} status changed from {old_status} to {status}.",
            case=case,
            actor=actor,
        )
        return Outcome.success(case, events=events)

    @staticmethod
    @returns_outcome
    @transaction.atomic
    def assign_to_officer(case_id: int, officer_id: Any, actor: User) -> Outcome[AssignmentChange]:
        """
        DIRECT assignment: overwrite ``assigned_officer_id``.

        ``previous_officer_id`` is never written and no audit comment is
        added; use ``handover`` for an audited transfer.
        """
        require_permission(actor, CasesPerms.full(CasesPerms.CAN_ASSIGN_CASE))
        case = _load_case(case_id)
        officer = _resolve_officer(officer_id)

        from_officer = case.assigned_officer_id
        case.assigned_officer_id = officer.police_id
        case.save(update_fields=["assigned_officer_id", "updated_at"])
        logger.info(
            "Case #%d assigned to %s by %s", case.pk, officer.police_id, actor.police_id
        )

        change = AssignmentChange(
            kind=AssignmentKind.DIRECT,
            case=case,
            from_officer_id=from_officer,
            to_officer_id=officer.police_id,
            previous_officer_id=case.previous_officer_id,
        )
        events = [
            NotificationEvent.case_event(
                officer,
                "Case Assigned",
                f"Case {case.case_number} '{case.title}' has been assigned to you.",
                case=case,
                actor=actor,
            )
        ]
        return Outcome.success(change, events=events)

    @staticmethod
    @returns_outcome
    @transaction.atomic
    def handover(case_id: int, new_officer_id: Any, actor: User) -> Outcome[AssignmentChange]:
        """
        HANDOVER: audited transfer of case ownership.

        Implementation Contract
        -----------------------
        1. Load the case (``NotFound`` if absent).
        2. Resolve the new officer (``NotFound`` if unknown,
           ``InvalidTransition`` if the officer has a blank police ID).
        3. Reject handing the case to its current officer
           (``InvalidTransition``); nothing is written.
        4. ``previous_officer_id`` ← current officer;
           ``assigned_officer_id`` ← new officer.
        5. Append exactly one system comment naming both officers.
        6. Case and comment are saved in the same transaction.
        """
        require_permission(actor, CasesPerms.full(CasesPerms.CHANGE_CASE))
        case = _load_case(case_id)
        officer = _resolve_officer(new_officer_id)

        from_officer = case.assigned_officer_id
        to_officer = officer.police_id
        if to_officer == from_officer:
            raise InvalidTransition(
                current=from_officer,
                target=to_officer,
                reason="Case is already assigned to this officer.",
            )

        # Case row and audit comment commit together under the atomic block.
        case.previous_officer_id = from_officer
        case.assigned_officer_id = to_officer
        case.save(update_fields=["previous_officer_id", "assigned_officer_id", "updated_at"])
        comment = CaseComment.objects.create(
            case=case,
            text=handover_comment_text(from_officer, to_officer),
            author_id=SYSTEM_AUTHOR_ID,
            is_system=True,
        )
        logger.info(
            "Case #%d handed over from %s to %s by %s",
            case.pk,
            from_officer,
            to_officer,
            actor.police_id,
        )

        change = AssignmentChange(
            kind=AssignmentKind.HANDOVER,
            case=case,
            from_officer_id=from_officer,
            to_officer_id=to_officer,
            previous_officer_id=from_officer,
            audit_comment=comment,
        )
        events = [
            NotificationEvent.case_event(
                officer,
                "Case Handed Over",
                f"Case {case.case_number} '{case.title}' has been handed over to you "
                f"from officer {from_officer}.",
                case=case,
                actor=actor,
            )
        ]
        events += _notify_officer(
            from_officer,
            "Case Handed Over",
            f"Case {case.case_number} '{case.title}' has been handed over to officer {to_officer}.",
            case=case,
            actor=actor,
        )
        return Outcome.success(change, events=events)

    # ── Comments / documents ────────────────────────────────────────

    @staticmethod
    @returns_outcome
    @transaction.atomic
    def add_comment(case_id: int, author: User, text: str) -> Outcome[Case]:
        """
        Append a user comment and return the refreshed aggregate (case
        with all comments and documents).
        """
        require_permission(author, CasesPerms.full(CasesPerms.ADD_CASECOMMENT))
        case = _load_case(case_id)
        if not text or not text.strip():
            raise ValidationFailure("Comment text cannot be empty.")

        CaseComment.objects.create(case=case, text=text.strip(), author_id=author.police_id)
        logger.info("Comment added to case #%d by %s", case.pk, author.police_id)

        events = []
        if case.assigned_officer_id != author.police_id:
            events = _notify_officer(
                case.assigned_officer_id,
                "New Case Comment",
                f"Officer {author.police_id} commented on case {case.case_number}.",
                case=case,
                actor=author,
            )
        return Outcome.success(_load_aggregate(case.pk), events=events)

    @staticmethod
    @returns_outcome
    @transaction.atomic
    def add_document(
        case_id: int,
        uploader: User,
        upload,
        *,
        storage: DocumentStorage | None = None,
    ) -> Outcome[CaseDocument]:
        """
        Upload the file, then record its metadata.

        Implementation Contract
        -----------------------
        1. The case must exist; nothing is uploaded otherwise.
        2. ``DocumentStorage.upload`` failures surface as ``UploadFailure``.
        3. If the metadata cannot be saved after a successful upload the
           stored file is left in place (logged as orphaned) and a
           ``PersistenceFailure`` is returned.
        """
        require_permission(uploader, CasesPerms.full(CasesPerms.ADD_CASEDOCUMENT))
        case = _load_case(case_id)
        storage = storage or DocumentStorage()

        url = storage.upload(upload)
        file_name = getattr(upload, "name", "") or "document"
        try:
            document = CaseLifecycleService._store_document(case, uploader, file_name, url)
        except DatabaseError:
            logger.exception(
                "Metadata for case #%d upload failed; orphaned file at %s", case.pk, url
            )
            raise PersistenceFailure(
                f"The document metadata could not be saved; the uploaded file at {url} is orphaned."
            )
        return Outcome.success(
            document,
            events=CaseLifecycleService._document_events(case, uploader, document),
        )

    @staticmethod
    @returns_outcome
    @transaction.atomic
    def record_document(case_id: int, uploader: User, file_name: str, file_url: str) -> Outcome[CaseDocument]:
        """Record metadata for a file that is already stored elsewhere."""
        require_permission(uploader, CasesPerms.full(CasesPerms.ADD_CASEDOCUMENT))
        case = _load_case(case_id)
        if not (file_name or "").strip() or not (file_url or "").strip():
            raise ValidationFailure("Both file name and file URL are required.")

        document = CaseLifecycleService._store_document(case, uploader, file_name, file_url)
        return Outcome.success(
            document,
            events=CaseLifecycleService._document_events(case, uploader, document),
        )

    @staticmethod
    def _store_document(case: Case, uploader: User, file_name: str, file_url: str) -> CaseDocument:
        with transaction.atomic():
            document = CaseDocument.objects.create(
                case=case,
                file_name=file_name,
                file_url=file_url,
                uploaded_by=uploader.police_id,
            )
        logger.info("Document %s attached to case #%d by %s", file_name, case.pk, uploader.police_id)
        return document

    @staticmethod
    def _document_events(case: Case, uploader: User, document: CaseDocument) -> list[NotificationEvent]:
        if case.assigned_officer_id == uploader.police_id:
            return []
        return _notify_officer(
            case.assigned_officer_id,
            "New Case Document",
            f"Officer {uploader.police_id} uploaded '{document.file_name}' to case {case.case_number}.",
            case=case,
            actor=uploader,
        )

    # ── Queries ─────────────────────────────────────────────────────

    @staticmethod
    @returns_outcome
    def get(case_id: int) -> Case:
        return _load_case(case_id)

    @staticmethod
    @returns_outcome
    def get_aggregate(case_id: int) -> Case:
        """Case together with its comments and documents."""
        return _load_aggregate(case_id)

    @staticmethod
    def list_all(filters: dict[str, Any] | None = None) -> QuerySet[Case]:
        """
        Every case, optionally narrowed by ``status``, ``is_approved``,
        ``assigned_officer`` (police ID) and ``category``.
        """
        qs = Case.objects.select_related("created_by").all()
        filters = filters or {}
        if filters.get("status"):
            qs = qs.filter(status=filters["status"])
        if filters.get("is_approved") is not None:
            qs = qs.filter(is_approved=filters["is_approved"])
        if filters.get("assigned_officer"):
            qs = qs.filter(assigned_officer_id=filters["assigned_officer"])
        if filters.get("category"):
            qs = qs.filter(category__iexact=filters["category"])
        return qs

    @staticmethod
    def list_for_user(user: User) -> QuerySet[Case]:
        """Cases the officer created or is currently assigned to."""
        return (
            Case.objects.select_related("created_by")
            .filter(Q(created_by=user) | Q(assigned_officer_id=user.police_id))
            .distinct()
        )

    @staticmethod
    @returns_outcome
    def search(keyword: str | None) -> list[Case]:
        """
        Substring match on title or description.  Case sensitivity
        follows the database collation; results are unranked.
        """
        if not keyword or not keyword.strip():
            raise ValidationFailure("Search keyword is required.")
        keyword = keyword.strip()
        return list(
            Case.objects.select_related("created_by").filter(
                Q(title__contains=keyword) | Q(description__contains=keyword)
            )
        )

    @staticmethod
    @returns_outcome
    def statistics(actor: User) -> dict[str, Any]:
        """
        Case counts.

        ``by_status`` has one bucket per ``CaseStatus`` value.  Rows whose
        stored status is outside the enum (written by imports or raw SQL)
        are counted in ``unrecognised`` so that
        ``total == sum(by_status.values()) + unrecognised`` always holds.
        """
        require_permission(actor, CasesPerms.full(CasesPerms.CAN_VIEW_STATISTICS))

        by_status = {status: 0 for status in CaseStatus.values}
        unrecognised = 0
        for row in Case.objects.order_by().values("status").annotate(n=Count("id")):
            if row["status"] in by_status:
                by_status[row["status"]] = row["n"]
            else:
                unrecognised += row["n"]

        flags = Case.objects.aggregate(
            total=Count("id"),
            approved=Count("id", filter=Q(is_approved=True)),
            archived=Count("id", filter=Q(is_archived=True)),
        )
        if unrecognised:
            logger.warning("%d case(s) carry an unrecognised status", unrecognised)
        return {
            "by_status": by_status,
            "unrecognised": unrecognised,
            "approved": flags["approved"],
            "archived": flags["archived"],
            "total": flags["total"],
        }
