"""
Cases app models.

A ``Case`` together with its ``CaseComment`` and ``CaseDocument`` rows
forms the case aggregate.  Ownership is recorded by police ID
(``assigned_officer_id`` / ``previous_officer_id``) rather than by
foreign key so that the assignment history survives officer deletion.
"""

from django.conf import settings
from django.db import models
from django.utils import timezone

from core.models import TimeStampedModel
from core.permissions_constants import CasesPerms


# ────────────────────────────────────────────────────────────────────
# Choice enumerations
# ────────────────────────────────────────────────────────────────────

class CaseStatus(models.TextChoices):
    """
    Closed set of lifecycle statuses.

    Intended flow: Pending → Open → Investigating → {Closed, Resolved}.
    The flow is not enforced; any listed value may be set at any time.
    """

    PENDING = "Pending", "Pending"
    OPEN = "Open", "Open"
    INVESTIGATING = "Investigating", "Investigating"
    CLOSED = "Closed", "Closed"
    RESOLVED = "Resolved", "Resolved"


# Statuses that stamp ``resolved_at``.
TERMINAL_STATUSES = frozenset({CaseStatus.CLOSED, CaseStatus.RESOLVED})


class CaseSeverity(models.TextChoices):
    """Suggested severities; free text is accepted as well."""

    LOW = "Low", "Low"
    NORMAL = "Normal", "Normal"
    HIGH = "High", "High"
    CRITICAL = "Critical", "Critical"


# ────────────────────────────────────────────────────────────────────
# Core model
# ────────────────────────────────────────────────────────────────────

class Case(TimeStampedModel):
    """
    Central entity of the system.

    ``is_approved``, ``is_closed`` and ``is_archived`` are flags layered
    on top of ``status``; only ``is_closed`` is kept in step with the
    status (see ``CaseLifecycleService.update_status``).
    """

    case_number = models.CharField(
        max_length=50,
        blank=True,
        default="",
        db_index=True,
        verbose_name="Case Number",
    )
    title = models.CharField(max_length=255, verbose_name="Title")
    description = models.TextField(blank=True, default="", verbose_name="Description")
    category = models.CharField(max_length=100, blank=True, default="", verbose_name="Category")
    severity = models.CharField(
        max_length=20,
        default=CaseSeverity.NORMAL,
        verbose_name="Severity",
    )
    status = models.CharField(
        max_length=20,
        choices=CaseStatus.choices,
        default=CaseStatus.PENDING,
        db_index=True,
        verbose_name="Status",
    )

    # ── Flags ────────────────────────────────────────────────────────
    is_approved = models.BooleanField(default=False, verbose_name="Approved")
    is_closed = models.BooleanField(default=False, verbose_name="Closed")
    is_archived = models.BooleanField(default=False, verbose_name="Archived")

    # ── Assignment ───────────────────────────────────────────────────
    assigned_officer_id = models.CharField(
        max_length=20,
        db_index=True,
        verbose_name="Assigned Officer (Police ID)",
    )
    previous_officer_id = models.CharField(
        max_length=20,
        null=True,
        blank=True,
        verbose_name="Previous Officer (Police ID)",
    )

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="created_cases",
        verbose_name="Created By",
    )

    # ── Temporal ─────────────────────────────────────────────────────
    reported_at = models.DateTimeField(
        default=timezone.now,
        editable=False,
        verbose_name="Reported At",
    )
    resolved_at = models.DateTimeField(null=True, blank=True, verbose_name="Resolved At")

    class Meta:
        verbose_name = "Case"
        verbose_name_plural = "Cases"
        ordering = ["-reported_at", "-id"]
        permissions = [
            (CasesPerms.CAN_APPROVE_CASE, "Can approve a reported case"),
            (CasesPerms.CAN_AUTO_APPROVE_CASE, "Cases created are approved immediately"),
            (CasesPerms.CAN_ASSIGN_CASE, "Can directly assign a case to an officer"),
            (CasesPerms.CAN_VIEW_STATISTICS, "Can view case statistics"),
        ]

    def __str__(self):
        return f"Case #{self.pk} — {self.title} [{self.status}]"


class CaseComment(models.Model):
    """
    Comment on a case.  System-authored comments (``is_system=True``)
    form the audit trail of handovers.
    """

    case = models.ForeignKey(
        Case,
        on_delete=models.CASCADE,
        related_name="comments",
        verbose_name="Case",
    )
    text = models.TextField(verbose_name="Text")
    author_id = models.CharField(
        max_length=20,
        verbose_name="Author (Police ID)",
    )
    is_system = models.BooleanField(default=False, verbose_name="System Comment")
    created_at = models.DateTimeField(default=timezone.now, verbose_name="Created At")

    class Meta:
        verbose_name = "Case Comment"
        verbose_name_plural = "Case Comments"
        ordering = ["created_at", "id"]

    def __str__(self):
        return f"Comment by {self.author_id} on Case #{self.case_id}"


class CaseDocument(models.Model):
    """Metadata of a file uploaded to external storage for a case."""

    case = models.ForeignKey(
        Case,
        on_delete=models.CASCADE,
        related_name="documents",
        verbose_name="Case",
    )
    file_name = models.CharField(max_length=255, verbose_name="File Name")
    file_url = models.CharField(max_length=1000, verbose_name="File URL")
    uploaded_by = models.CharField(max_length=20, verbose_name="Uploaded By (Police ID)")
    uploaded_at = models.DateTimeField(default=timezone.now, verbose_name="Uploaded At")

    class Meta:
        verbose_name = "Case Document"
        verbose_name_plural = "Case Documents"
        ordering = ["uploaded_at", "id"]

    def __str__(self):
        return f"{self.file_name} (Case #{self.case_id})"
