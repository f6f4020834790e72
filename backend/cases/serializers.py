"""
Cases app serializers.

Contains all Request and Response serializers for the Cases API.
Serializers handle field definitions, read/write constraints, and field-level
validation only.  **No business logic or lifecycle transitions live
here**; those belong in ``services.py``.

Structure
---------
1. Filter / query-param serializers
2. Case read serializers (list, detail)
3. Case write serializers (create, update)
4. Lifecycle action serializers (status, assignment, handover)
5. Sub-resource serializers (comments, documents, statistics)
"""

from __future__ import annotations

from rest_framework import serializers

from .models import Case, CaseComment, CaseDocument, CaseSeverity, CaseStatus


# ═══════════════════════════════════════════════════════════════════
#  1. Filter / Query-Parameter Serializers
# ═══════════════════════════════════════════════════════════════════


class CaseFilterSerializer(serializers.Serializer):
    """
    Validates query-parameter filters for ``GET /api/cases/``.

    All fields are optional.  The view passes the validated dict to
    ``CaseLifecycleService.list_all``.
    """

    status = serializers.ChoiceField(
        choices=CaseStatus.choices,
        required=False,
        help_text="Filter by case status. Options: " + ", ".join(CaseStatus.values) + ".",
    )
    is_approved = serializers.BooleanField(required=False, allow_null=True, default=None)
    assigned_officer = serializers.CharField(
        required=False,
        max_length=20,
        help_text="Police ID of the assigned officer.",
    )
    category = serializers.CharField(required=False, max_length=100)


class CaseSearchSerializer(serializers.Serializer):
    """``GET /api/cases/search/?keyword=...``"""

    keyword = serializers.CharField(required=False, allow_blank=True, default="")


# ═══════════════════════════════════════════════════════════════════
#  2. Case Read Serializers
# ═══════════════════════════════════════════════════════════════════


class CaseCommentSerializer(serializers.ModelSerializer):
    class Meta:
        model = CaseComment
        fields = ["id", "text", "author_id", "is_system", "created_at"]
        read_only_fields = fields


class CaseDocumentSerializer(serializers.ModelSerializer):
    class Meta:
        model = CaseDocument
        fields = ["id", "file_name", "file_url", "uploaded_by", "uploaded_at"]
        read_only_fields = fields


class CaseListSerializer(serializers.ModelSerializer):
    """Compact representation for list endpoints."""

    created_by = serializers.CharField(source="created_by.police_id", read_only=True, default=None)

    class Meta:
        model = Case
        fields = [
            "id",
            "case_number",
            "title",
            "category",
            "severity",
            "status",
            "is_approved",
            "is_closed",
            "is_archived",
            "assigned_officer_id",
            "created_by",
            "reported_at",
        ]
        read_only_fields = fields


class CaseDetailSerializer(serializers.ModelSerializer):
    """
    Full case aggregate: the case plus its comments and documents.
    """

    created_by = serializers.CharField(source="created_by.police_id", read_only=True, default=None)
    comments = CaseCommentSerializer(many=True, read_only=True)
    documents = CaseDocumentSerializer(many=True, read_only=True)

    class Meta:
        model = Case
        fields = [
            "id",
            "case_number",
            "title",
            "description",
            "category",
            "severity",
            "status",
            "is_approved",
            "is_closed",
            "is_archived",
            "assigned_officer_id",
            "previous_officer_id",
            "created_by",
            "reported_at",
            "resolved_at",
            "created_at",
            "updated_at",
            "comments",
            "documents",
        ]
        read_only_fields = fields


# ═══════════════════════════════════════════════════════════════════
#  3. Case Write Serializers
# ═══════════════════════════════════════════════════════════════════


class CaseCreateSerializer(serializers.Serializer):
    """
    ``POST /api/cases/``

    ``status`` is validated by the service so that an unknown value is
    reported with the same message as ``PATCH /status/``.
    """

    title = serializers.CharField(max_length=255)
    description = serializers.CharField(required=False, allow_blank=True, default="")
    category = serializers.CharField(required=False, allow_blank=True, max_length=100, default="")
    severity = serializers.CharField(
        required=False,
        max_length=20,
        default=CaseSeverity.NORMAL,
        help_text="One of " + ", ".join(CaseSeverity.values) + " (free text accepted).",
    )
    case_number = serializers.CharField(required=False, allow_blank=True, max_length=50, default="")
    status = serializers.CharField(required=False, allow_blank=True, max_length=20, default="")
    assigned_officer_id = serializers.CharField(
        required=False,
        allow_blank=True,
        max_length=20,
        default="",
        help_text="Police ID (or user ID) of the officer; defaults to the reporter.",
    )


class CaseUpdateSerializer(serializers.Serializer):
    """``PATCH /api/cases/{id}/``: descriptive fields only."""

    title = serializers.CharField(required=False, max_length=255)
    description = serializers.CharField(required=False, allow_blank=True)
    category = serializers.CharField(required=False, allow_blank=True, max_length=100)
    severity = serializers.CharField(required=False, max_length=20)
    case_number = serializers.CharField(required=False, allow_blank=True, max_length=50)


# ═══════════════════════════════════════════════════════════════════
#  4. Lifecycle Action Serializers
# ═══════════════════════════════════════════════════════════════════


class CaseStatusSerializer(serializers.Serializer):
    status = serializers.CharField(max_length=20)


class AssignOfficerSerializer(serializers.Serializer):
    officer_id = serializers.CharField(
        max_length=20,
        help_text="Police ID (or numeric user ID) of the target officer.",
    )


class HandoverSerializer(serializers.Serializer):
    new_officer_id = serializers.CharField(
        max_length=20,
        help_text="Police ID (or numeric user ID) of the officer taking over.",
    )


class AssignmentChangeSerializer(serializers.Serializer):
    """Response for the assign and handover actions."""

    kind = serializers.CharField(source="kind.value")
    from_officer_id = serializers.CharField()
    to_officer_id = serializers.CharField()
    previous_officer_id = serializers.CharField(allow_null=True)
    audit_comment = CaseCommentSerializer(allow_null=True)
    case = CaseListSerializer()


# ═══════════════════════════════════════════════════════════════════
#  5. Sub-resource Serializers
# ═══════════════════════════════════════════════════════════════════


class CaseCommentCreateSerializer(serializers.Serializer):
    # Blank text is rejected by the service.
    text = serializers.CharField(allow_blank=True, trim_whitespace=False)


class CaseDocumentUploadSerializer(serializers.Serializer):
    file = serializers.FileField()


class CaseStatisticsSerializer(serializers.Serializer):
    by_status = serializers.DictField(child=serializers.IntegerField())
    unrecognised = serializers.IntegerField()
    approved = serializers.IntegerField()
    archived = serializers.IntegerField()
    total = serializers.IntegerField()
