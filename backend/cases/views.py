"""
Cases app ViewSets.

Architecture: Views are intentionally thin.
Every view follows the strict three-step pattern:

    1. Parse / validate input via a serializer.
    2. Delegate all business logic to ``CaseLifecycleService``.
    3. ``settle`` the outcome (schedule its notifications, unwrap the
       value) and return a DRF ``Response``.

No database queries or lifecycle rules live here.

ViewSets
--------
- ``CaseViewSet`` — The single ViewSet for all case-related endpoints.
  Custom @action methods handle lifecycle, assignment and sub-resource
  operations so the URL structure stays clean and discoverable.
"""

from __future__ import annotations

import logging

from drf_spectacular.utils import (
    OpenApiParameter,
    OpenApiResponse,
    extend_schema,
)
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.parsers import FormParser, JSONParser, MultiPartParser
from rest_framework.permissions import IsAuthenticated
from rest_framework.request import Request
from rest_framework.response import Response

from core.domain.notifications import settle

from .serializers import (
    AssignmentChangeSerializer,
    AssignOfficerSerializer,
    CaseCommentCreateSerializer,
    CaseCreateSerializer,
    CaseDetailSerializer,
    CaseDocumentSerializer,
    CaseDocumentUploadSerializer,
    CaseFilterSerializer,
    CaseListSerializer,
    CaseSearchSerializer,
    CaseStatisticsSerializer,
    CaseStatusSerializer,
    CaseUpdateSerializer,
    HandoverSerializer,
)
from .services import CaseLifecycleService

logger = logging.getLogger(__name__)


class CaseViewSet(viewsets.ViewSet):
    """
    Central ViewSet for the cases app.

    Uses ``viewsets.ViewSet`` (not ``ModelViewSet``) so every action is
    explicitly defined, preventing accidental exposure of unintended
    CRUD operations.

    Permission Strategy
    -------------------
    The base permission is ``IsAuthenticated``.  Fine-grained permission
    checks are enforced exclusively inside the service layer, never in
    the view.
    """

    permission_classes = [IsAuthenticated]
    parser_classes = [JSONParser, FormParser, MultiPartParser]

    # ── Standard CRUD ────────────────────────────────────────────────

    @extend_schema(
        summary="List cases",
        parameters=[
            OpenApiParameter(name="status", type=str, location=OpenApiParameter.QUERY, description="Filter by case status."),
            OpenApiParameter(name="is_approved", type=bool, location=OpenApiParameter.QUERY, description="Filter by approval flag."),
            OpenApiParameter(name="assigned_officer", type=str, location=OpenApiParameter.QUERY, description="Police ID of the assigned officer."),
            OpenApiParameter(name="category", type=str, location=OpenApiParameter.QUERY, description="Case category (case-insensitive)."),
        ],
        responses={200: CaseListSerializer(many=True)},
        tags=["Cases"],
    )
    def list(self, request: Request) -> Response:
        filter_serializer = CaseFilterSerializer(data=request.query_params)
        filter_serializer.is_valid(raise_exception=True)
        qs = CaseLifecycleService.list_all(filter_serializer.validated_data)
        return Response(CaseListSerializer(qs, many=True).data, status=status.HTTP_200_OK)

    @extend_schema(
        summary="Report a case",
        description=(
            "Create a case.  The reporter becomes the assigned officer unless "
            "``assigned_officer_id`` names another officer.  Cases reported by "
            "an Admin are approved immediately."
        ),
        request=CaseCreateSerializer,
        responses={
            201: CaseDetailSerializer,
            400: OpenApiResponse(description="Validation error or unknown status."),
            403: OpenApiResponse(description="Missing cases.add_case permission."),
            404: OpenApiResponse(description="Assigned officer not found."),
        },
        tags=["Cases"],
    )
    def create(self, request: Request) -> Response:
        serializer = CaseCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        case = settle(CaseLifecycleService.create(serializer.validated_data, request.user))
        return Response(CaseDetailSerializer(case).data, status=status.HTTP_201_CREATED)

    @extend_schema(
        summary="Retrieve case",
        description="Full case aggregate including comments and documents.",
        responses={200: CaseDetailSerializer, 404: OpenApiResponse(description="Case not found.")},
        tags=["Cases"],
    )
    def retrieve(self, request: Request, pk: str = None) -> Response:
        case = settle(CaseLifecycleService.get_aggregate(pk))
        return Response(CaseDetailSerializer(case).data, status=status.HTTP_200_OK)

    @extend_schema(
        summary="Update case details",
        request=CaseUpdateSerializer,
        responses={200: CaseDetailSerializer},
        tags=["Cases"],
    )
    def partial_update(self, request: Request, pk: str = None) -> Response:
        serializer = CaseUpdateSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        settle(CaseLifecycleService.update_details(pk, serializer.validated_data, request.user))
        case = settle(CaseLifecycleService.get_aggregate(pk))
        return Response(CaseDetailSerializer(case).data, status=status.HTTP_200_OK)

    def update(self, request: Request, pk: str = None) -> Response:
        return self.partial_update(request, pk)

    @extend_schema(
        summary="Delete case",
        responses={204: None, 403: OpenApiResponse(description="Missing cases.delete_case.")},
        tags=["Cases"],
    )
    def destroy(self, request: Request, pk: str = None) -> Response:
        settle(CaseLifecycleService.delete(pk, request.user))
        return Response(status=status.HTTP_204_NO_CONTENT)

    # ── Collection @actions ───────────────────────────────────────────

    @action(detail=False, methods=["get"], url_path="mine")
    @extend_schema(
        summary="My cases",
        description="Cases the authenticated officer reported or is assigned to.",
        responses={200: CaseListSerializer(many=True)},
        tags=["Cases"],
    )
    def mine(self, request: Request) -> Response:
        qs = CaseLifecycleService.list_for_user(request.user)
        return Response(CaseListSerializer(qs, many=True).data, status=status.HTTP_200_OK)

    @action(detail=False, methods=["get"], url_path="search")
    @extend_schema(
        summary="Search cases",
        parameters=[
            OpenApiParameter(name="keyword", type=str, location=OpenApiParameter.QUERY, required=True, description="Substring matched against title and description."),
        ],
        responses={200: CaseListSerializer(many=True), 400: OpenApiResponse(description="Blank keyword.")},
        tags=["Cases"],
    )
    def search(self, request: Request) -> Response:
        serializer = CaseSearchSerializer(data=request.query_params)
        serializer.is_valid(raise_exception=True)
        cases = settle(CaseLifecycleService.search(serializer.validated_data["keyword"]))
        return Response(CaseListSerializer(cases, many=True).data, status=status.HTTP_200_OK)

    @action(detail=False, methods=["get"], url_path="statistics")
    @extend_schema(
        summary="Case statistics",
        responses={200: CaseStatisticsSerializer, 403: OpenApiResponse(description="Missing cases.can_view_statistics.")},
        tags=["Cases"],
    )
    def statistics(self, request: Request) -> Response:
        stats = settle(CaseLifecycleService.statistics(request.user))
        return Response(CaseStatisticsSerializer(stats).data, status=status.HTTP_200_OK)

    # ── Lifecycle @actions ────────────────────────────────────────────

    @action(detail=True, methods=["post"], url_path="approve")
    @extend_schema(
        summary="Approve case",
        request=None,
        responses={200: CaseDetailSerializer, 403: OpenApiResponse(description="Missing cases.can_approve_case.")},
        tags=["Cases – Lifecycle"],
    )
    def approve(self, request: Request, pk: str = None) -> Response:
        case = settle(CaseLifecycleService.approve(pk, request.user))
        return Response(CaseDetailSerializer(case).data, status=status.HTTP_200_OK)

    @action(detail=True, methods=["patch", "post"], url_path="status")
    @extend_schema(
        summary="Change case status",
        request=CaseStatusSerializer,
        responses={200: CaseDetailSerializer, 400: OpenApiResponse(description="Unknown status value.")},
        tags=["Cases – Lifecycle"],
    )
    def change_status(self, request: Request, pk: str = None) -> Response:
        serializer = CaseStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        case = settle(
            CaseLifecycleService.update_status(pk, serializer.validated_data["status"], request.user)
        )
        return Response(CaseDetailSerializer(case).data, status=status.HTTP_200_OK)

    @action(detail=True, methods=["post"], url_path="assign")
    @extend_schema(
        summary="Assign case to officer",
        description="Direct assignment.  Does not record a previous officer or an audit comment.",
        request=AssignOfficerSerializer,
        responses={
            200: AssignmentChangeSerializer,
            403: OpenApiResponse(description="Missing cases.can_assign_case."),
            404: OpenApiResponse(description="Case or officer not found."),
        },
        tags=["Cases – Assignment"],
    )
    def assign(self, request: Request, pk: str = None) -> Response:
        serializer = AssignOfficerSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        change = settle(
            CaseLifecycleService.assign_to_officer(
                pk, serializer.validated_data["officer_id"], request.user
            )
        )
        return Response(AssignmentChangeSerializer(change).data, status=status.HTTP_200_OK)

    @action(detail=True, methods=["post"], url_path="handover")
    @extend_schema(
        summary="Hand case over",
        description=(
            "Audited transfer: records the previous officer and appends a "
            "system comment.  Handing a case to its current officer is rejected."
        ),
        request=HandoverSerializer,
        responses={
            200: AssignmentChangeSerializer,
            404: OpenApiResponse(description="Case or officer not found."),
            409: OpenApiResponse(description="Case is already assigned to this officer."),
        },
        tags=["Cases – Assignment"],
    )
    def handover(self, request: Request, pk: str = None) -> Response:
        serializer = HandoverSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        change = settle(
            CaseLifecycleService.handover(
                pk, serializer.validated_data["new_officer_id"], request.user
            )
        )
        return Response(AssignmentChangeSerializer(change).data, status=status.HTTP_200_OK)

    # ── Sub-resource @actions ────────────────────────────────────────

    @action(detail=True, methods=["post"], url_path="comments")
    @extend_schema(
        summary="Add comment",
        request=CaseCommentCreateSerializer,
        responses={
            201: CaseDetailSerializer,
            400: OpenApiResponse(description="Blank comment."),
            404: OpenApiResponse(description="Case not found."),
        },
        tags=["Cases – Comments & Documents"],
    )
    def comments(self, request: Request, pk: str = None) -> Response:
        serializer = CaseCommentCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        case = settle(
            CaseLifecycleService.add_comment(pk, request.user, serializer.validated_data["text"])
        )
        return Response(CaseDetailSerializer(case).data, status=status.HTTP_201_CREATED)

    @action(
        detail=True,
        methods=["post"],
        url_path="documents",
        parser_classes=[MultiPartParser, FormParser],
    )
    @extend_schema(
        summary="Upload document",
        request={"multipart/form-data": CaseDocumentUploadSerializer},
        responses={
            201: CaseDocumentSerializer,
            404: OpenApiResponse(description="Case not found."),
            500: OpenApiResponse(description="File stored but metadata could not be saved."),
            502: OpenApiResponse(description="File storage rejected the upload."),
        },
        tags=["Cases – Comments & Documents"],
    )
    def documents(self, request: Request, pk: str = None) -> Response:
        serializer = CaseDocumentUploadSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        document = settle(
            CaseLifecycleService.add_document(pk, request.user, serializer.validated_data["file"])
        )
        return Response(CaseDocumentSerializer(document).data, status=status.HTTP_201_CREATED)
