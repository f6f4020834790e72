"""
Accounts app views.

All views follow the **Thin View** pattern: validate input via
serializers, delegate to the service layer, hand the returned
notification events to the after-commit dispatcher (``settle``) and
return the result wrapped in a DRF ``Response``.  **No business logic**
resides here.

View Map
--------
- ``RegisterView``          — POST /auth/register/
- ``LoginView``             — POST /auth/login/
- ``ChangePasscodeView``    — POST /auth/change-passcode/
- ``ForgotPasswordView``    — POST /auth/forgot-password/
- ``ResetPasswordView``     — POST /auth/reset-password/
- ``MeView``                — GET / PATCH /me/
- ``UserViewSet``           — /users/  (list, create, retrieve,
                              partial_update, destroy, cases,
                              change-role, promote, unlock)
- ``RoleViewSet``           — GET /roles/
"""

from __future__ import annotations

from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from drf_spectacular.utils import OpenApiParameter, OpenApiResponse, extend_schema

from core.domain.access import require_permission
from core.domain.notifications import settle
from core.permissions_constants import AccountsPerms

from .serializers import (
    AdminUserCreateSerializer,
    AdminUserUpdateSerializer,
    ChangePasscodeSerializer,
    ChangeRoleSerializer,
    ForgotPasswordSerializer,
    LoginRequestSerializer,
    ProfileUpdateSerializer,
    RegisterRequestSerializer,
    ResetPasswordSerializer,
    RoleListSerializer,
    TokenResponseSerializer,
    UserDetailSerializer,
    UserListSerializer,
)
from .services import (
    AuthenticationService,
    CurrentUserService,
    UserManagementService,
)


# ═══════════════════════════════════════════════════════════════════
#  Authentication Views
# ═══════════════════════════════════════════════════════════════════


class RegisterView(APIView):
    """
    POST /api/accounts/auth/register/

    Public endpoint.  Creates a new officer with the "Officer" role.

    Request body  → ``RegisterRequestSerializer``
    Response body → ``UserDetailSerializer`` (201 Created)
    """

    permission_classes = [AllowAny]
    authentication_classes = []

    @extend_schema(
        summary="Register officer",
        request=RegisterRequestSerializer,
        responses={
            201: UserDetailSerializer,
            400: OpenApiResponse(description="Validation error."),
            409: OpenApiResponse(description="Police ID or e-mail already registered."),
        },
        tags=["Auth"],
    )
    def post(self, request: Request) -> Response:
        serializer = RegisterRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = settle(AuthenticationService.register(serializer.validated_data))
        return Response(UserDetailSerializer(user).data, status=status.HTTP_201_CREATED)


class LoginView(APIView):
    """
    POST /api/accounts/auth/login/

    Public endpoint.  Authenticates an officer by police ID + passcode,
    applying the failed-attempt lockout.

    Request body  → ``LoginRequestSerializer``
    Response body → ``TokenResponseSerializer`` (200 OK)
    """

    permission_classes = [AllowAny]
    authentication_classes = []

    @extend_schema(
        summary="Login",
        request=LoginRequestSerializer,
        responses={
            200: TokenResponseSerializer,
            401: OpenApiResponse(description="Invalid credentials or locked account."),
        },
        tags=["Auth"],
    )
    def post(self, request: Request) -> Response:
        serializer = LoginRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        result = settle(
            AuthenticationService.login(
                police_id=serializer.validated_data["police_id"],
                passcode=serializer.validated_data["passcode"],
            )
        )
        return Response(TokenResponseSerializer(result).data, status=status.HTTP_200_OK)


class ChangePasscodeView(APIView):
    """POST /api/accounts/auth/change-passcode/"""

    permission_classes = [IsAuthenticated]

    @extend_schema(
        summary="Change own passcode",
        request=ChangePasscodeSerializer,
        responses={200: OpenApiResponse(description="Passcode changed.")},
        tags=["Auth"],
    )
    def post(self, request: Request) -> Response:
        serializer = ChangePasscodeSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        settle(
            AuthenticationService.change_passcode(
                request.user,
                serializer.validated_data["current_passcode"],
                serializer.validated_data["new_passcode"],
            )
        )
        return Response({"detail": "Passcode changed successfully."}, status=status.HTTP_200_OK)


class ForgotPasswordView(APIView):
    """POST /api/accounts/auth/forgot-password/"""

    permission_classes = [AllowAny]
    authentication_classes = []

    @extend_schema(
        summary="Request passcode reset",
        request=ForgotPasswordSerializer,
        responses={200: OpenApiResponse(description="Reset e-mail sent if the address is registered.")},
        tags=["Auth"],
    )
    def post(self, request: Request) -> Response:
        serializer = ForgotPasswordSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        settle(AuthenticationService.request_password_reset(serializer.validated_data["email"]))
        return Response(
            {"detail": "If the e-mail is registered, a reset token has been sent."},
            status=status.HTTP_200_OK,
        )


class ResetPasswordView(APIView):
    """POST /api/accounts/auth/reset-password/"""

    permission_classes = [AllowAny]
    authentication_classes = []

    @extend_schema(
        summary="Reset passcode with token",
        request=ResetPasswordSerializer,
        responses={
            200: OpenApiResponse(description="Passcode reset."),
            400: OpenApiResponse(description="Invalid or expired token."),
        },
        tags=["Auth"],
    )
    def post(self, request: Request) -> Response:
        serializer = ResetPasswordSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        settle(AuthenticationService.reset_password(data["email"], data["token"], data["new_passcode"]))
        return Response({"detail": "Passcode reset successfully."}, status=status.HTTP_200_OK)


# ═══════════════════════════════════════════════════════════════════
#  Current User ("Me") View
# ═══════════════════════════════════════════════════════════════════


class MeView(APIView):
    """
    GET   /api/accounts/me/ → Retrieve current officer profile.
    PATCH /api/accounts/me/ → Update own profile fields.

    The response includes the role and a flat permissions list the
    frontend uses to render role-dependent modules.
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(summary="Current officer", responses={200: UserDetailSerializer}, tags=["Me"])
    def get(self, request: Request) -> Response:
        user = CurrentUserService.get_profile(request.user)
        return Response(UserDetailSerializer(user).data, status=status.HTTP_200_OK)

    @extend_schema(
        summary="Update own profile",
        request=ProfileUpdateSerializer,
        responses={200: UserDetailSerializer},
        tags=["Me"],
    )
    def patch(self, request: Request) -> Response:
        serializer = ProfileUpdateSerializer(
            instance=request.user, data=request.data, partial=True
        )
        serializer.is_valid(raise_exception=True)
        user = settle(CurrentUserService.update_profile(request.user, serializer.validated_data))
        return Response(UserDetailSerializer(user).data, status=status.HTTP_200_OK)


# ═══════════════════════════════════════════════════════════════════
#  User Management ViewSet
# ═══════════════════════════════════════════════════════════════════


class UserViewSet(viewsets.ViewSet):
    """
    /api/accounts/users/

    Administrative officer management.  Reading requires
    ``accounts.view_user``; every mutation is authorised by
    ``UserManagementService`` (``accounts.can_manage_users``).
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        summary="List officers",
        parameters=[
            OpenApiParameter("search", str, description="Partial match on police ID, name, e-mail, badge, department."),
            OpenApiParameter("role", str, description="Role name."),
            OpenApiParameter("is_active", bool),
        ],
        responses={200: UserListSerializer(many=True)},
        tags=["Users"],
    )
    def list(self, request: Request) -> Response:
        require_permission(request.user, AccountsPerms.full(AccountsPerms.VIEW_USER))
        params = request.query_params
        is_active = params.get("is_active")
        qs = UserManagementService.list_users(
            search=params.get("search"),
            role=params.get("role"),
            is_active=None if is_active is None else is_active.lower() in ("1", "true", "yes"),
        )
        return Response(UserListSerializer(qs, many=True).data, status=status.HTTP_200_OK)

    @extend_schema(
        summary="Create officer (admin)",
        request=AdminUserCreateSerializer,
        responses={201: UserDetailSerializer},
        tags=["Users"],
    )
    def create(self, request: Request) -> Response:
        serializer = AdminUserCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = settle(UserManagementService.create_user(serializer.validated_data, request.user))
        return Response(UserDetailSerializer(user).data, status=status.HTTP_201_CREATED)

    @extend_schema(summary="Retrieve officer", responses={200: UserDetailSerializer}, tags=["Users"])
    def retrieve(self, request: Request, pk: str = None) -> Response:
        user = settle(UserManagementService.get_user(pk))
        return Response(UserDetailSerializer(user).data, status=status.HTTP_200_OK)

    @extend_schema(
        summary="Update officer (admin)",
        request=AdminUserUpdateSerializer,
        responses={200: UserDetailSerializer},
        tags=["Users"],
    )
    def partial_update(self, request: Request, pk: str = None) -> Response:
        target = settle(UserManagementService.get_user(pk))
        serializer = AdminUserUpdateSerializer(instance=target, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        user = settle(
            UserManagementService.admin_update_user(pk, serializer.validated_data, request.user)
        )
        return Response(UserDetailSerializer(user).data, status=status.HTTP_200_OK)

    @extend_schema(
        summary="Delete officer (admin)",
        description=(
            "Deletes the officer and, in the same transaction, releases every "
            "case assigned to them to the unassigned placeholder."
        ),
        responses={204: OpenApiResponse(description="Deleted.")},
        tags=["Users"],
    )
    def destroy(self, request: Request, pk: str = None) -> Response:
        settle(UserManagementService.delete_user(pk, request.user))
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=True, methods=["get"], url_path="cases")
    @extend_schema(summary="Cases created by or assigned to an officer", tags=["Users"])
    def cases(self, request: Request, pk: str = None) -> Response:
        from cases.serializers import CaseListSerializer
        from cases.services import CaseLifecycleService

        user = settle(UserManagementService.get_user(pk))
        qs = CaseLifecycleService.list_for_user(user)
        return Response(CaseListSerializer(qs, many=True).data, status=status.HTTP_200_OK)

    @action(detail=True, methods=["put", "patch"], url_path="change-role")
    @extend_schema(
        summary="Change officer role (admin)",
        request=ChangeRoleSerializer,
        responses={200: UserDetailSerializer},
        tags=["Users"],
    )
    def change_role(self, request: Request, pk: str = None) -> Response:
        serializer = ChangeRoleSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = settle(
            UserManagementService.change_role(pk, serializer.validated_data["role"], request.user)
        )
        return Response(UserDetailSerializer(user).data, status=status.HTTP_200_OK)

    @action(detail=True, methods=["put", "post"], url_path="promote")
    @extend_schema(
        summary="Promote officer to Admin",
        request=None,
        responses={200: UserDetailSerializer},
        tags=["Users"],
    )
    def promote(self, request: Request, pk: str = None) -> Response:
        user = settle(UserManagementService.promote_to_admin(pk, request.user))
        return Response(
            {"detail": "User promoted to admin successfully.", "user": UserDetailSerializer(user).data},
            status=status.HTTP_200_OK,
        )

    @action(detail=True, methods=["post"], url_path="unlock")
    @extend_schema(
        summary="Unlock a locked account",
        request=None,
        responses={200: UserDetailSerializer},
        tags=["Users"],
    )
    def unlock(self, request: Request, pk: str = None) -> Response:
        target = settle(UserManagementService.get_user(pk))
        user = settle(AuthenticationService.unlock_account(target.police_id, request.user))
        return Response(UserDetailSerializer(user).data, status=status.HTTP_200_OK)


class RoleViewSet(viewsets.ViewSet):
    """GET /api/accounts/roles/ — roles available for assignment."""

    permission_classes = [IsAuthenticated]

    @extend_schema(summary="List roles", responses={200: RoleListSerializer(many=True)}, tags=["Roles"])
    def list(self, request: Request) -> Response:
        roles = UserManagementService.list_roles()
        return Response(RoleListSerializer(roles, many=True).data, status=status.HTTP_200_OK)
