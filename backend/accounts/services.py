"""
Accounts Service Layer.

This module is the **single source of truth** for all business logic
within the ``accounts`` app.  Views must remain *thin*: they validate
input through serializers, call a service method, dispatch the returned
notification events after commit, and return the result wrapped in a
DRF ``Response``.

Architecture
------------
- ``AuthenticationService``  — registration, police-ID login with
                               lockout, passcode change / reset,
                               account unlock, JWT issuance.
- ``UserManagementService``  — admin user CRUD, role changes,
                               officer deletion with case reassignment.
- ``CurrentUserService``     — "Me" endpoint helpers.

Every mutating method returns a ``core.domain.results.Outcome``; expected
failures (unknown officer, wrong passcode, duplicate police ID…) are
carried on the outcome instead of escaping as exceptions.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import timedelta
from typing import Any

from django.contrib.auth import get_user_model
from django.contrib.auth.password_validation import validate_password
from django.contrib.auth.tokens import default_token_generator
from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import IntegrityError, transaction
from django.db.models import Q, QuerySet
from django.utils import timezone
from django.utils.crypto import get_random_string
from rest_framework_simplejwt.tokens import RefreshToken

from core.constants import (
    ADMIN_ROLE,
    LOCKOUT_MINUTES,
    LOCKOUT_THRESHOLD,
    OFFICER_ROLE,
    UNASSIGNED_OFFICER_ID,
    is_reserved_police_id,
)
from core.domain.access import get_user_role_name, require_permission
from core.domain.exceptions import (
    AuthenticationFailure,
    Conflict,
    DomainError,
    NotFound,
    ValidationFailure,
)
from core.domain.notifications import NotificationEvent, NotificationType
from core.domain.results import Outcome, returns_outcome
from core.domain.transactions import get_or_not_found, lock_for_update
from core.permissions_constants import AccountsPerms

from .models import Role

User = get_user_model()

logger = logging.getLogger(__name__)


# Fields an officer (or an admin on their behalf) may edit on a profile.
PROFILE_FIELDS = (
    "first_name",
    "last_name",
    "email",
    "badge_number",
    "rank",
    "department",
    "division",
    "precinct",
    "station",
    "special_unit",
    "phone",
    "mobile_phone",
    "work_phone",
    "profile_image_url",
    "supervisor_id",
)


def _check_passcode_strength(passcode: str, user: User | None = None) -> None:
    try:
        validate_password(passcode, user=user)
    except DjangoValidationError as exc:
        raise ValidationFailure(" ".join(exc.messages))


def _check_police_id(police_id: str) -> None:
    if is_reserved_police_id(police_id):
        raise ValidationFailure(f"'{police_id}' is a reserved police ID.")


def _get_role(role_name: str) -> Role:
    try:
        return Role.objects.get(name__iexact=role_name)
    except Role.DoesNotExist:
        raise NotFound(f"Role '{role_name}' not found.")


def _forget_permissions(user: User) -> None:
    """Drop cached permission sets after a role change."""
    for attr in ("_perm_cache", "_superuser_perm_cache"):
        if hasattr(user, attr):
            delattr(user, attr)


@dataclass
class AuthResult:
    """Authenticated officer plus the issued JWT pair."""

    user: Any
    access: str
    refresh: str


# ═══════════════════════════════════════════════════════════════════
#  Authentication Service
# ═══════════════════════════════════════════════════════════════════


class AuthenticationService:
    """
    Police-ID login with failed-attempt lockout, registration and
    passcode management.
    """

    @staticmethod
    @returns_outcome
    @transaction.atomic
    def register(validated_data: dict[str, Any]) -> Outcome[User]:
        """
        Create a new officer account with the "Officer" role.

        Parameters
        ----------
        validated_data : dict
            Cleaned data from ``RegisterRequestSerializer`` containing
            ``police_id``, ``passcode``, ``email``, ``first_name``,
            ``last_name`` and optional profile fields.

        Returns
        -------
        Outcome[User]
            The saved user plus a "Welcome" notification event.

        Raises (as failure outcome)
        ---------------------------
        Conflict
            Police ID or e-mail already registered.
        ValidationFailure
            Reserved police ID, or passcode rejected by the password
            validators.
        """
        data = dict(validated_data)
        passcode = data.pop("passcode")
        data.pop("passcode_confirm", None)
        _check_police_id(data.get("police_id"))

        conflicts = []
        if User.objects.filter(police_id=data.get("police_id")).exists():
            conflicts.append("police_id")
        if User.objects.filter(email__iexact=data.get("email")).exists():
            conflicts.append("email")
        if conflicts:
            raise Conflict(
                f"The following field(s) already exist: {', '.join(conflicts)}."
            )

        _check_passcode_strength(passcode)

        officer_role, _ = Role.objects.get_or_create(
            name=OFFICER_ROLE,
            defaults={
                "hierarchy_level": 10,
                "description": "Field officer handling assigned cases.",
            },
        )

        try:
            with transaction.atomic():
                user = User.objects.create_user(
                    password=passcode,
                    role=officer_role,
                    is_verified=False,
                    **data,
                )
        except IntegrityError:
            raise Conflict("A user with this police ID or e-mail already exists.")

        logger.info("Officer %s registered", user.police_id)
        return Outcome.success(
            user,
            events=[
                NotificationEvent.for_user(
                    user,
                    "Welcome to CaseRelay!",
                    f"Dear {user.first_name}, your account has been created "
                    "successfully. You can now log in and start using CaseRelay.",
                    notification_type=NotificationType.SYSTEM,
                ),
            ],
        )

    @staticmethod
    @returns_outcome
    def login(police_id: str, passcode: str) -> Outcome[AuthResult]:
        """
        Verify credentials and issue a JWT pair.

        Lockout rules
        -------------
        1. Unknown police ID → failure, nothing recorded.
        2. Inactive account: if ``lockout_end`` has passed the account is
           reactivated (counter and lockout cleared) and login proceeds;
           otherwise → "Account is locked. Try again later."
        3. Wrong passcode → ``failed_login_attempts += 1``.  Reaching the
           threshold deactivates the account until now + lockout window
           and emits an "Account Locked" event.
        4. Success → counter reset, ``last_login`` stamped.

        The counter updates are saved before the failure is returned, so
        this method must not run inside a transaction that rolls back on
        failure.
        """
        user = User.objects.select_related("role").filter(police_id=police_id).first()
        if user is None:
            return Outcome.failure(AuthenticationFailure("No police account found."))

        now = timezone.now()
        if not user.is_active:
            if user.lockout_end is not None and user.lockout_end <= now:
                user.is_active = True
                user.failed_login_attempts = 0
                user.lockout_end = None
                user.save(update_fields=["is_active", "failed_login_attempts", "lockout_end"])
                logger.info("Lockout expired for %s; account reactivated", user.police_id)
            else:
                logger.warning("Login attempt on locked account %s", user.police_id)
                return Outcome.failure(
                    AuthenticationFailure("Account is locked. Try again later.")
                )

        if not user.check_password(passcode):
            user.failed_login_attempts += 1
            update_fields = ["failed_login_attempts"]
            events = []
            if user.failed_login_attempts >= LOCKOUT_THRESHOLD:
                user.is_active = False
                user.lockout_end = now + timedelta(minutes=LOCKOUT_MINUTES)
                update_fields += ["is_active", "lockout_end"]
                events.append(
                    NotificationEvent.for_user(
                        user,
                        "Account Locked",
                        f"Dear {user.first_name}, your account has been locked due "
                        "to multiple failed login attempts. Please try again after "
                        f"{LOCKOUT_MINUTES} minutes.",
                        notification_type=NotificationType.SYSTEM,
                    )
                )
                logger.warning(
                    "Account %s locked after %d failed attempts",
                    user.police_id,
                    user.failed_login_attempts,
                )
            user.save(update_fields=update_fields)
            return Outcome.failure(
                AuthenticationFailure("Invalid credentials."), events=events
            )

        user.failed_login_attempts = 0
        user.last_login = now
        user.save(update_fields=["failed_login_attempts", "last_login"])

        tokens = AuthenticationService.generate_tokens(user)
        logger.info("Officer %s logged in", user.police_id)
        return Outcome.success(AuthResult(user=user, **tokens))

    @staticmethod
    def generate_tokens(user: User) -> dict[str, str]:
        """
        Issue a JWT access/refresh token pair for the given user.

        The tokens carry ``police_id``, ``name``, ``role`` and
        ``department`` claims next to SimpleJWT's ``user_id``.
        """
        refresh = RefreshToken.for_user(user)
        refresh["police_id"] = user.police_id
        refresh["name"] = user.get_full_name()
        refresh["role"] = get_user_role_name(user) or "Unknown"
        refresh["department"] = user.department or "Unknown"
        return {
            "access": str(refresh.access_token),
            "refresh": str(refresh),
        }

    @staticmethod
    @returns_outcome
    @transaction.atomic
    def change_passcode(user: User, current_passcode: str, new_passcode: str) -> Outcome[User]:
        """Replace the officer's passcode after verifying the current one."""
        if not user.check_password(current_passcode):
            raise ValidationFailure("Current passcode is incorrect.")
        _check_passcode_strength(new_passcode, user)

        user.set_password(new_passcode)
        user.last_password_change = timezone.now()
        user.require_password_reset = False
        user.save(update_fields=["password", "last_password_change", "require_password_reset"])

        logger.info("Passcode changed for %s", user.police_id)
        return Outcome.success(
            user,
            events=[
                NotificationEvent.for_user(
                    user,
                    "Passcode Changed",
                    f"Dear {user.first_name}, your passcode has been successfully "
                    "changed. If you did not request this change, please contact "
                    "support immediately.",
                    notification_type=NotificationType.SYSTEM,
                ),
            ],
        )

    @staticmethod
    @returns_outcome
    def request_password_reset(email: str) -> Outcome[None]:
        """
        E-mail a passcode-reset token to the officer owning ``email``.

        Always succeeds so that the endpoint does not reveal which
        addresses are registered.
        """
        user = User.objects.filter(email__iexact=email).first()
        if user is None:
            logger.info("Password reset requested for unknown e-mail")
            return Outcome.success(None)

        token = default_token_generator.make_token(user)
        logger.info("Password reset token issued for %s", user.police_id)
        return Outcome.success(
            None,
            events=[
                NotificationEvent.for_user(
                    user,
                    "Password Reset Request",
                    f"Dear {user.first_name}, use the following token to reset "
                    f"your CaseRelay passcode: {token}",
                    notification_type=NotificationType.SYSTEM,
                    email_only=True,
                ),
            ],
        )

    @staticmethod
    @returns_outcome
    @transaction.atomic
    def reset_password(email: str, token: str, new_passcode: str) -> Outcome[User]:
        user = User.objects.filter(email__iexact=email).first()
        if user is None or not default_token_generator.check_token(user, token):
            raise ValidationFailure("Invalid or expired reset token.")
        _check_passcode_strength(new_passcode, user)

        user.set_password(new_passcode)
        user.last_password_change = timezone.now()
        user.require_password_reset = False
        user.save(update_fields=["password", "last_password_change", "require_password_reset"])

        logger.info("Passcode reset for %s", user.police_id)
        return Outcome.success(
            user,
            events=[
                NotificationEvent.for_user(
                    user,
                    "Passcode Changed",
                    f"Dear {user.first_name}, your passcode has been reset. If you "
                    "did not request this change, please contact support immediately.",
                    notification_type=NotificationType.SYSTEM,
                ),
            ],
        )

    @staticmethod
    @returns_outcome
    @transaction.atomic
    def unlock_account(police_id: str, actor: User) -> Outcome[User]:
        """Lift a lockout: reactivate, clear the counter and the lockout end."""
        require_permission(actor, AccountsPerms.full(AccountsPerms.CAN_UNLOCK_ACCOUNTS))

        user = User.objects.select_for_update().filter(police_id=police_id).first()
        if user is None:
            raise NotFound(f"User with police ID {police_id} not found.")

        user.is_active = True
        user.failed_login_attempts = 0
        user.lockout_end = None
        user.save(update_fields=["is_active", "failed_login_attempts", "lockout_end"])

        logger.info("Account %s unlocked by %s", user.police_id, actor.police_id)
        return Outcome.success(
            user,
            events=[
                NotificationEvent.for_user(
                    user,
                    "Account Unlocked",
                    f"Dear {user.first_name}, your account has been unlocked and is "
                    "now active. You can log in and continue using CaseRelay.",
                    notification_type=NotificationType.ADMIN,
                    actor=actor,
                ),
            ],
        )


# ═══════════════════════════════════════════════════════════════════
#  User Management Service
# ═══════════════════════════════════════════════════════════════════


class UserManagementService:
    """
    Administrative operations on officers.

    Every mutating operation requires ``accounts.can_manage_users``.
    """

    @staticmethod
    def list_users(
        *,
        role: str | None = None,
        is_active: bool | None = None,
        search: str | None = None,
    ) -> QuerySet[User]:
        """
        Return a filtered queryset of users.

        ``search`` matches police ID, e-mail, first/last name, badge
        number and department (case-insensitive).
        """
        qs = User.objects.select_related("role").all()

        if role:
            qs = qs.filter(role__name__iexact=role)
        if is_active is not None:
            qs = qs.filter(is_active=is_active)
        if search:
            qs = qs.filter(
                Q(police_id__icontains=search)
                | Q(email__icontains=search)
                | Q(first_name__icontains=search)
                | Q(last_name__icontains=search)
                | Q(badge_number__icontains=search)
                | Q(department__icontains=search)
            )

        return qs

    @staticmethod
    @returns_outcome
    def get_user(user_id: int) -> User:
        return get_or_not_found(
            User, user_id, label="User", queryset=User.objects.select_related("role")
        )

    @staticmethod
    @returns_outcome
    @transaction.atomic
    def create_user(validated_data: dict[str, Any], actor: User) -> Outcome[User]:
        """
        Create an officer account on behalf of an admin.

        The account gets a temporary passcode (supplied or generated)
        and ``require_password_reset=True``.  The temporary passcode is
        only ever sent by e-mail; it is never stored in a notification.
        """
        require_permission(actor, AccountsPerms.full(AccountsPerms.CAN_MANAGE_USERS))

        data = dict(validated_data)
        role_name = data.pop("role", None) or OFFICER_ROLE
        temporary_passcode = data.pop("temporary_passcode", None) or get_random_string(12)
        _check_police_id(data.get("police_id"))

        if User.objects.filter(
            Q(police_id=data.get("police_id")) | Q(email__iexact=data.get("email"))
        ).exists():
            raise Conflict("A user with this police ID or e-mail already exists.")

        role = _get_role(role_name)
        try:
            with transaction.atomic():
                user = User.objects.create_user(
                    password=temporary_passcode,
                    role=role,
                    require_password_reset=True,
                    **data,
                )
        except IntegrityError:
            raise Conflict("A user with this police ID or e-mail already exists.")

        logger.info("Officer %s created by %s", user.police_id, actor.police_id)
        return Outcome.success(
            user,
            events=[
                NotificationEvent.for_user(
                    user,
                    "Your CaseRelay Account",
                    f"Dear {user.first_name}, an account has been created for you. "
                    f"Your police ID is {user.police_id} and your temporary passcode "
                    f"is {temporary_passcode}. You must change it after logging in.",
                    actor=actor,
                    email_only=True,
                ),
                NotificationEvent.for_user(
                    user,
                    "Welcome to CaseRelay!",
                    "Your account was created by an administrator. Please change "
                    "your temporary passcode.",
                    notification_type=NotificationType.SYSTEM,
                    actor=actor,
                ),
            ],
        )

    @staticmethod
    @returns_outcome
    @transaction.atomic
    def admin_update_user(user_id: int, validated_data: dict[str, Any], actor: User) -> Outcome[User]:
        """Admin edit of profile fields and, optionally, the role."""
        require_permission(actor, AccountsPerms.full(AccountsPerms.CAN_MANAGE_USERS))

        user = lock_for_update(User, user_id, label="User")
        data = dict(validated_data)
        role_name = data.pop("role", None)

        update_fields = []
        for field, value in data.items():
            if field in PROFILE_FIELDS or field in ("is_active", "is_verified", "clearance"):
                setattr(user, field, value)
                update_fields.append(field)
        if role_name:
            user.role = _get_role(role_name)
            update_fields.append("role")
            _forget_permissions(user)

        if update_fields:
            try:
                with transaction.atomic():
                    user.save(update_fields=update_fields)
            except IntegrityError:
                raise Conflict("A user with this e-mail already exists.")

        logger.info("User %s updated by %s", user.police_id, actor.police_id)
        return Outcome.success(
            user,
            events=[
                NotificationEvent.for_user(
                    user,
                    "Profile Updated",
                    "Your profile information has been updated by an administrator.",
                    actor=actor,
                ),
            ],
        )

    @staticmethod
    @returns_outcome
    @transaction.atomic
    def change_role(user_id: int, role_name: str, actor: User) -> Outcome[User]:
        require_permission(actor, AccountsPerms.full(AccountsPerms.CAN_MANAGE_USERS))
        if not role_name or not role_name.strip():
            raise ValidationFailure("Invalid role.")

        user = lock_for_update(User, user_id, label="User")
        role = _get_role(role_name.strip())
        user.role = role
        user.save(update_fields=["role"])
        _forget_permissions(user)

        logger.info("Role of %s changed to %s by %s", user.police_id, role.name, actor.police_id)
        return Outcome.success(
            user,
            events=[
                NotificationEvent.for_user(
                    user,
                    "Role Changed",
                    f"Your role has been changed to {role.name}.",
                    actor=actor,
                ),
            ],
        )

    @staticmethod
    def promote_to_admin(user_id: int, actor: User) -> Outcome[User]:
        return UserManagementService.change_role(user_id, ADMIN_ROLE, actor)

    @staticmethod
    @returns_outcome
    def delete_user(user_id: int, actor: User) -> Outcome[None]:
        """
        Delete an officer and release their cases, as one unit of work.

        Every case whose ``assigned_officer_id`` is the officer's police
        ID is reassigned to the unassigned placeholder with
        ``previous_officer_id`` set to that police ID; then the user row
        is removed.  Any error rolls back the whole deletion.

        The "Account Deleted" notice is e-mail-only because the
        notification row would be removed together with the user.
        """
        require_permission(actor, AccountsPerms.full(AccountsPerms.CAN_MANAGE_USERS))
        if str(user_id) == str(actor.pk):
            raise DomainError("You cannot delete your own account.")

        try:
            with transaction.atomic():
                user = lock_for_update(User, user_id, label="User")
                police_id = user.police_id
                farewell = NotificationEvent.for_user(
                    user,
                    "Account Deleted",
                    "Your account has been deleted.",
                    actor=actor,
                    email_only=True,
                )
                released = UserManagementService._release_cases(police_id)
                user.delete()
        except DomainError:
            raise
        except Exception:
            logger.exception("Failed to delete user #%s", user_id)
            raise DomainError("Failed to delete user.")

        logger.info(
            "User %s deleted by %s; %d case(s) released",
            police_id,
            actor.police_id,
            released,
        )
        return Outcome.success(None, events=[farewell])

    @staticmethod
    def _release_cases(police_id: str) -> int:
        from cases.models import Case  # lazy import — avoids circular deps

        cases = Case.objects.select_for_update().filter(assigned_officer_id=police_id)
        released = 0
        for case in cases:
            UserManagementService._reassign_case(case, police_id)
            released += 1
        return released

    @staticmethod
    def _reassign_case(case, police_id: str) -> None:
        case.assigned_officer_id = UNASSIGNED_OFFICER_ID
        case.previous_officer_id = police_id
        case.save(update_fields=["assigned_officer_id", "previous_officer_id", "updated_at"])

    @staticmethod
    def list_roles() -> QuerySet[Role]:
        return Role.objects.all()


# ═══════════════════════════════════════════════════════════════════
#  Current User Service
# ═══════════════════════════════════════════════════════════════════


class CurrentUserService:
    """
    Helpers for the "Me" endpoint: the logged-in officer, their role
    and the flat list of permission strings the frontend uses to render
    role-dependent modules.
    """

    @staticmethod
    def get_profile(user: User) -> User:
        return (
            User.objects.select_related("role")
            .prefetch_related("role__permissions__content_type")
            .get(pk=user.pk)
        )

    @staticmethod
    @returns_outcome
    @transaction.atomic
    def update_profile(user: User, validated_data: dict[str, Any]) -> Outcome[User]:
        """
        Update the authenticated officer's own profile fields.

        The officer may NOT change their own ``role``, ``is_active`` or
        ``police_id`` via this endpoint.
        """
        update_fields = [f for f in validated_data if f in PROFILE_FIELDS]
        for field in update_fields:
            setattr(user, field, validated_data[field])
        if update_fields:
            try:
                with transaction.atomic():
                    user.save(update_fields=update_fields)
            except IntegrityError:
                raise Conflict("A user with this e-mail already exists.")

        logger.info("Profile of %s updated", user.police_id)
        return Outcome.success(
            CurrentUserService.get_profile(user),
            events=[
                NotificationEvent.for_user(
                    user,
                    "Profile Updated",
                    "Your profile information has been updated.",
                    notification_type=NotificationType.SYSTEM,
                ),
            ],
        )
