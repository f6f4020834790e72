"""
Accounts app models.

Defines the dynamic Role system and the ``User`` (police officer) model
that extends Django's ``AbstractUser``.  Officers are identified by
their unique **police ID**, which replaces the ``username`` field and is
what cases store as ``assigned_officer_id`` / ``previous_officer_id``.
"""

from django.contrib.auth.base_user import BaseUserManager
from django.contrib.auth.models import AbstractUser, Permission
from django.db import models
from django.utils import timezone

from core.constants import is_reserved_police_id
from core.permissions_constants import AccountsPerms


class Role(models.Model):
    """
    Dynamic, admin-manageable role.

    ``hierarchy_level`` encodes the relative authority of the role
    (Admin > Supervisor > Officer).

    Default roles seeded via the ``setup_rbac`` management command:
        Admin, Supervisor, Officer.

    Note on Custom Permissions:
    Custom workflow permissions are defined as constants in
    ``core.permissions_constants`` and registered in each model's
    ``Meta.permissions`` tuple using those constants.  ``setup_rbac``
    links those permissions to ``Role`` objects — it never creates
    permissions itself.
    """

    name = models.CharField(
        max_length=100,
        unique=True,
        verbose_name="Role Name",
    )
    description = models.TextField(
        blank=True,
        default="",
        verbose_name="Description",
    )
    hierarchy_level = models.PositiveSmallIntegerField(
        default=0,
        verbose_name="Hierarchy Level",
        help_text="Higher value = more authority (e.g. Admin=100, Officer=10).",
    )
    permissions = models.ManyToManyField(
        Permission,
        blank=True,
        verbose_name="Permissions",
        help_text="Specific permissions for this role.",
    )

    class Meta:
        verbose_name = "Role"
        verbose_name_plural = "Roles"
        ordering = ["-hierarchy_level"]

    def __str__(self):
        return self.name


class UserManager(BaseUserManager):
    """Manager creating users keyed by ``police_id`` instead of ``username``."""

    use_in_migrations = True

    def _create_user(self, police_id, email, password, **extra_fields):
        if not police_id:
            raise ValueError("The police ID must be set.")
        if is_reserved_police_id(police_id):
            raise ValueError(f"'{police_id}' is a reserved police ID.")
        email = self.normalize_email(email)
        user = self.model(police_id=police_id, email=email, **extra_fields)
        user.set_password(password)
        user.save(using=self._db)
        return user

    def create_user(self, police_id, email=None, password=None, **extra_fields):
        extra_fields.setdefault("is_staff", False)
        extra_fields.setdefault("is_superuser", False)
        return self._create_user(police_id, email, password, **extra_fields)

    def create_superuser(self, police_id, email=None, password=None, **extra_fields):
        extra_fields.setdefault("is_staff", True)
        extra_fields.setdefault("is_superuser", True)
        extra_fields.setdefault("is_verified", True)

        if extra_fields.get("is_staff") is not True:
            raise ValueError("Superuser must have is_staff=True.")
        if extra_fields.get("is_superuser") is not True:
            raise ValueError("Superuser must have is_superuser=True.")
        return self._create_user(police_id, email, password, **extra_fields)


class User(AbstractUser):
    """
    Police officer account.

    Login uses the police ID (or e-mail) plus passcode.  Each user holds
    exactly **one** role at a time (FK to ``Role``); self-registered
    officers receive the "Officer" role and an Admin can change it.

    Security state
    --------------
    ``failed_login_attempts`` counts consecutive bad passcodes.  When it
    reaches the lockout threshold the account is deactivated
    (``is_active=False``) until ``lockout_end``; the next login attempt
    after that moment reactivates it.
    """

    username = None

    police_id = models.CharField(
        max_length=20,
        unique=True,
        verbose_name="Police ID",
        db_index=True,
    )
    email = models.EmailField(
        unique=True,
        verbose_name="Email Address",
    )

    # ── Profile ──────────────────────────────────────────────────────
    badge_number = models.CharField(max_length=20, blank=True, default="", verbose_name="Badge Number")
    rank = models.CharField(max_length=50, blank=True, default="", verbose_name="Rank")
    department = models.CharField(max_length=100, blank=True, default="", verbose_name="Department")
    division = models.CharField(max_length=100, blank=True, default="", verbose_name="Division")
    precinct = models.CharField(max_length=100, blank=True, default="", verbose_name="Precinct")
    station = models.CharField(max_length=100, blank=True, default="", verbose_name="Station")
    special_unit = models.CharField(max_length=100, blank=True, default="", verbose_name="Special Unit")
    phone = models.CharField(max_length=20, blank=True, default="", verbose_name="Phone")
    mobile_phone = models.CharField(max_length=20, blank=True, default="", verbose_name="Mobile Phone")
    work_phone = models.CharField(max_length=20, blank=True, default="", verbose_name="Work Phone")
    profile_image_url = models.URLField(max_length=500, blank=True, default="", verbose_name="Profile Image URL")
    supervisor_id = models.CharField(
        max_length=20,
        blank=True,
        default="",
        verbose_name="Supervisor Police ID",
    )
    clearance = models.CharField(max_length=50, blank=True, default="", verbose_name="Clearance")

    # ── Single-role assignment (dynamic RBAC) ────────────────────────
    role = models.ForeignKey(
        Role,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="users",
        verbose_name="Assigned Role",
    )

    # ── Security state ───────────────────────────────────────────────
    is_verified = models.BooleanField(default=False, verbose_name="Verified")
    failed_login_attempts = models.PositiveSmallIntegerField(
        default=0,
        verbose_name="Failed Login Attempts",
    )
    lockout_end = models.DateTimeField(null=True, blank=True, verbose_name="Lockout End")
    require_password_reset = models.BooleanField(
        default=False,
        verbose_name="Require Password Reset",
    )
    last_password_change = models.DateTimeField(
        null=True,
        blank=True,
        verbose_name="Last Password Change",
    )

    USERNAME_FIELD = "police_id"
    EMAIL_FIELD = "email"
    # Fields required when creating a superuser via CLI
    REQUIRED_FIELDS = ["email", "first_name", "last_name"]

    objects = UserManager()

    class Meta:
        verbose_name = "User"
        verbose_name_plural = "Users"
        ordering = ["police_id"]
        permissions = [
            (AccountsPerms.CAN_MANAGE_USERS, "Admin-level user management"),
            (AccountsPerms.CAN_UNLOCK_ACCOUNTS, "Can unlock locked officer accounts"),
        ]

    def __str__(self):
        role_name = self.role.name if self.role else "No Role"
        return f"{self.police_id} ({self.get_full_name()}) - {role_name}"

    # ── Helper predicates ────────────────────────────────────────────

    def has_role(self, role_name: str) -> bool:
        """Check if the user's current role matches the given name."""
        return self.role is not None and self.role.name == role_name

    @property
    def hierarchy_level(self) -> int:
        """Return the hierarchy_level of the user's role (0 if none)."""
        return self.role.hierarchy_level if self.role else 0

    @property
    def is_locked(self) -> bool:
        """True while a failed-login lockout is in force."""
        return (
            not self.is_active
            and self.lockout_end is not None
            and self.lockout_end > timezone.now()
        )

    # ── RBAC Permission Overrides ────────────────────────────────────

    def get_all_permissions(self, obj=None) -> set:
        """
        Return a set of permission strings ('app_label.codename') the user has.
        """
        if not self.is_active:
            return set()

        if self.is_superuser:
            if not hasattr(self, "_superuser_perm_cache"):
                perms = Permission.objects.select_related("content_type").all()
                self._superuser_perm_cache = {f"{p.content_type.app_label}.{p.codename}" for p in perms}
            return self._superuser_perm_cache

        if not self.role:
            return set()

        if not hasattr(self, "_perm_cache"):
            perms = self.role.permissions.select_related("content_type")
            self._perm_cache = {f"{p.content_type.app_label}.{p.codename}" for p in perms}

        return self._perm_cache

    def has_perm(self, perm: str, obj=None) -> bool:
        """
        Check if the user has a specific permission.
        Superusers always have all permissions.
        Otherwise, check if the assigned role has the permission.
        """
        if self.is_active and self.is_superuser:
            return True

        return perm in self.get_all_permissions(obj)

    def has_perms(self, perm_list, obj=None) -> bool:
        return all(self.has_perm(perm, obj) for perm in perm_list)

    def has_module_perms(self, app_label: str) -> bool:
        if self.is_active and self.is_superuser:
            return True

        return any(perm.startswith(f"{app_label}.") for perm in self.get_all_permissions())

    @property
    def permissions_list(self) -> list[str]:
        """
        Flat list of permission strings granted through the user's role.
        Returned to the frontend for dynamic UI rendering.
        """
        return sorted(self.get_all_permissions())
