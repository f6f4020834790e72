import django.contrib.auth.models
import django.db.models.deletion
import django.utils.timezone
from django.db import migrations, models

import accounts.models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("auth", "0012_alter_user_first_name_max_length"),
    ]

    operations = [
        migrations.CreateModel(
            name="Role",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=100, unique=True, verbose_name="Role Name")),
                ("description", models.TextField(blank=True, default="", verbose_name="Description")),
                (
                    "hierarchy_level",
                    models.PositiveSmallIntegerField(
                        default=0,
                        help_text="Higher value = more authority (e.g. Admin=100, Officer=10).",
                        verbose_name="Hierarchy Level",
                    ),
                ),
                (
                    "permissions",
                    models.ManyToManyField(
                        blank=True,
                        help_text="Specific permissions for this role.",
                        to="auth.permission",
                        verbose_name="Permissions",
                    ),
                ),
            ],
            options={
                "verbose_name": "Role",
                "verbose_name_plural": "Roles",
                "ordering": ["-hierarchy_level"],
            },
        ),
        migrations.CreateModel(
            name="User",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("password", models.CharField(max_length=128, verbose_name="password")),
                ("last_login", models.DateTimeField(blank=True, null=True, verbose_name="last login")),
                (
                    "is_superuser",
                    models.BooleanField(
                        default=False,
                        help_text="Designates that this user has all permissions without explicitly assigning them.",
                        verbose_name="superuser status",
                    ),
                ),
                ("first_name", models.CharField(blank=True, max_length=150, verbose_name="first name")),
                ("last_name", models.CharField(blank=True, max_length=150, verbose_name="last name")),
                (
                    "is_staff",
                    models.BooleanField(
                        default=False,
                        help_text="Designates whether the user can log into this admin site.",
                        verbose_name="staff status",
                    ),
                ),
                (
                    "is_active",
                    models.BooleanField(
                        default=True,
                        help_text=(
                            "Designates whether this user should be treated as active. "
                            "Unselect this instead of deleting accounts."
                        ),
                        verbose_name="active",
                    ),
                ),
                ("date_joined", models.DateTimeField(default=django.utils.timezone.now, verbose_name="date joined")),
                ("police_id", models.CharField(db_index=True, max_length=20, unique=True, verbose_name="Police ID")),
                ("email", models.EmailField(max_length=254, unique=True, verbose_name="Email Address")),
                ("badge_number", models.CharField(blank=True, default="", max_length=20, verbose_name="Badge Number")),
                ("rank", models.CharField(blank=True, default="", max_length=50, verbose_name="Rank")),
                ("department", models.CharField(blank=True, default="", max_length=100, verbose_name="Department")),
                ("division", models.CharField(blank=True, default="", max_length=100, verbose_name="Division")),
                ("precinct", models.CharField(blank=True, default="", max_length=100, verbose_name="Precinct")),
                ("station", models.CharField(blank=True, default="", max_length=100, verbose_name="Station")),
                ("special_unit", models.CharField(blank=True, default="", max_length=100, verbose_name="Special Unit")),
                ("phone", models.CharField(blank=True, default="", max_length=20, verbose_name="Phone")),
                ("mobile_phone", models.CharField(blank=True, default="", max_length=20, verbose_name="Mobile Phone")),
                ("work_phone", models.CharField(blank=True, default="", max_length=20, verbose_name="Work Phone")),
                (
                    "profile_image_url",
                    models.URLField(blank=True, default="", max_length=500, verbose_name="Profile Image URL"),
                ),
                (
                    "supervisor_id",
                    models.CharField(blank=True, default="", max_length=20, verbose_name="Supervisor Police ID"),
                ),
                ("clearance", models.CharField(blank=True, default="", max_length=50, verbose_name="Clearance")),
                ("is_verified", models.BooleanField(default=False, verbose_name="Verified")),
                ("failed_login_attempts", models.PositiveSmallIntegerField(default=0, verbose_name="Failed Login Attempts")),
                ("lockout_end", models.DateTimeField(blank=True, null=True, verbose_name="Lockout End")),
                ("require_password_reset", models.BooleanField(default=False, verbose_name="Require Password Reset")),
                ("last_password_change", models.DateTimeField(blank=True, null=True, verbose_name="Last Password Change")),
                (
                    "groups",
                    models.ManyToManyField(
                        blank=True,
                        help_text=(
                            "The groups this user belongs to. A user will get all permissions "
                            "granted to each of their groups."
                        ),
                        related_name="user_set",
                        related_query_name="user",
                        to="auth.group",
                        verbose_name="groups",
                    ),
                ),
                (
                    "user_permissions",
                    models.ManyToManyField(
                        blank=True,
                        help_text="Specific permissions for this user.",
                        related_name="user_set",
                        related_query_name="user",
                        to="auth.permission",
                        verbose_name="user permissions",
                    ),
                ),
                (
                    "role",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="users",
                        to="accounts.role",
                        verbose_name="Assigned Role",
                    ),
                ),
            ],
            options={
                "verbose_name": "User",
                "verbose_name_plural": "Users",
                "ordering": ["police_id"],
                "permissions": [
                    ("can_manage_users", "Admin-level user management"),
                    ("can_unlock_accounts", "Can unlock locked officer accounts"),
                ],
            },
            managers=[
                ("objects", accounts.models.UserManager()),
            ],
        ),
    ]
