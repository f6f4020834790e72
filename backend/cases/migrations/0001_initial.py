import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Case",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True, verbose_name="Created At")),
                ("updated_at", models.DateTimeField(auto_now=True, verbose_name="Updated At")),
                ("case_number", models.CharField(blank=True, db_index=True, default="", max_length=50, verbose_name="Case Number")),
                ("title", models.CharField(max_length=255, verbose_name="Title")),
                ("description", models.TextField(blank=True, default="", verbose_name="Description")),
                ("category", models.CharField(blank=True, default="", max_length=100, verbose_name="Category")),
                ("severity", models.CharField(default="Normal", max_length=20, verbose_name="Severity")),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("Pending", "Pending"),
                            ("Open", "Open"),
                            ("Investigating", "Investigating"),
                            ("Closed", "Closed"),
                            ("Resolved", "Resolved"),
                        ],
                        db_index=True,
                        default="Pending",
                        max_length=20,
                        verbose_name="Status",
                    ),
                ),
                ("is_approved", models.BooleanField(default=False, verbose_name="Approved")),
                ("is_closed", models.BooleanField(default=False, verbose_name="Closed")),
                ("is_archived", models.BooleanField(default=False, verbose_name="Archived")),
                (
                    "assigned_officer_id",
                    models.CharField(db_index=True, max_length=20, verbose_name="Assigned Officer (Police ID)"),
                ),
                (
                    "previous_officer_id",
                    models.CharField(blank=True, max_length=20, null=True, verbose_name="Previous Officer (Police ID)"),
                ),
                (
                    "reported_at",
                    models.DateTimeField(default=django.utils.timezone.now, editable=False, verbose_name="Reported At"),
                ),
                ("resolved_at", models.DateTimeField(blank=True, null=True, verbose_name="Resolved At")),
                (
                    "created_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="created_cases",
                        to=settings.AUTH_USER_MODEL,
                        verbose_name="Created By",
                    ),
                ),
            ],
            options={
                "verbose_name": "Case",
                "verbose_name_plural": "Cases",
                "ordering": ["-reported_at", "-id"],
                "permissions": [
                    ("can_approve_case", "Can approve a reported case"),
                    ("can_auto_approve_case", "Cases created are approved immediately"),
                    ("can_assign_case", "Can directly assign a case to an officer"),
                    ("can_view_statistics", "Can view case statistics"),
                ],
            },
        ),
        migrations.CreateModel(
            name="CaseComment",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("text", models.TextField(verbose_name="Text")),
                ("author_id", models.CharField(max_length=20, verbose_name="Author (Police ID)")),
                ("is_system", models.BooleanField(default=False, verbose_name="System Comment")),
                ("created_at", models.DateTimeField(default=django.utils.timezone.now, verbose_name="Created At")),
                (
                    "case",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="comments",
                        to="cases.case",
                        verbose_name="Case",
                    ),
                ),
            ],
            options={
                "verbose_name": "Case Comment",
                "verbose_name_plural": "Case Comments",
                "ordering": ["created_at", "id"],
            },
        ),
        migrations.CreateModel(
            name="CaseDocument",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("file_name", models.CharField(max_length=255, verbose_name="File Name")),
                ("file_url", models.CharField(max_length=1000, verbose_name="File URL")),
                ("uploaded_by", models.CharField(max_length=20, verbose_name="Uploaded By (Police ID)")),
                ("uploaded_at", models.DateTimeField(default=django.utils.timezone.now, verbose_name="Uploaded At")),
                (
                    "case",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="documents",
                        to="cases.case",
                        verbose_name="Case",
                    ),
                ),
            ],
            options={
                "verbose_name": "Case Document",
                "verbose_name_plural": "Case Documents",
                "ordering": ["uploaded_at", "id"],
            },
        ),
    ]
