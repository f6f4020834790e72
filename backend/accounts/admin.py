from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin

from .models import Role, User


@admin.register(Role)
class RoleAdmin(admin.ModelAdmin):
    list_display = ("name", "hierarchy_level", "description")
    search_fields = ("name",)
    ordering = ("-hierarchy_level",)
    filter_horizontal = ("permissions",)


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    list_display = ("police_id", "email", "first_name", "last_name",
                    "department", "rank", "is_active", "role")
    search_fields = ("police_id", "email", "first_name", "last_name", "badge_number")
    list_filter = ("is_active", "is_verified", "is_staff", "role", "department")
    ordering = ("police_id",)
    filter_horizontal = ("groups", "user_permissions")
    readonly_fields = ("last_login", "date_joined", "last_password_change")
    fieldsets = (
        (None, {"fields": ("police_id", "password")}),
        ("Personal info", {"fields": ("first_name", "last_name", "email", "phone",
                                      "mobile_phone", "work_phone", "profile_image_url")}),
        ("Service", {"fields": ("badge_number", "rank", "department", "division",
                                "precinct", "station", "special_unit",
                                "supervisor_id", "clearance", "role")}),
        ("Security", {"fields": ("is_active", "is_verified", "failed_login_attempts",
                                 "lockout_end", "require_password_reset",
                                 "last_password_change")}),
        ("Permissions", {"fields": ("is_staff", "is_superuser", "groups", "user_permissions")}),
        ("Important dates", {"fields": ("last_login", "date_joined")}),
    )
    add_fieldsets = (
        (None, {
            "classes": ("wide",),
            "fields": ("police_id", "email", "first_name", "last_name",
                       "role", "password1", "password2"),
        }),
    )
