"""
Accounts app URL configuration.

All routes are namespaced under ``accounts`` and included in the
project-level ``urls.py`` as::

    path('api/accounts/', include('accounts.urls')),

Endpoint Map
------------
Authentication
    POST   /auth/register/              → RegisterView
    POST   /auth/login/                 → LoginView
    POST   /auth/token/refresh/         → TokenRefreshView (SimpleJWT)
    POST   /auth/change-passcode/       → ChangePasscodeView
    POST   /auth/forgot-password/       → ForgotPasswordView
    POST   /auth/reset-password/        → ResetPasswordView

Current User Profile ("Me")
    GET    /me/                         → MeView  (retrieve)
    PATCH  /me/                         → MeView  (partial update)

User Management (Admin)
    GET    /users/                      → UserViewSet.list
    POST   /users/                      → UserViewSet.create
    GET    /users/{id}/                 → UserViewSet.retrieve
    PATCH  /users/{id}/                 → UserViewSet.partial_update
    DELETE /users/{id}/                 → UserViewSet.destroy
    GET    /users/{id}/cases/           → UserViewSet.cases
    PUT    /users/{id}/change-role/     → UserViewSet.change_role
    PUT    /users/{id}/promote/         → UserViewSet.promote
    POST   /users/{id}/unlock/          → UserViewSet.unlock

Roles
    GET    /roles/                      → RoleViewSet.list
"""

from django.urls import include, path
from rest_framework.routers import DefaultRouter
from rest_framework_simplejwt.views import TokenRefreshView

from .views import (
    ChangePasscodeView,
    ForgotPasswordView,
    LoginView,
    MeView,
    RegisterView,
    ResetPasswordView,
    RoleViewSet,
    UserViewSet,
)

app_name = "accounts"

router = DefaultRouter()
router.register(r"users", UserViewSet, basename="user")
router.register(r"roles", RoleViewSet, basename="role")

urlpatterns = [
    # ── Authentication ───────────────────────────────────────────────
    path("auth/register/", RegisterView.as_view(), name="register"),
    path("auth/login/", LoginView.as_view(), name="login"),
    path(
        "auth/token/refresh/",
        TokenRefreshView.as_view(),
        name="token-refresh",
    ),
    path("auth/change-passcode/", ChangePasscodeView.as_view(), name="change-passcode"),
    path("auth/forgot-password/", ForgotPasswordView.as_view(), name="forgot-password"),
    path("auth/reset-password/", ResetPasswordView.as_view(), name="reset-password"),

    # ── Current User (Me) ───────────────────────────────────────────
    path("me/", MeView.as_view(), name="me"),

    # ── Router-registered viewsets (users/, roles/) ──────────────────
    path("", include(router.urls)),
]
