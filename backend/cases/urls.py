"""
Cases app URL configuration.

All routes are registered under the ``/api/cases/`` prefix.

Route Hierarchy
---------------
  /api/cases/                              → list / create
  /api/cases/{id}/                         → retrieve / update / destroy

  ── Collection @actions ─────────────────────────────────────────
  GET  /api/cases/mine/                     → reported by or assigned to me
  GET  /api/cases/search/?keyword=          → title / description search
  GET  /api/cases/statistics/               → per-status counts

  ── Lifecycle @actions (resource-level RPC) ─────────────────────
  POST  /api/cases/{id}/approve/
  PATCH /api/cases/{id}/status/

  ── Assignment @actions ─────────────────────────────────────────
  POST /api/cases/{id}/assign/              → direct assignment
  POST /api/cases/{id}/handover/            → audited handover

  ── Sub-resource @actions ───────────────────────────────────────
  POST /api/cases/{id}/comments/
  POST /api/cases/{id}/documents/           (multipart)
"""

from rest_framework.routers import DefaultRouter

from .views import CaseViewSet

app_name = "cases"

router = DefaultRouter()
router.register(
    prefix=r"cases",
    viewset=CaseViewSet,
    basename="case",
)

urlpatterns = router.urls
