"""
Complaints app URL configuration.

All routes are registered under the ``/api/complaints/`` prefix.

Route Hierarchy
---------------
  /api/complaints/                        → list / create
  /api/complaints/{id}/                   → retrieve / partial_update

  ── Sub-resource @actions ───────────────────────────────────────
  POST   /api/complaints/{id}/attachments/
  DELETE /api/complaints/{id}/attachments/{attachment_id}/
  GET    /api/complaints/{id}/timeline/

  ── Public ──────────────────────────────────────────────────────
  GET  /api/complaints/track/{complaint_id}/
"""

from django.urls import path
from rest_framework.routers import DefaultRouter

from .views import ComplaintTrackingView, ComplaintViewSet

app_name = "complaints"

router = DefaultRouter()
router.register(
    prefix=r"complaints",
    viewset=ComplaintViewSet,
    basename="complaint",
)

urlpatterns = [
    path(
        "complaints/track/<str:complaint_id>/",
        ComplaintTrackingView.as_view(),
        name="complaint-track",
    ),
] + router.urls
