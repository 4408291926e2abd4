"""
Departments app URL configuration.

  /api/departments/                    → list / create
  /api/departments/{id}/               → retrieve / partial_update / destroy
  GET /api/departments/{id}/complaints/
  GET /api/departments/{id}/users/
"""

from rest_framework.routers import DefaultRouter

from .views import DepartmentViewSet

app_name = "departments"

router = DefaultRouter()
router.register(
    prefix=r"departments",
    viewset=DepartmentViewSet,
    basename="department",
)

urlpatterns = router.urls
