"""
Reports app URL configuration.

    path('api/reports/', include('reports.urls'))

GET /complaints/{id}/    → ComplaintReportView
GET /departments/{id}/   → DepartmentReportView  (json | csv)
GET /system/             → SystemReportView      (json | csv)
"""

from django.urls import path

from .views import ComplaintReportView, DepartmentReportView, SystemReportView

app_name = "reports"

urlpatterns = [
    path("complaints/<int:pk>/", ComplaintReportView.as_view(), name="complaint-report"),
    path("departments/<int:pk>/", DepartmentReportView.as_view(), name="department-report"),
    path("system/", SystemReportView.as_view(), name="system-report"),
]
