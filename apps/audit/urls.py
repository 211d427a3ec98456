from django.urls import path

from apps.audit.views import AdminLogListView

urlpatterns = [
    path("admin/logs/", AdminLogListView.as_view(), name="admin-logs"),
]
