from django.urls import path

from apps.accounts.views import AdminCheckView, AdminDestroyView, AdminListCreateView

urlpatterns = [
    path("admin/check/", AdminCheckView.as_view(), name="admin-check"),
    path("admin/admins/", AdminListCreateView.as_view(), name="admin-list"),
    path("admin/admins/<int:user_id>/", AdminDestroyView.as_view(), name="admin-remove"),
]
