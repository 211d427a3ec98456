from django.urls import path

from apps.common.views import PublicConfigView, signed_file

urlpatterns = [
    path("config/", PublicConfigView.as_view(), name="public-config"),
    path("files/<str:token>/", signed_file, name="signed-file"),
]
