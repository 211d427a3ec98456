from rest_framework import status
from rest_framework.exceptions import APIException, NotAuthenticated
from rest_framework.views import exception_handler


class Conflict(APIException):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "The request conflicts with the current state of the resource."
    default_code = "conflict"


class UpstreamError(APIException):
    status_code = status.HTTP_502_BAD_GATEWAY
    default_detail = "An upstream service failed. Please try again later."
    default_code = "upstream_error"


def api_exception_handler(exc, context):
    # Missing and insufficient credentials look the same to the caller.
    if isinstance(exc, NotAuthenticated):
        exc.status_code = status.HTTP_403_FORBIDDEN

    response = exception_handler(exc, context)
    if response is None:
        return response

    if isinstance(response.data, dict):
        detail = response.data.get("detail", "Request failed")
        fields = {k: v for k, v in response.data.items() if k != "detail"}
    else:
        detail = "Request failed"
        fields = {}

    response.data = {
        "code": getattr(exc, "default_code", "error"),
        "detail": detail,
        "fields": fields,
    }
    return response
