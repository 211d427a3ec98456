from django.db import DatabaseError, connection
from django.http import JsonResponse
from django.utils import timezone


def health(request):
    try:
        with connection.cursor() as cursor:
            cursor.execute("SELECT 1")
    except DatabaseError:
        return JsonResponse({"status": "degraded", "timestamp": timezone.now().isoformat()}, status=503)
    return JsonResponse({"status": "ok", "timestamp": timezone.now().isoformat()})
