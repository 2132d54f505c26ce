"""
Root URL configuration for the DSP course platform backend.

- /admin/: Django admin (Jazzmin theme)
- /api/elearning/: E-Learning API (purchases, progress, token)
- /ping/: Health check
"""

from django.contrib import admin
from django.http import JsonResponse
from django.urls import include, path


def ping(request):
    return JsonResponse({"status": "healthy"})


urlpatterns = [
    path("admin/", admin.site.urls),
    path("api/elearning/", include("elearning.urls")),
    path("ping/", ping, name="ping"),
]
