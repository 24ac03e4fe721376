from __future__ import annotations

from django.conf import settings
from django.contrib import admin
from django.urls import path

from api.api import api

api_base = (getattr(settings, "API_BASE_PATH", "api") or "api").strip("/")

urlpatterns = [
    path("admin/", admin.site.urls),
    path(f"{api_base}/", api.urls),
]
