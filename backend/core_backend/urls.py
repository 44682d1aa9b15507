"""
URL configuration for core_backend project.

The engine is consumed as a service layer; only the Django admin is routed.
"""

from django.contrib import admin
from django.urls import path

urlpatterns = [
    path("admin/", admin.site.urls),
]
