"""
URL configuration for day_planner project.
"""
from django.contrib import admin
from django.urls import path, include

urlpatterns = [
    path('admin/', admin.site.urls),
    path('api/calendar/', include('planner.urls')),
]
