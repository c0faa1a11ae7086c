"""Root URL configuration for the fuel station back-office project."""

from django.contrib import admin
from django.urls import include, path

urlpatterns = [
    path('admin/', admin.site.urls),
    path('api/v1/', include('backoffice.urls')),
]
