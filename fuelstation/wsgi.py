"""WSGI entry point for the fuel station back-office project."""

import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'fuelstation.settings')

application = get_wsgi_application()
