"""Application configuration for the back-office app.

``ready()`` does not touch the database; reference data is loaded through
the ``seed_station`` management command.
"""

from __future__ import annotations

from django.apps import AppConfig


class BackofficeConfig(AppConfig):
    """Custom AppConfig for the back-office application."""

    default_auto_field = 'django.db.models.BigAutoField'
    name = 'backoffice'
    verbose_name = 'Station back-office'
