#!/usr/bin/env python
"""Command-line entry point for the fuel station back-office.

Points Django at ``fuelstation.settings`` and hands the arguments to the
management framework, e.g. ``migrate``, ``seed_station``,
``compute_sales --date 2024-05-01`` or ``runserver``.
"""
import os
import sys


def main() -> None:
    os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'fuelstation.settings')
    try:
        from django.core.management import execute_from_command_line
    except ImportError as exc:  # pragma: no cover
        raise ImportError(
            "Couldn't import Django. Install the project with "
            "`pip install -e .` inside an active virtual environment."
        ) from exc
    execute_from_command_line(sys.argv)


if __name__ == '__main__':
    main()
