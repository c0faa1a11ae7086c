"""Management package for custom Django admin commands.

This package exposes additional ``manage.py`` commands used to load the
station reference data and to recompute sales.  Refer to the
documentation in ``seed_station.py`` and ``compute_sales.py`` for more
details.
"""
