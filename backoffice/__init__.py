"""Back-office application for the fuel station.

This package contains the models, JSON API views, forms, services and
management commands that power day-to-day station administration:
products, pumps ("blocks"), cashiers, shifts and their scheduling, pump
index readings, computed sales, stock levels and pricing with history.
Dashboard chart data and daily report exports are built on top of the
same tables.
"""
