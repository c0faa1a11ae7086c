"""URL declarations for the back-office JSON API.

The routes are mounted under ``/api/v1/`` by the project URLconf and keep
the resource paths used by the existing front-end, without trailing
slashes.  Detail routes accept any string so malformed identifiers get a
JSON ``400`` from the view instead of an HTML 404 from the resolver.
"""

from django.urls import path

from . import views
from . import views_dashboard as dashboard

urlpatterns = [
    # Catalogue
    path('products', views.products_collection, name='products'),
    path('products/<str:pk>', views.product_detail, name='product_detail'),
    path('blocks', views.blocks_collection, name='blocks'),
    path('blocks/<str:pk>', views.block_detail, name='block_detail'),
    path('cashiers', views.cashiers_collection, name='cashiers'),
    path('cashiers/<str:pk>', views.cashier_detail, name='cashier_detail'),
    path('shifts', views.shifts_collection, name='shifts'),
    path('shifts/<str:pk>', views.shift_detail, name='shift_detail'),
    # Scheduling and pump readings
    path('block-shifts', views.block_shifts_collection, name='block_shifts'),
    path('block-shifts/<str:pk>', views.block_shift_detail, name='block_shift_detail'),
    path('indexes', views.indexes_collection, name='indexes'),
    path('indexes/<str:pk>', views.index_detail, name='index_detail'),
    # Older clients still post readings here
    path('readings', views.readings_collection, name='readings'),
    path('readings/<str:pk>', views.index_detail, name='reading_detail'),
    path('sales', views.sales_collection, name='sales'),
    # Stock
    path('stock', views.stock_collection, name='stock'),
    path('stock/<str:pk>', views.stock_detail, name='stock_detail'),
    path('stock-records', views.stock_records_collection, name='stock_records'),
    path('stock-records/<str:pk>', views.stock_record_detail, name='stock_record_detail'),
    # Pricing
    path('prices', views.prices_collection, name='prices'),
    path('prices/<str:pk>', views.price_detail, name='price_detail'),
    path('price-history', views.price_history_collection, name='price_history'),
    # Dashboard and reports
    path('dashboard/price-chart', dashboard.price_chart_view, name='price_chart'),
    path('dashboard/stock-chart', dashboard.stock_chart_view, name='stock_chart'),
    path('reports/daily', dashboard.daily_report_view, name='daily_report'),
    path('reports/daily/export', dashboard.daily_report_export_view, name='daily_report_export'),
]
