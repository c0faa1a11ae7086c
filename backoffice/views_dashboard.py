"""Dashboard chart data and daily report endpoints."""

from __future__ import annotations

import logging

from django.conf import settings
from django.http import HttpRequest, HttpResponse, JsonResponse
from django.utils import timezone

from .forms import ChartPeriodForm, ReportExportForm
from .http import ApiError, api_view, form_error_message, parse_date_param, parse_json_body
from .services.charts import month_window, price_chart, stock_chart
from .services.reports import daily_report, export_daily_report

logger = logging.getLogger(__name__)


def _period_from_request(request: HttpRequest):
    form = ChartPeriodForm(request.GET)
    if not form.is_valid():
        raise ApiError(form_error_message(form))
    return month_window(form.cleaned_data.get('month'), form.cleaned_data.get('year'))


@api_view('GET')
def price_chart_view(request: HttpRequest) -> HttpResponse:
    return JsonResponse(price_chart(_period_from_request(request)))


@api_view('GET')
def stock_chart_view(request: HttpRequest) -> HttpResponse:
    return JsonResponse(stock_chart(_period_from_request(request)))


@api_view('GET')
def daily_report_view(request: HttpRequest) -> HttpResponse:
    """Totals for one day of sales; defaults to today."""

    report_date = parse_date_param(request.GET, 'date') or timezone.localdate()
    return JsonResponse(daily_report(report_date))


@api_view('POST')
def daily_report_export_view(request: HttpRequest) -> HttpResponse:
    payload = parse_json_body(request)
    form = ReportExportForm.from_payload(payload, totals=payload.get('data'))
    if not form.is_valid():
        raise ApiError(form.error_message())

    report = export_daily_report(
        form.cleaned_data['date'],
        form.cleaned_data['format'],
        form.cleaned_data['data'],
        settings.BACKOFFICE_CURRENCY,
    )
    logger.info('Exported daily report %s as %s', report.filename, form.cleaned_data['format'])
    response = HttpResponse(report.content, content_type=report.content_type)
    response['Content-Disposition'] = f'attachment; filename="{report.filename}"'
    return response
