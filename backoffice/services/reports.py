"""Daily sales report and its downloadable renditions.

The daily report aggregates the stored sales of one day.  Essence and
mazout volumes are summed from every product whose name contains that
word, so grades such as "Premium Essence" are counted with essence.
Exports are produced from the totals supplied by the client (the figures
it displayed) as printable HTML, CSV or an ``xlsx`` workbook.
"""

from __future__ import annotations

import csv
from dataclasses import dataclass
from datetime import date
from io import BytesIO, StringIO
from typing import Any, Dict, List, Mapping

from django.db.models import Sum
from django.template.loader import render_to_string
from django.utils import timezone
from openpyxl import Workbook
from openpyxl.styles import Font

from ..models import Sale
from .formatting import format_currency, format_litres, format_number

ESSENCE_KEYWORD = 'essence'
MAZOUT_KEYWORD = 'mazout'

XLSX_CONTENT_TYPE = 'application/vnd.openxmlformats-officedocument.spreadsheetml.sheet'


@dataclass
class ExportedReport:
    content: bytes
    content_type: str
    filename: str


def daily_report(report_date: date) -> Dict[str, Any]:
    """Summarise the sales stored for ``report_date``."""

    rows = (
        Sale.objects.filter(date=report_date)
        .values('product_id', 'product__name')
        .annotate(litres=Sum('litres_sold'), revenue=Sum('revenue'))
        .order_by('product__name')
    )

    total_essence = 0.0
    total_mazout = 0.0
    total_revenue = 0.0
    products: List[Dict[str, Any]] = []
    for row in rows:
        name = row['product__name']
        litres = float(row['litres'] or 0)
        revenue = float(row['revenue'] or 0)
        total_revenue += revenue
        lowered = name.lower()
        if ESSENCE_KEYWORD in lowered:
            total_essence += litres
        elif MAZOUT_KEYWORD in lowered:
            total_mazout += litres
        products.append(
            {
                'productId': row['product_id'],
                'name': name,
                'litresSold': round(litres, 2),
                'revenue': round(revenue, 2),
            }
        )

    return {
        'date': report_date.isoformat(),
        'totalEssence': round(total_essence, 2),
        'totalMazout': round(total_mazout, 2),
        'totalRevenue': round(total_revenue, 2),
        'products': products,
    }


def _summary(totals: Mapping[str, float]) -> Dict[str, float]:
    essence = float(totals['total_essence'])
    mazout = float(totals['total_mazout'])
    revenue = float(totals['total_revenue'])
    volume = essence + mazout
    return {
        'essence': essence,
        'mazout': mazout,
        'volume': volume,
        'revenue': revenue,
        'average_price': revenue / volume if volume else 0.0,
    }


def render_html(report_date: date, totals: Mapping[str, float]) -> ExportedReport:
    summary = _summary(totals)
    html = render_to_string(
        'backoffice/daily_report.html',
        {
            'report_date': report_date,
            'generated_at': timezone.localtime(),
            'essence': format_litres(summary['essence'], 2),
            'mazout': format_litres(summary['mazout'], 2),
            'volume': format_litres(summary['volume'], 2),
            'revenue': format_currency(summary['revenue']),
            'average_price': format_currency(summary['average_price']),
        },
    )
    return ExportedReport(
        content=html.encode('utf-8'),
        content_type='text/html; charset=utf-8',
        filename=f"daily-report-{report_date.isoformat()}.html",
    )


def render_csv(report_date: date, totals: Mapping[str, float], currency: str) -> ExportedReport:
    summary = _summary(totals)
    day = report_date.isoformat()
    buffer = StringIO()
    writer = csv.writer(buffer, lineterminator='\n')
    writer.writerow([f"Gas Station Daily Report - {day}"])
    writer.writerow([f"Generated on: {timezone.localtime():%Y-%m-%d %H:%M:%S}"])
    writer.writerow([])
    writer.writerow(['Summary:'])
    writer.writerow(['Metric', 'Value'])
    writer.writerow(['Essence Sold (L)', format_number(summary['essence'])])
    writer.writerow(['Mazout Sold (L)', format_number(summary['mazout'])])
    writer.writerow(['Total Volume (L)', format_number(summary['volume'])])
    writer.writerow([f"Total Revenue ({currency})", format_number(summary['revenue'])])
    writer.writerow([f"Average Price per Liter ({currency})", format_number(summary['average_price'], 3)])
    writer.writerow([])
    writer.writerow(['Detailed Breakdown:'])
    writer.writerow(
        ['Date', 'Essence Volume (L)', 'Mazout Volume (L)', 'Total Volume (L)', f"Total Revenue ({currency})"]
    )
    writer.writerow(
        [
            day,
            format_number(summary['essence']),
            format_number(summary['mazout']),
            format_number(summary['volume']),
            format_number(summary['revenue']),
        ]
    )
    return ExportedReport(
        content=buffer.getvalue().encode('utf-8'),
        content_type='text/csv; charset=utf-8',
        filename=f"daily-report-{day}.csv",
    )


def render_xlsx(report_date: date, totals: Mapping[str, float], currency: str) -> ExportedReport:
    summary = _summary(totals)
    day = report_date.isoformat()
    wb = Workbook()
    ws = wb.active
    ws.title = 'Daily Report'
    ws.append([f"Gas Station Daily Report - {day}"])
    ws['A1'].font = Font(bold=True, size=14)
    ws.append([f"Generated on: {timezone.localtime():%Y-%m-%d %H:%M:%S}"])
    ws.append([])
    ws.append(['Metric', 'Value'])
    ws.append(['Essence Sold (L)', round(summary['essence'], 2)])
    ws.append(['Mazout Sold (L)', round(summary['mazout'], 2)])
    ws.append(['Total Volume (L)', round(summary['volume'], 2)])
    ws.append([f"Total Revenue ({currency})", round(summary['revenue'], 2)])
    ws.append([f"Average Price per Liter ({currency})", round(summary['average_price'], 3)])
    for cell in ws[4]:
        cell.font = Font(bold=True)
    ws.column_dimensions['A'].width = 32
    ws.column_dimensions['B'].width = 16

    buffer = BytesIO()
    wb.save(buffer)
    return ExportedReport(
        content=buffer.getvalue(),
        content_type=XLSX_CONTENT_TYPE,
        filename=f"daily-report-{day}.xlsx",
    )


def export_daily_report(report_date: date, export_format: str, totals: Mapping[str, float], currency: str) -> ExportedReport:
    """Render the daily report in ``export_format`` (``pdf``, ``excel`` or ``xlsx``)."""

    if export_format == 'pdf':
        return render_html(report_date, totals)
    if export_format == 'excel':
        return render_csv(report_date, totals, currency)
    if export_format == 'xlsx':
        return render_xlsx(report_date, totals, currency)
    raise ValueError(f"Unsupported export format: {export_format}")
