"""Monthly line-chart data for the dashboard.

Both charts share the same shape: ``labels`` are the distinct days that
carry at least one data point, and there is one dataset per product whose
``data`` list is aligned with the labels (``None`` where the product has
no value on that day).  The styling keys are consumed as-is by the
front-end charting library.
"""

from __future__ import annotations

import calendar
from dataclasses import dataclass
from datetime import date, datetime, time
from typing import Any, Dict, List, Mapping, Optional

from django.utils import timezone

from ..models import Price, PriceHistory, StockRecord

PRICE_PALETTE = [
    'rgb(239, 68, 68)',  # red
    'rgb(16, 185, 129)',  # emerald
    'rgb(245, 158, 11)',  # amber
    'rgb(59, 130, 246)',  # blue
    'rgb(139, 92, 246)',  # violet
    'rgb(236, 72, 153)',  # pink
    'rgb(34, 197, 94)',  # green
]

STOCK_PALETTE = [
    'rgb(59, 130, 246)',  # blue
    'rgb(16, 185, 129)',  # emerald
    'rgb(245, 158, 11)',  # amber
    'rgb(239, 68, 68)',  # red
    'rgb(139, 92, 246)',  # violet
    'rgb(236, 72, 153)',  # pink
    'rgb(34, 197, 94)',  # green
]


@dataclass(frozen=True)
class MonthWindow:
    """First and last instant of a calendar month in the active time zone."""

    year: int
    month: int

    @property
    def first_day(self) -> date:
        return date(self.year, self.month, 1)

    @property
    def last_day(self) -> date:
        return date(self.year, self.month, calendar.monthrange(self.year, self.month)[1])

    @property
    def start(self) -> datetime:
        return timezone.make_aware(datetime.combine(self.first_day, time.min))

    @property
    def end(self) -> datetime:
        return timezone.make_aware(datetime.combine(self.last_day, time(23, 59, 59)))

    def contains(self, day: date) -> bool:
        return self.first_day <= day <= self.last_day

    def as_range(self) -> Dict[str, str]:
        return {'start': self.first_day.isoformat(), 'end': self.last_day.isoformat()}


def month_window(month: Optional[int] = None, year: Optional[int] = None) -> MonthWindow:
    today = timezone.localdate()
    return MonthWindow(year=year or today.year, month=month or today.month)


def _datasets(
    points: Mapping[str, Mapping[str, float]],
    labels: List[str],
    palette: List[str],
) -> List[Dict[str, Any]]:
    datasets = []
    for index, product_name in enumerate(sorted(points)):
        color = palette[index % len(palette)]
        series = points[product_name]
        datasets.append(
            {
                'label': product_name,
                'data': [series.get(label) for label in labels],
                'borderColor': color,
                'backgroundColor': f"{color}20",
                'tension': 0.4,
                'fill': False,
                'pointRadius': 4,
                'pointHoverRadius': 6,
            }
        )
    return datasets


def price_chart(window: MonthWindow) -> Dict[str, Any]:
    """Build the price evolution chart for ``window``.

    Each product contributes its last recorded price per day.  When today
    falls inside the window it is always labelled, and products without a
    change today are plotted at their current price.
    """

    history = (
        PriceHistory.objects.filter(change_date__gte=window.start, change_date__lte=window.end)
        .select_related('price__product')
        .order_by('price__product__name', 'change_date', 'pk')
    )
    entries = list(history)

    points: Dict[str, Dict[str, float]] = {}
    days = set()
    for entry in entries:
        day = timezone.localtime(entry.change_date).date().isoformat()
        days.add(day)
        points.setdefault(entry.price.product.name, {})[day] = float(entry.new_price)

    today = timezone.localdate()
    if window.contains(today):
        current_prices = list(Price.objects.select_related('product'))
        if current_prices:
            label = today.isoformat()
            days.add(label)
            for price in current_prices:
                points.setdefault(price.product.name, {}).setdefault(label, float(price.sale_unit_price))

    labels = sorted(days)
    return {
        'labels': labels,
        'datasets': _datasets(points, labels, PRICE_PALETTE),
        'summary': {
            'totalPriceChanges': len(entries),
            'products': len(points),
            'dateRange': window.as_range(),
        },
    }


def stock_chart(window: MonthWindow) -> Dict[str, Any]:
    """Build the stock level chart for ``window`` from dated stock records."""

    records = list(
        StockRecord.objects.filter(record_date__gte=window.first_day, record_date__lte=window.last_day)
        .select_related('product')
        .order_by('product__name', 'record_date')
    )

    points: Dict[str, Dict[str, float]] = {}
    for record in records:
        points.setdefault(record.product.name, {})[record.record_date.isoformat()] = float(record.quantity)

    labels = sorted({record.record_date.isoformat() for record in records})
    return {
        'labels': labels,
        'datasets': _datasets(points, labels, STOCK_PALETTE),
        'summary': {
            'totalRecords': len(records),
            'products': len(points),
            'dateRange': window.as_range(),
        },
    }
