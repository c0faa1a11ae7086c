"""Sales computation from pump index readings.

Litres sold for a product during a block shift are the difference between
the opening and closing pump index.  Revenue is that volume multiplied by
the product's current unit price, rounded half-up to cents.  Computing
the sales of a block shift replaces any rows previously stored for the
same block shift and date, so the operation can be re-run safely after a
reading has been corrected.
"""

from __future__ import annotations

import logging
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, List, Optional

from django.db import transaction

from ..models import ZERO, BlockShift, Sale
from ..serializers import current_price

logger = logging.getLogger(__name__)

CENT = Decimal('0.01')


def compute_litres_sold(start_index: Decimal, end_index: Decimal) -> Decimal:
    return Decimal(start_index) - Decimal(end_index)


def compute_revenue(litres: Decimal, unit_price: Optional[Decimal]) -> Decimal:
    """Return ``litres * unit_price`` rounded half-up to two places.

    A product that has no price yet yields a revenue of zero.
    """

    if unit_price is None:
        return ZERO.quantize(CENT)
    return (Decimal(litres) * Decimal(unit_price)).quantize(CENT, rounding=ROUND_HALF_UP)


@transaction.atomic
def compute_block_shift_sales(block_shift: BlockShift, sale_date: date) -> List[Sale]:
    """Recompute the sales of ``block_shift`` for ``sale_date``.

    Every index reading of the block shift produces one :class:`Sale`.  The
    previous rows for the same block shift and date are removed inside the
    same transaction, so a failure leaves the stored sales untouched.
    """

    readings = block_shift.readings.select_related('product', 'product__price').order_by('pk')
    deleted, _ = Sale.objects.filter(block_shift=block_shift, date=sale_date).delete()

    sales = []
    for reading in readings:
        price = current_price(reading.product)
        litres = compute_litres_sold(reading.start_index, reading.end_index)
        sales.append(
            Sale.objects.create(
                block_shift=block_shift,
                product=reading.product,
                litres_sold=litres,
                revenue=compute_revenue(litres, price.sale_unit_price if price else None),
                date=sale_date,
            )
        )

    logger.info(
        'Computed %d sale(s) for block shift %s on %s (replaced %d)',
        len(sales),
        block_shift.pk,
        sale_date.isoformat(),
        deleted,
    )
    return sales


def compute_sales_for_date(sale_date: date, block_shifts: Optional[Iterable[BlockShift]] = None) -> List[Sale]:
    """Recompute sales for every block shift scheduled on ``sale_date``."""

    if block_shifts is None:
        block_shifts = BlockShift.objects.filter(date=sale_date).order_by('pk')
    sales: List[Sale] = []
    for block_shift in block_shifts:
        sales.extend(compute_block_shift_sales(block_shift, sale_date))
    return sales
