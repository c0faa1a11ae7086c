"""Price changes and their audit trail."""

from __future__ import annotations

import logging
from decimal import Decimal

from django.db import transaction
from django.utils import timezone

from ..models import Price, PriceHistory, Product

logger = logging.getLogger(__name__)

HISTORY_PREVIEW = 5


@transaction.atomic
def create_price(product: Product, sale_unit_price: Decimal) -> Price:
    """Set the first price of ``product`` and open its history."""

    price = Price.objects.create(product=product, sale_unit_price=sale_unit_price)
    PriceHistory.objects.create(
        price=price,
        old_price=None,
        new_price=sale_unit_price,
        change_date=timezone.now(),
    )
    logger.info('Price for product %s set to %s', product.pk, sale_unit_price)
    return price


@transaction.atomic
def change_price(price: Price, sale_unit_price: Decimal) -> Price:
    """Update ``price`` and append an old -> new entry to its history.

    The old value is read from the locked row, not from ``price``, which
    may have been loaded before another change was committed.
    """

    locked = Price.objects.select_for_update().get(pk=price.pk)
    old_price = locked.sale_unit_price
    locked.sale_unit_price = sale_unit_price
    locked.save(update_fields=['sale_unit_price', 'updated_at'])
    PriceHistory.objects.create(
        price=locked,
        old_price=old_price,
        new_price=sale_unit_price,
        change_date=timezone.now(),
    )
    price.sale_unit_price = locked.sale_unit_price
    price.updated_at = locked.updated_at
    logger.info('Price %s for product %s changed %s -> %s', locked.pk, locked.product_id, old_price, sale_unit_price)
    return price


def latest_history(price: Price, limit: int = HISTORY_PREVIEW):
    return list(price.history.all()[:limit])
