"""Shared fixtures for the back-office API tests."""

from __future__ import annotations

import json
from datetime import date, time
from decimal import Decimal
from types import SimpleNamespace
from typing import Any, Optional

from django.urls import reverse

from backoffice.models import Block, BlockShift, Cashier, IndexReading, Price, Product, Shift


class JsonApiMixin:
    """Small helpers around ``self.client`` for JSON requests."""

    def url(self, name: str, pk: Optional[Any] = None) -> str:
        return reverse(name, kwargs={'pk': pk}) if pk is not None else reverse(name)

    def post_json(self, name: str, payload: Any):
        return self.client.post(self.url(name), data=json.dumps(payload), content_type='application/json')

    def patch_json(self, name: str, pk: Any, payload: Any):
        return self.client.patch(self.url(name, pk), data=json.dumps(payload), content_type='application/json')

    def delete(self, name: str, pk: Any):
        return self.client.delete(self.url(name, pk))


def create_station(day: Optional[date] = None) -> SimpleNamespace:
    """Create two priced products, a block, a shift, a cashier and one block shift."""

    day = day or date(2024, 5, 1)
    essence = Product.objects.create(name='Essence (Gasoline)', description='Regular gasoline fuel')
    mazout = Product.objects.create(name='Mazout (Diesel)', description='Diesel fuel')
    Price.objects.create(product=essence, sale_unit_price=Decimal('1.250'))
    Price.objects.create(product=mazout, sale_unit_price=Decimal('1.150'))
    block = Block.objects.create(name='Block A - Pump 1')
    shift = Shift.objects.create(name='Morning Shift', start_time=time(6, 0), end_time=time(14, 0))
    cashier = Cashier.objects.create(name='John Smith', email='john.smith@gasstation.com')
    block_shift = BlockShift.objects.create(block=block, shift=shift, cashier=cashier, date=day)
    return SimpleNamespace(
        essence=essence,
        mazout=mazout,
        block=block,
        shift=shift,
        cashier=cashier,
        block_shift=block_shift,
        day=day,
    )


def add_reading(block_shift: BlockShift, product: Product, start: str, end: str) -> IndexReading:
    return IndexReading.objects.create(
        block_shift=block_shift,
        product=product,
        start_index=Decimal(start),
        end_index=Decimal(end),
    )
