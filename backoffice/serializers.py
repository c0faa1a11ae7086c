"""Convert back-office models to the camelCase dictionaries used on the wire.

Decimal columns are emitted as strings quantised to the column's scale so
clients see exact values (``"1.850"`` for a price, ``"120.50"`` for a
quantity).  Relations are only embedded when the caller asks for them,
mirroring the ``include`` options of the list endpoints.
"""

from __future__ import annotations

from datetime import date, datetime, time
from decimal import Decimal
from typing import Any, Dict, Iterable, Optional

from django.core.exceptions import ObjectDoesNotExist

from .models import (
    Block,
    BlockShift,
    Cashier,
    IndexReading,
    Price,
    PriceHistory,
    Product,
    Sale,
    Shift,
    Stock,
    StockRecord,
)

PRICE_PLACES = 3
AMOUNT_PLACES = 2


def decimal_str(value: Optional[Decimal], places: int = AMOUNT_PLACES) -> Optional[str]:
    if value is None:
        return None
    return str(Decimal(value).quantize(Decimal(1).scaleb(-places)))


def _timestamp(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def _day(value: Optional[date]) -> Optional[str]:
    return value.isoformat() if value else None


def _clock(value: Optional[time]) -> Optional[str]:
    return value.strftime('%H:%M:%S') if value else None


def current_price(product: Product) -> Optional[Price]:
    """Return the product's price row, or ``None`` when it has none yet."""

    try:
        return product.price
    except ObjectDoesNotExist:
        return None


def serialize_product(product: Product, *, include_price: bool = False) -> Dict[str, Any]:
    data = {
        'id': product.pk,
        'name': product.name,
        'description': product.description,
        'createdAt': _timestamp(product.created_at),
        'updatedAt': _timestamp(product.updated_at),
    }
    if include_price:
        price = current_price(product)
        data['prices'] = serialize_price(price) if price else None
    return data


def serialize_block(block: Block) -> Dict[str, Any]:
    return {
        'id': block.pk,
        'name': block.name,
        'createdAt': _timestamp(block.created_at),
        'updatedAt': _timestamp(block.updated_at),
    }


def serialize_cashier(cashier: Cashier) -> Dict[str, Any]:
    return {
        'id': cashier.pk,
        'name': cashier.name,
        'email': cashier.email,
        'phone': cashier.phone,
        'createdAt': _timestamp(cashier.created_at),
        'updatedAt': _timestamp(cashier.updated_at),
    }


def serialize_shift(shift: Shift) -> Dict[str, Any]:
    return {
        'id': shift.pk,
        'name': shift.name,
        'startTime': _clock(shift.start_time),
        'endTime': _clock(shift.end_time),
        'isOvernight': shift.is_overnight,
        'createdAt': _timestamp(shift.created_at),
        'updatedAt': _timestamp(shift.updated_at),
    }


def serialize_block_shift(
    block_shift: BlockShift,
    *,
    include_relations: bool = False,
    include_readings: bool = False,
) -> Dict[str, Any]:
    """Serialise a block shift.

    ``include_relations`` embeds the block, shift and cashier;
    ``include_readings`` adds the shift's index readings (under
    ``indexes``) with each product and its current price.
    """

    data = {
        'id': block_shift.pk,
        'blockId': block_shift.block_id,
        'shiftId': block_shift.shift_id,
        'cashierId': block_shift.cashier_id,
        'date': _day(block_shift.date),
        'createdAt': _timestamp(block_shift.created_at),
        'updatedAt': _timestamp(block_shift.updated_at),
    }
    if include_relations:
        data['block'] = serialize_block(block_shift.block)
        data['shift'] = serialize_shift(block_shift.shift)
        data['cashier'] = serialize_cashier(block_shift.cashier)
    if include_readings:
        data['indexes'] = [
            serialize_index_reading(reading, include_product=True, include_price=True)
            for reading in block_shift.readings.all()
        ]
    return data


def serialize_index_reading(
    reading: IndexReading,
    *,
    include_product: bool = False,
    include_price: bool = False,
    include_block_shift: bool = False,
) -> Dict[str, Any]:
    data = {
        'id': reading.pk,
        'blockShiftId': reading.block_shift_id,
        'productId': reading.product_id,
        'startIndex': decimal_str(reading.start_index),
        'endIndex': decimal_str(reading.end_index),
        'litres': decimal_str(reading.litres),
        'createdAt': _timestamp(reading.created_at),
        'updatedAt': _timestamp(reading.updated_at),
    }
    if include_product:
        data['product'] = serialize_product(reading.product, include_price=include_price)
    if include_block_shift:
        data['blockShift'] = serialize_block_shift(reading.block_shift, include_relations=True)
    return data


def serialize_sale(sale: Sale, *, include_relations: bool = False) -> Dict[str, Any]:
    data = {
        'id': sale.pk,
        'blockShiftId': sale.block_shift_id,
        'productId': sale.product_id,
        'litresSold': decimal_str(sale.litres_sold),
        'revenue': decimal_str(sale.revenue),
        'date': _day(sale.date),
        'createdAt': _timestamp(sale.created_at),
    }
    if include_relations:
        data['product'] = serialize_product(sale.product)
        data['blockShift'] = serialize_block_shift(sale.block_shift, include_relations=True)
    return data


def serialize_stock(stock: Stock, *, include_product: bool = False) -> Dict[str, Any]:
    data = {
        'id': stock.pk,
        'productId': stock.product_id,
        'quantity': decimal_str(stock.quantity),
        'status': str(stock.status),
        'updatedAt': _timestamp(stock.updated_at),
    }
    if include_product:
        data['product'] = serialize_product(stock.product)
    return data


def serialize_stock_record(record: StockRecord, *, include_product: bool = False) -> Dict[str, Any]:
    data = {
        'id': record.pk,
        'productId': record.product_id,
        'quantity': decimal_str(record.quantity),
        'recordDate': _day(record.record_date),
        'notes': record.notes,
        'createdAt': _timestamp(record.created_at),
        'updatedAt': _timestamp(record.updated_at),
    }
    if include_product:
        data['product'] = serialize_product(record.product)
    return data


def serialize_price(
    price: Price,
    *,
    include_product: bool = False,
    history: Optional[Iterable[PriceHistory]] = None,
) -> Dict[str, Any]:
    data = {
        'id': price.pk,
        'productId': price.product_id,
        'saleUnitPrice': decimal_str(price.sale_unit_price, PRICE_PLACES),
        'createdAt': _timestamp(price.created_at),
        'updatedAt': _timestamp(price.updated_at),
    }
    if include_product:
        data['product'] = serialize_product(price.product)
    if history is not None:
        data['priceHistory'] = [serialize_price_history(entry) for entry in history]
    return data


def serialize_price_history(entry: PriceHistory, *, include_price: bool = False) -> Dict[str, Any]:
    data = {
        'id': entry.pk,
        'priceId': entry.price_id,
        'oldPrice': decimal_str(entry.old_price, PRICE_PLACES),
        'newPrice': decimal_str(entry.new_price, PRICE_PLACES),
        'changeDate': _timestamp(entry.change_date),
    }
    if include_price:
        data['price'] = serialize_price(entry.price, include_product=True)
    return data
