"""Data models for the fuel station back-office.

This module defines the database schema using Django's ORM.  The station
is organised around pumps (``Block``) that are staffed by a ``Cashier``
during a ``Shift`` on a given day (``BlockShift``).  For every block
shift the attendant records the pump index at the start and end of the
shift per product (``IndexReading``); sales are derived from those
readings and the product's current ``Price``.  Stock levels are tracked
both as a single current ``Stock`` row per product and as dated
``StockRecord`` snapshots used by the dashboard.
"""

from __future__ import annotations

from decimal import Decimal

from django.core.validators import MinValueValidator
from django.db import models
from django.utils import timezone

ZERO = Decimal('0')


class Product(models.Model):
    """A fuel grade sold at the station (e.g. essence, mazout)."""

    name = models.CharField(max_length=120, unique=True)
    description = models.TextField(blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self) -> str:  # pragma: no cover
        return self.name


class Block(models.Model):
    """A pump island ("block") where fuel is dispensed."""

    name = models.CharField(max_length=120)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self) -> str:  # pragma: no cover
        return self.name


class Cashier(models.Model):
    """A station employee who can be scheduled on a block shift."""

    name = models.CharField(max_length=150)
    email = models.EmailField(blank=True, null=True)
    phone = models.CharField(max_length=32, blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self) -> str:  # pragma: no cover
        return self.name


class Shift(models.Model):
    """A named working window within a day.

    Only the time of day is stored.  A shift whose ``end_time`` is earlier
    than its ``start_time`` runs overnight into the following day.
    """

    name = models.CharField(max_length=120)
    start_time = models.TimeField()
    end_time = models.TimeField()
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    @property
    def is_overnight(self) -> bool:
        return self.end_time < self.start_time

    def __str__(self) -> str:  # pragma: no cover
        return self.name


class BlockShift(models.Model):
    """Schedules a cashier on a block for a shift on a specific date."""

    block = models.ForeignKey(Block, on_delete=models.PROTECT, related_name='block_shifts')
    shift = models.ForeignKey(Shift, on_delete=models.PROTECT, related_name='block_shifts')
    cashier = models.ForeignKey(Cashier, on_delete=models.PROTECT, related_name='block_shifts')
    date = models.DateField()
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        unique_together = ('block', 'shift', 'cashier', 'date')

    def __str__(self) -> str:  # pragma: no cover
        return f"BlockShift<{self.block_id}:{self.shift_id}:{self.cashier_id}@{self.date}>"


class IndexReading(models.Model):
    """Pump index readings for one product during a block shift.

    The pump counter is read when the shift opens (``start_index``) and
    when it closes (``end_index``).  The counter runs down, so a valid
    reading always has ``start_index`` strictly greater than
    ``end_index`` and the difference is the volume dispensed.
    """

    block_shift = models.ForeignKey(BlockShift, on_delete=models.CASCADE, related_name='readings')
    product = models.ForeignKey(Product, on_delete=models.PROTECT, related_name='readings')
    start_index = models.DecimalField(max_digits=14, decimal_places=2, validators=[MinValueValidator(ZERO)])
    end_index = models.DecimalField(max_digits=14, decimal_places=2, validators=[MinValueValidator(ZERO)])
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        unique_together = ('block_shift', 'product')

    @property
    def litres(self) -> Decimal:
        return self.start_index - self.end_index

    def __str__(self) -> str:  # pragma: no cover
        return f"Index<{self.block_shift_id}:{self.product_id} {self.start_index}->{self.end_index}>"


class Sale(models.Model):
    """Litres sold and revenue computed from an index reading."""

    block_shift = models.ForeignKey(BlockShift, on_delete=models.CASCADE, related_name='sales')
    product = models.ForeignKey(Product, on_delete=models.PROTECT, related_name='sales')
    litres_sold = models.DecimalField(max_digits=14, decimal_places=2)
    revenue = models.DecimalField(max_digits=14, decimal_places=2)
    date = models.DateField()
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self) -> str:  # pragma: no cover
        return f"Sale<{self.block_shift_id}:{self.product_id}@{self.date}>"


class Stock(models.Model):
    """Current stock level of a product, in litres."""

    class Status(models.TextChoices):
        CRITICAL = 'critical', 'Critical'
        LOW = 'low', 'Low'
        MEDIUM = 'medium', 'Medium'
        GOOD = 'good', 'Good'

    product = models.OneToOneField(Product, on_delete=models.CASCADE, related_name='stock')
    quantity = models.DecimalField(max_digits=14, decimal_places=2, validators=[MinValueValidator(ZERO)])
    updated_at = models.DateTimeField(auto_now=True)

    @property
    def status(self) -> str:
        """Classify the level into the bands shown on the stock cards."""

        if self.quantity <= 50:
            return self.Status.CRITICAL
        if self.quantity <= 100:
            return self.Status.LOW
        if self.quantity <= 200:
            return self.Status.MEDIUM
        return self.Status.GOOD

    def __str__(self) -> str:  # pragma: no cover
        return f"Stock<{self.product_id}: {self.quantity}>"


class StockRecord(models.Model):
    """A dated stock snapshot; at most one per product and day."""

    product = models.ForeignKey(Product, on_delete=models.CASCADE, related_name='stock_records')
    quantity = models.DecimalField(max_digits=14, decimal_places=2, validators=[MinValueValidator(ZERO)])
    record_date = models.DateField()
    notes = models.TextField(blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        unique_together = ('product', 'record_date')

    def __str__(self) -> str:  # pragma: no cover
        return f"StockRecord<{self.product_id}@{self.record_date}>"


class Price(models.Model):
    """The current sale unit price of a product."""

    product = models.OneToOneField(Product, on_delete=models.CASCADE, related_name='price')
    sale_unit_price = models.DecimalField(
        max_digits=10,
        decimal_places=3,
        validators=[MinValueValidator(Decimal('0.001'))],
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self) -> str:  # pragma: no cover
        return f"Price<{self.product_id}: {self.sale_unit_price}>"


class PriceHistory(models.Model):
    """Audit trail of price changes.

    The first entry for a price has ``old_price`` set to ``None``; later
    entries record the value that was replaced.
    """

    price = models.ForeignKey(Price, on_delete=models.CASCADE, related_name='history')
    old_price = models.DecimalField(max_digits=10, decimal_places=3, blank=True, null=True)
    new_price = models.DecimalField(max_digits=10, decimal_places=3)
    change_date = models.DateTimeField(default=timezone.now)

    class Meta:
        ordering = ['-change_date', '-pk']
        verbose_name_plural = 'price history'

    def __str__(self) -> str:  # pragma: no cover
        return f"PriceHistory<{self.price_id}: {self.old_price}->{self.new_price}>"
