"""Populate the database with a small demonstration station.

The command creates three fuel products with prices and stock, four pumps,
three cashiers, the three daily shifts, a few block shifts for today and
yesterday, a week of stock snapshots and a handful of sales.  Rows are
looked up by their natural keys first, so running it again leaves existing
data untouched.
"""

from __future__ import annotations

import logging
import random
from datetime import time, timedelta
from decimal import Decimal

from django.core.management.base import BaseCommand, CommandError
from django.db import OperationalError, transaction
from django.utils import timezone

from backoffice.models import (
    Block,
    BlockShift,
    Cashier,
    Price,
    Product,
    Sale,
    Shift,
    Stock,
    StockRecord,
)
from backoffice.services.pricing import create_price

logger = logging.getLogger(__name__)

PRODUCTS = [
    ('Essence (Gasoline)', 'Regular gasoline fuel', Decimal('5000.00'), Decimal('1.250')),
    ('Mazout (Diesel)', 'Diesel fuel for heavy vehicles', Decimal('8000.00'), Decimal('1.150')),
    ('Premium Gasoline', 'High-octane premium gasoline', Decimal('3000.00'), Decimal('1.450')),
]

BLOCKS = ['Block A - Pump 1', 'Block A - Pump 2', 'Block B - Pump 1', 'Block B - Pump 2']

CASHIERS = [
    ('John Smith', 'john.smith@gasstation.com', '+1-555-0101'),
    ('Sarah Johnson', 'sarah.johnson@gasstation.com', '+1-555-0102'),
    ('Mike Wilson', 'mike.wilson@gasstation.com', '+1-555-0103'),
]

SHIFTS = [
    ('Morning Shift', time(6, 0), time(14, 0)),
    ('Evening Shift', time(14, 0), time(22, 0)),
    ('Night Shift', time(22, 0), time(6, 0)),
]

# (block, shift, cashier, days ago) as positions in the lists above
BLOCK_SHIFTS = [(0, 0, 0, 0), (1, 0, 1, 0), (2, 1, 2, 0), (0, 0, 0, 1)]

# (block shift, product, litres, revenue)
SALES = [
    (0, 0, Decimal('50.25'), Decimal('62.81')),
    (1, 1, Decimal('45.55'), Decimal('52.38')),
    (2, 0, Decimal('80.25'), Decimal('100.31')),
]

STOCK_HISTORY_DAYS = 7


class Command(BaseCommand):
    help = "Create demonstration products, pumps, staff, schedules, stock and sales."

    def add_arguments(self, parser):
        parser.add_argument(
            "--seed",
            type=int,
            default=None,
            help="Seed for the random stock variations (makes the run reproducible).",
        )

    def handle(self, *args, **options):
        rng = random.Random(options["seed"])
        self.stdout.write(self.style.NOTICE("Seeding station data..."))
        try:
            with transaction.atomic():
                counts = self._seed(rng)
        except OperationalError as exc:
            raise CommandError(
                "Database is not ready; ensure migrations have been applied before seeding."
            ) from exc

        for label, count in counts.items():
            self.stdout.write(f"  {label}: {count} created")
        logger.info("Seeded station data: %s", counts)
        self.stdout.write(self.style.SUCCESS("Station data seeded successfully."))

    def _seed(self, rng: random.Random) -> dict:
        counts = {
            "products": 0,
            "prices": 0,
            "stock": 0,
            "blocks": 0,
            "cashiers": 0,
            "shifts": 0,
            "block shifts": 0,
            "stock records": 0,
            "sales": 0,
        }
        today = timezone.localdate()

        products = []
        for name, description, quantity, unit_price in PRODUCTS:
            product, created = Product.objects.get_or_create(name=name, defaults={"description": description})
            counts["products"] += created
            if not Price.objects.filter(product=product).exists():
                create_price(product, unit_price)
                counts["prices"] += 1
            _, created = Stock.objects.get_or_create(product=product, defaults={"quantity": quantity})
            counts["stock"] += created
            products.append(product)

        blocks = []
        for name in BLOCKS:
            block, created = Block.objects.get_or_create(name=name)
            counts["blocks"] += created
            blocks.append(block)

        cashiers = []
        for name, email, phone in CASHIERS:
            cashier, created = Cashier.objects.get_or_create(email=email, defaults={"name": name, "phone": phone})
            counts["cashiers"] += created
            cashiers.append(cashier)

        shifts = []
        for name, start_time, end_time in SHIFTS:
            shift, created = Shift.objects.get_or_create(
                name=name, defaults={"start_time": start_time, "end_time": end_time}
            )
            counts["shifts"] += created
            shifts.append(shift)

        block_shifts = []
        for block_pos, shift_pos, cashier_pos, days_ago in BLOCK_SHIFTS:
            block_shift, created = BlockShift.objects.get_or_create(
                block=blocks[block_pos],
                shift=shifts[shift_pos],
                cashier=cashiers[cashier_pos],
                date=today - timedelta(days=days_ago),
            )
            counts["block shifts"] += created
            block_shifts.append(block_shift)

        for offset in range(STOCK_HISTORY_DAYS):
            record_date = today - timedelta(days=offset)
            notes = "Daily stock check" if offset == 0 else f"Stock record for {record_date.isoformat()}"
            for product, (_, _, base_quantity, _) in zip(products, PRODUCTS):
                variation = Decimal(str(round(rng.uniform(-100, 100), 2)))
                _, created = StockRecord.objects.get_or_create(
                    product=product,
                    record_date=record_date,
                    defaults={"quantity": max(Decimal("0"), base_quantity + variation), "notes": notes},
                )
                counts["stock records"] += created

        for shift_pos, product_pos, litres, revenue in SALES:
            block_shift = block_shifts[shift_pos]
            _, created = Sale.objects.get_or_create(
                block_shift=block_shift,
                product=products[product_pos],
                date=block_shift.date,
                defaults={"litres_sold": litres, "revenue": revenue},
            )
            counts["sales"] += created

        return counts
