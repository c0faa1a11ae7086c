"""Recompute stored sales from the index readings of a day.

Every block shift scheduled on ``--date`` (or only ``--block-shift``) has
its sales replaced by rows derived from its current readings and prices.
"""

from __future__ import annotations

from datetime import date

from django.core.management.base import BaseCommand, CommandError

from backoffice.models import BlockShift
from backoffice.services.sales import compute_sales_for_date


class Command(BaseCommand):
    help = "Recompute sales for the block shifts of a given date."

    def add_arguments(self, parser):
        parser.add_argument(
            "--date",
            required=True,
            help="Sales date in YYYY-MM-DD format.",
        )
        parser.add_argument(
            "--block-shift",
            type=int,
            dest="block_shift",
            help="Only recompute this block shift.",
        )

    def handle(self, *args, **options):
        try:
            sale_date = date.fromisoformat(options["date"])
        except ValueError as exc:
            raise CommandError(f"Invalid --date {options['date']!r}; expected YYYY-MM-DD.") from exc

        block_shifts = BlockShift.objects.filter(date=sale_date).order_by("pk")
        if options.get("block_shift") is not None:
            block_shifts = block_shifts.filter(pk=options["block_shift"])
            if not block_shifts.exists():
                raise CommandError(
                    f"Block shift {options['block_shift']} is not scheduled on {sale_date.isoformat()}."
                )

        if not block_shifts.exists():
            self.stdout.write(self.style.WARNING(f"No block shifts scheduled on {sale_date.isoformat()}."))
            return

        sales = compute_sales_for_date(sale_date, block_shifts)
        self.stdout.write(
            self.style.SUCCESS(
                f"Computed {len(sales)} sale(s) for {block_shifts.count()} block shift(s) on {sale_date.isoformat()}."
            )
        )
