from datetime import date

from django.conf import settings
from django.core.management.base import BaseCommand, CommandError
from django.utils import timezone

from apps.sales.services.carryover import run_carryover_sweep


class Command(BaseCommand):
    help = (
        "Return the unsold remainder of the day's active allocations to finished goods. "
        "Schedule it daily at DAIRY_CARRYOVER_SWEEP_TIME local time."
    )

    def add_arguments(self, parser):
        parser.add_argument(
            "--date",
            help="Allocation date to sweep in YYYY-MM-DD format. Defaults to today.",
        )

    def handle(self, *args, **options):
        raw_date = options.get("date")
        if raw_date:
            try:
                day = date.fromisoformat(raw_date)
            except ValueError as exc:
                raise CommandError("Invalid --date value. Use YYYY-MM-DD.") from exc
        else:
            day = timezone.localdate()

        swept = run_carryover_sweep(day)
        for row in swept:
            self.stdout.write(f"{row['product_code']}: {row['quantity']}")
        self.stdout.write(
            self.style.SUCCESS(
                f"Carryover sweep for {day.isoformat()} finished: {len(swept)} products "
                f"(scheduled at {settings.DAIRY_CARRYOVER_SWEEP_TIME} {settings.TIME_ZONE})."
            )
        )
