"""
Seed the transaction types that upload rows reference by name.

Approval fails with UnresolvedCategoryError for any row whose category has
no active transaction type, so a new installation needs these before the
first batch is approved.

Usage:
    python manage.py seed_transaction_types
    python manage.py seed_transaction_types --type "Housing Loan=DEBIT" --type "Levy=CREDIT"
    python manage.py seed_transaction_types --dry-run

This is idempotent - names that already exist (in any letter case) are skipped.
"""
from django.core.management.base import BaseCommand, CommandError
from django.db.models.functions import Lower

from core.write_barrier import bootstrap_writes_allowed
from ledger.models import Polarity, TransactionType

DEFAULT_TRANSACTION_TYPES = (
    ("Monthly", Polarity.CREDIT),
    ("Special", Polarity.CREDIT),
    ("Contribution", Polarity.CREDIT),
    ("Deposit", Polarity.CREDIT),
    ("Loan Repayment", Polarity.CREDIT),
    ("Withdrawal", Polarity.DEBIT),
    ("Personal Loan", Polarity.DEBIT),
    ("Emergency Loan", Polarity.DEBIT),
    ("Business Loan", Polarity.DEBIT),
    ("Educational Loan", Polarity.DEBIT),
)


def parse_type_option(value: str):
    name, sep, polarity = value.rpartition("=")
    name = name.strip()
    polarity = polarity.strip().upper()
    if not sep or not name or polarity not in Polarity.values:
        raise CommandError(f"Expected NAME=CREDIT or NAME=DEBIT, got '{value}'")
    return name, polarity


class Command(BaseCommand):
    help = "Create the transaction types referenced by upload rows"

    def add_arguments(self, parser):
        parser.add_argument(
            "--type",
            action="append",
            dest="types",
            default=[],
            metavar="NAME=POLARITY",
            help="Extra transaction type to create (repeatable)",
        )
        parser.add_argument(
            "--no-defaults",
            action="store_true",
            help="Only create the types given with --type",
        )
        parser.add_argument(
            "--dry-run",
            action="store_true",
            help="Show what would be done without making changes",
        )

    def handle(self, *args, **options):
        dry_run = options["dry_run"]
        wanted = [] if options["no_defaults"] else list(DEFAULT_TRANSACTION_TYPES)
        wanted += [parse_type_option(value) for value in options["types"]]

        if dry_run:
            self.stdout.write(self.style.WARNING("DRY RUN - no changes will be made\n"))

        existing = set(
            TransactionType.objects.annotate(lname=Lower("name")).values_list("lname", flat=True)
        )

        created = 0
        skipped = 0
        with bootstrap_writes_allowed():
            for name, polarity in wanted:
                if name.lower() in existing:
                    self.stdout.write(f"  SKIP: {name} - already exists")
                    skipped += 1
                    continue

                if dry_run:
                    self.stdout.write(f"  WOULD CREATE: {name} ({polarity})")
                else:
                    TransactionType.objects.create(name=name, polarity=polarity)
                    self.stdout.write(self.style.SUCCESS(f"  CREATED: {name} ({polarity})"))
                existing.add(name.lower())
                created += 1

        self.stdout.write("")
        self.stdout.write(f"Already present: {skipped}")
        if dry_run:
            self.stdout.write(f"Would create: {created}")
        else:
            self.stdout.write(self.style.SUCCESS(f"Created: {created}"))
