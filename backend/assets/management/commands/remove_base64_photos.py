"""
Blank inline base64 photos without uploading them
Usage: python manage.py remove_base64_photos [--dry-run]
"""
from django.core.management.base import BaseCommand
from django.db import transaction

from ...photo_migration import PHOTO_FIELDS, clear_record_photos, records_with_base64


class Command(BaseCommand):
    help = 'Remove base64 photo data from assets and inspections (no upload)'

    def add_arguments(self, parser):
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='Show what would be removed without saving',
        )

    def handle(self, *args, **options):
        dry_run = options['dry_run']
        if dry_run:
            self.stdout.write(self.style.WARNING('DRY RUN - changes will be rolled back\n'))

        cleared_count = 0
        with transaction.atomic():
            for model, _, fields in PHOTO_FIELDS.values():
                for record in list(records_with_base64(model, fields)):
                    cleared = clear_record_photos(record, fields)
                    cleared_count += 1
                    self.stdout.write(f'  ✓ {model.__name__} {record.pk}: cleared {", ".join(cleared)}')
            if dry_run:
                transaction.set_rollback(True)

        verb = 'would be cleared' if dry_run else 'cleared'
        self.stdout.write(self.style.SUCCESS(f'\nCompleted: {cleared_count} records {verb}'))
