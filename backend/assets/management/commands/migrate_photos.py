"""
Upload inline base64 photos to blob storage and replace them with URLs
Usage: python manage.py migrate_photos [--model vit|overhead|substation|vit-inspection|all] [--dry-run]
"""
import time

from django.core.management.base import BaseCommand, CommandError

from backend.photos import blob_storage
from backend.photos.blob_storage import BlobStorageError
from ...photo_migration import PHOTO_FIELDS, base64_fields, migrate_record_photos, records_with_base64


class Command(BaseCommand):
    help = 'Migrate base64 photos on assets and inspections to Azure Blob Storage'

    def add_arguments(self, parser):
        parser.add_argument(
            '--model',
            choices=list(PHOTO_FIELDS) + ['all'],
            default='all',
            help='Which records to migrate (default: all)',
        )
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='List what would be uploaded without uploading or saving',
        )
        parser.add_argument(
            '--limit',
            type=int,
            default=None,
            help='Stop after this many records per model',
        )
        parser.add_argument(
            '--delay',
            type=int,
            default=100,
            help='Milliseconds to wait between records (default: 100)',
        )

    def handle(self, *args, **options):
        dry_run = options['dry_run']
        limit = options['limit']
        delay = max(0, options['delay']) / 1000.0
        keys = list(PHOTO_FIELDS) if options['model'] == 'all' else [options['model']]

        if not dry_run and not blob_storage.is_configured():
            raise CommandError('Azure Storage not configured. Set AZURE_STORAGE_CONNECTION_STRING '
                               'or AZURE_STORAGE_ACCOUNT_NAME/AZURE_STORAGE_ACCOUNT_KEY.')

        if dry_run:
            self.stdout.write(self.style.WARNING('DRY RUN - nothing will be uploaded or saved\n'))

        migrated_count = 0
        uploaded_count = 0
        errors = []

        for key in keys:
            model, folder, fields = PHOTO_FIELDS[key]
            self.stdout.write(f'{model.__name__}: scanning {", ".join(fields)}')
            processed = 0
            for record in list(records_with_base64(model, fields)):
                if limit is not None and processed >= limit:
                    self.stdout.write(f'  - Limit of {limit} reached')
                    break
                processed += 1

                if dry_run:
                    self.stdout.write(f'  Would migrate {model.__name__} {record.pk}: {", ".join(base64_fields(record, fields))}')
                    continue

                try:
                    uploaded = migrate_record_photos(record, folder, fields)
                except (BlobStorageError, ValueError) as e:
                    errors.append(f'{model.__name__} {record.pk}: {str(e)}')
                    self.stdout.write(self.style.ERROR(f'  ✗ {model.__name__} {record.pk}: {str(e)}'))
                    continue

                migrated_count += 1
                uploaded_count += uploaded
                self.stdout.write(f'  ✓ {model.__name__} {record.pk}: {uploaded} photo(s) uploaded')
                if delay:
                    time.sleep(delay)

        if errors:
            self.stdout.write(self.style.ERROR(f'\nErrors ({len(errors)}):'))
            for error in errors:
                self.stdout.write(f'  - {error}')

        self.stdout.write(self.style.SUCCESS(
            f'\nCompleted: {migrated_count} records migrated, {uploaded_count} photos uploaded, {len(errors)} errors'
        ))
