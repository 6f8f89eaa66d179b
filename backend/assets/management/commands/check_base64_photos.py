"""
Report how many asset/inspection records still carry inline base64 photos
Usage: python manage.py check_base64_photos
"""
from django.core.management.base import BaseCommand

from backend.photos import blob_storage
from ...photo_migration import PHOTO_FIELDS


class Command(BaseCommand):
    help = 'Count records per model and field that still hold base64 image data'

    def handle(self, *args, **options):
        self.stdout.write(self.style.SUCCESS('=' * 60))
        self.stdout.write(self.style.SUCCESS('BASE64 PHOTO CHECK'))
        self.stdout.write(self.style.SUCCESS('=' * 60))

        grand_total = 0
        for key, (model, folder, fields) in PHOTO_FIELDS.items():
            total = model.objects.count()
            field_counts = {field: 0 for field in fields}
            records_with_base64 = 0
            base64_bytes = 0

            for record in model.objects.only('pk', *fields).iterator():
                has_base64 = False
                for field in fields:
                    value = getattr(record, field)
                    items = value if isinstance(value, list) else [value]
                    matches = [item for item in items if blob_storage.is_base64_image(item)]
                    if matches:
                        field_counts[field] += 1
                        base64_bytes += sum(len(item) for item in matches)
                        has_base64 = True
                if has_base64:
                    records_with_base64 += 1

            grand_total += records_with_base64
            self.stdout.write(f'\n{model.__name__} ({key}) -> {folder}/')
            self.stdout.write(f'  Total records: {total}')
            self.stdout.write(f'  Records with base64: {records_with_base64}')
            for field, count in field_counts.items():
                self.stdout.write(f'    - {field}: {count}')
            if base64_bytes:
                self.stdout.write(f'  Inline payload: {base64_bytes / (1024 * 1024):.2f} MB')

        if grand_total:
            self.stdout.write(self.style.WARNING(
                f'\n{grand_total} record(s) need migration. Run: python manage.py migrate_photos --dry-run'
            ))
        else:
            self.stdout.write(self.style.SUCCESS('\n✓ No base64 photos found'))
