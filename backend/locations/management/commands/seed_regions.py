"""
Management command to load the ECG operational regions (and optionally districts)
Usage:
    python manage.py seed_regions
    python manage.py seed_regions --districts districts.json [--dry-run]

The districts file maps region names to lists of district names:
    {"ACCRA EAST REGION": ["ADENTA", "DODOWA", ...], ...}
"""
import json

from django.core.management.base import BaseCommand, CommandError
from django.db import transaction

from backend.locations.models import Region, District

ECG_REGIONS = [
    ('ACCRA EAST REGION', 'AER'),
    ('ACCRA WEST REGION', 'AWR'),
    ('ASHANTI EAST REGION', 'ASER'),
    ('ASHANTI WEST REGION', 'ASWR'),
    ('ASHANTI SOUTH REGION', 'ASSR'),
    ('CENTRAL REGION', 'CR'),
    ('EASTERN REGION', 'ER'),
    ('TEMA REGION', 'TR'),
    ('VOLTA REGION', 'VR'),
    ('WESTERN REGION', 'WR'),
    ('SUBTRANSMISSION ACCRA', 'SUBACC'),
    ('SUBTRANSMISSION ASHANTI', 'SUBASH'),
]


class Command(BaseCommand):
    help = 'Create the ECG regions and, from a JSON file, their districts'

    def add_arguments(self, parser):
        parser.add_argument('--districts', help='JSON file mapping region names to district names')
        parser.add_argument('--dry-run', action='store_true', help='Show what would be created without saving')

    def _load_districts(self, path):
        try:
            with open(path, encoding='utf-8') as handle:
                data = json.load(handle)
        except (OSError, ValueError) as e:
            raise CommandError(f'Could not read {path}: {str(e)}')
        if not isinstance(data, dict) or not all(isinstance(names, list) for names in data.values()):
            raise CommandError('Districts file must map region names to lists of district names')
        return data

    def handle(self, *args, **options):
        district_map = self._load_districts(options['districts']) if options['districts'] else {}
        regions_created = districts_created = 0

        with transaction.atomic():
            for name, code in ECG_REGIONS:
                region, created = Region.objects.get_or_create(name=name, defaults={'code': code})
                if created:
                    regions_created += 1
                    self.stdout.write(self.style.SUCCESS(f'✓ Created region: {name}'))

            for region_name, district_names in district_map.items():
                region, created = Region.objects.get_or_create(name=region_name.strip().upper())
                regions_created += int(created)
                for district_name in district_names:
                    district_name = district_name.strip().upper()
                    if District.objects.filter(region=region, name__iexact=district_name).exists():
                        continue
                    District.objects.create(region=region, name=district_name)
                    districts_created += 1
                    self.stdout.write(f'  ✓ {region.name} / {district_name}')

            summary = f'{regions_created} regions, {districts_created} districts created'
            if options['dry_run']:
                transaction.set_rollback(True)
                self.stdout.write(self.style.WARNING(f'\n[DRY RUN] Would have: {summary}'))
                return
        self.stdout.write(self.style.SUCCESS(f'\nCompleted: {summary}'))
