"""
Management command to dump every domain table to JSON files
Usage: python manage.py export_database [--output backups/] [--apps core locations ...]

Writes one <app>_<model>.json file per model plus a manifest with row counts
into a timestamped directory.
"""
import json
from pathlib import Path

from django.apps import apps
from django.core import serializers
from django.core.management.base import BaseCommand, CommandError
from django.utils import timezone

DOMAIN_APPS = ['core', 'locations', 'assets', 'faults', 'load_monitoring', 'sync']


class Command(BaseCommand):
    help = 'Export all domain tables as JSON'

    def add_arguments(self, parser):
        parser.add_argument('--output', default='backups', help='Directory to create the export in')
        parser.add_argument('--apps', nargs='+', default=DOMAIN_APPS, help='App labels to export')
        parser.add_argument('--batch-size', type=int, default=2000, help='Rows fetched per query')

    def handle(self, *args, **options):
        try:
            app_configs = [apps.get_app_config(label) for label in options['apps']]
        except LookupError as e:
            raise CommandError(str(e))

        stamp = timezone.now().strftime('%Y%m%d_%H%M%S')
        output_dir = Path(options['output']) / f'export_{stamp}'
        output_dir.mkdir(parents=True, exist_ok=True)
        self.stdout.write(f'Exporting to {output_dir}')

        manifest = {'exported_at': timezone.now().isoformat(), 'tables': {}}
        total = 0
        for app_config in app_configs:
            for model in app_config.get_models():
                label = f'{app_config.label}_{model._meta.model_name}'
                queryset = model.objects.order_by('pk')
                count = queryset.count()
                with open(output_dir / f'{label}.json', 'w', encoding='utf-8') as handle:
                    serializers.serialize('json', queryset.iterator(chunk_size=options['batch_size']),
                                          stream=handle, indent=2)
                manifest['tables'][label] = count
                total += count
                self.stdout.write(f'  ✓ {label}: {count} rows')

        with open(output_dir / 'manifest.json', 'w', encoding='utf-8') as handle:
            json.dump(manifest, handle, indent=2)
        self.stdout.write(self.style.SUCCESS(f'\nCompleted: {total} rows from {len(manifest["tables"])} tables'))
