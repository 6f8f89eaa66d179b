"""
Management command to merge duplicate districts
Usage: python manage.py dedupe_districts [--dry-run]

Districts with the same name (case-insensitive) in the same region are merged
into the oldest one. Every record pointing at a duplicate is re-pointed to
the kept district before the duplicate is deleted.
"""
from collections import defaultdict

from django.core.management.base import BaseCommand
from django.db import transaction

from backend.core.cache_signals import suspend_cache_signals
from backend.core.cache_utils import bump_namespace, LOCATIONS_NAMESPACE
from backend.locations.models import District


def district_references():
    """(model, field name) pairs of every foreign key pointing at District"""
    return [
        (relation.related_model, relation.field.name)
        for relation in District._meta.related_objects
        if relation.many_to_one
    ]


def find_duplicate_groups():
    groups = defaultdict(list)
    for district in District.objects.order_by('created_at', 'id'):
        groups[(district.region_id, district.name.strip().lower())].append(district)
    return [group for group in groups.values() if len(group) > 1]


class Command(BaseCommand):
    help = 'Merge districts that share a name within a region'

    def add_arguments(self, parser):
        parser.add_argument('--dry-run', action='store_true', help='Report duplicates without changing anything')

    def handle(self, *args, **options):
        groups = find_duplicate_groups()
        if not groups:
            self.stdout.write(self.style.SUCCESS('✓ No duplicate districts found'))
            return

        references = district_references()
        removed = repointed = 0
        with suspend_cache_signals(), transaction.atomic():
            for keeper, *duplicates in groups:
                self.stdout.write(f'\n{keeper.name} ({keeper.region.name}): keeping #{keeper.id}, '
                                  f'merging {", ".join(f"#{d.id}" for d in duplicates)}')
                for duplicate in duplicates:
                    for model, field_name in references:
                        moved = model.objects.filter(**{field_name: duplicate}).update(**{field_name: keeper})
                        if moved:
                            self.stdout.write(f'  ✓ {model.__name__}.{field_name}: {moved} re-pointed')
                        repointed += moved
                    duplicate.delete()
                    removed += 1

            summary = f'{removed} duplicate districts removed, {repointed} references re-pointed'
            if options['dry_run']:
                transaction.set_rollback(True)
                self.stdout.write(self.style.WARNING(f'\n[DRY RUN] Would have: {summary}'))
                return

        bump_namespace(LOCATIONS_NAMESPACE)
        self.stdout.write(self.style.SUCCESS(f'\nCompleted: {summary}'))
