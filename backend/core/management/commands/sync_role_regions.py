"""
Management command to set or clear the regions a subtransmission role can see
Usage:
    python manage.py sync_role_regions                        # reset ashsubt/accsubt to defaults
    python manage.py sync_role_regions --role ashsubt --regions "ASHANTI EAST REGION" "ASHANTI WEST REGION"
    python manage.py sync_role_regions --role accsubt --clear
"""
from django.core.management.base import BaseCommand, CommandError
from django.db import transaction

from backend.core.cache_utils import bump_namespace, FAULTS_NAMESPACE, LOCATIONS_NAMESPACE
from backend.core.defaults import SUBTRANSMISSION_REGIONS
from backend.core.models import Role
from backend.locations.models import Region


class Command(BaseCommand):
    help = 'Set or clear allowed regions on subtransmission roles'

    def add_arguments(self, parser):
        parser.add_argument('--role', choices=sorted(SUBTRANSMISSION_REGIONS), help='Only this role')
        parser.add_argument('--regions', nargs='+', help='Region names to allow (replaces the current list)')
        parser.add_argument('--clear', action='store_true', help='Remove all allowed regions')
        parser.add_argument('--dry-run', action='store_true', help='Show what would change without saving')

    def handle(self, *args, **options):
        if options['regions'] and options['clear']:
            raise CommandError('Use either --regions or --clear, not both')
        if options['regions'] and not options['role']:
            raise CommandError('--regions needs --role')

        role_names = [options['role']] if options['role'] else sorted(SUBTRANSMISSION_REGIONS)
        updated = 0
        with transaction.atomic():
            for name in role_names:
                if options['clear']:
                    regions = []
                elif options['regions']:
                    regions = options['regions']
                else:
                    regions = list(SUBTRANSMISSION_REGIONS[name])

                missing = set(regions) - set(Region.objects.filter(name__in=regions).values_list('name', flat=True))
                if missing:
                    self.stdout.write(self.style.WARNING(f'  ⚠️  Not in the regions table: {", ".join(sorted(missing))}'))

                role, _ = Role.objects.get_or_create(name=name, defaults={'display_name': name})
                self.stdout.write(f'  {name}: {role.allowed_regions or []} → {regions}')
                role.allowed_regions = regions
                role.save(update_fields=['allowed_regions', 'updated_at'])
                updated += 1

            if options['dry_run']:
                transaction.set_rollback(True)
                self.stdout.write(self.style.WARNING(f'\n[DRY RUN] Would update {updated} role(s)'))
                return

        # Cached lists are keyed by scope, which just changed
        bump_namespace(FAULTS_NAMESPACE)
        bump_namespace(LOCATIONS_NAMESPACE)
        self.stdout.write(self.style.SUCCESS(f'\n✓ Updated {updated} role(s)'))
