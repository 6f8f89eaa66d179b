"""
Management command to seed roles and the feature permission matrix
Usage: python manage.py seed_roles [--template regional_engineer] [--dry-run]

An empty matrix is filled from the built-in defaults. When a matrix already
exists, roles that appear in no row are added wherever the template role is
allowed, so new roles start with the template's permissions.
"""
from django.core.management.base import BaseCommand, CommandError
from django.db import transaction

from backend.core.defaults import DEFAULT_ROLES, DEFAULT_FEATURE_PERMISSIONS, SUBTRANSMISSION_REGIONS
from backend.core.models import Role, FeaturePermission
from backend.core.permissions import invalidate_permissions_cache


class Command(BaseCommand):
    help = 'Create default roles and seed (or extend) the feature permission matrix'

    def add_arguments(self, parser):
        parser.add_argument('--template', default='regional_engineer',
                            help='Role whose permissions new roles inherit in an existing matrix')
        parser.add_argument('--dry-run', action='store_true', help='Show what would change without saving')

    def handle(self, *args, **options):
        template = options['template']
        if template not in {role['name'] for role in DEFAULT_ROLES}:
            raise CommandError(f'Unknown template role: {template}')

        with transaction.atomic():
            created_roles = self._seed_roles()
            if FeaturePermission.objects.exists():
                added = self._extend_matrix(template)
                summary = f'{created_roles} roles created, {added} permission entries extended'
            else:
                seeded = self._seed_matrix()
                summary = f'{created_roles} roles created, {seeded} permission entries seeded'

            if options['dry_run']:
                transaction.set_rollback(True)
                self.stdout.write(self.style.WARNING(f'\n[DRY RUN] Would have: {summary}'))
                return

        invalidate_permissions_cache()
        self.stdout.write(self.style.SUCCESS(f'\nCompleted: {summary}'))

    def _seed_roles(self):
        created_count = 0
        for definition in DEFAULT_ROLES:
            defaults = {key: value for key, value in definition.items() if key != 'name'}
            defaults['allowed_regions'] = list(SUBTRANSMISSION_REGIONS.get(definition['name'], []))
            role, created = Role.objects.get_or_create(name=definition['name'], defaults=defaults)
            if created:
                self.stdout.write(self.style.SUCCESS(f'✓ Created role: {role.name}'))
                created_count += 1
            else:
                self.stdout.write(f'  Role already exists: {role.name}')
        return created_count

    def _seed_matrix(self):
        rows = [
            FeaturePermission(feature=feature, action=action, roles=list(roles))
            for feature, actions in DEFAULT_FEATURE_PERMISSIONS.items()
            for action, roles in actions.items()
        ]
        FeaturePermission.objects.bulk_create(rows)
        self.stdout.write(self.style.SUCCESS(f'✓ Seeded {len(rows)} feature permissions'))
        return len(rows)

    def _extend_matrix(self, template):
        rows = list(FeaturePermission.objects.all())
        known_roles = {role for row in rows for role in (row.roles or [])}
        new_roles = [
            role.name for role in Role.objects.filter(is_active=True)
            if role.name not in known_roles and role.name != template
        ]
        if not new_roles:
            self.stdout.write('  Every role already appears in the permission matrix')
            return 0

        self.stdout.write(f'Adding roles to matrix using {template} as template: {", ".join(new_roles)}')
        extended = 0
        for row in rows:
            if template in (row.roles or []):
                row.roles = list(row.roles) + new_roles
                row.save(update_fields=['roles', 'updated_at'])
                self.stdout.write(f'  ✓ {row.feature}_{row.action}')
                extended += 1
        return extended
