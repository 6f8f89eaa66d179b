"""
Management command to delete user accounts that have no status
Usage: python manage.py delete_users_no_status [--dry-run] [--confirm]
"""
from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand
from django.db import transaction
from django.db.models import Q

User = get_user_model()


class Command(BaseCommand):
    help = 'Delete users whose status is missing or empty (superusers are kept)'

    def add_arguments(self, parser):
        parser.add_argument('--dry-run', action='store_true', help='List the users without deleting them')
        parser.add_argument('--confirm', action='store_true', help='Skip confirmation prompt')

    def handle(self, *args, **options):
        users = User.objects.filter(Q(status__isnull=True) | Q(status='')).exclude(is_superuser=True)
        count = users.count()
        self.stdout.write(f'Found {count} users with no status')
        if count == 0:
            self.stdout.write(self.style.SUCCESS('✓ Nothing to delete'))
            return

        for index, user in enumerate(users[:10], start=1):
            self.stdout.write(f'  {index}. {user.email or user.username} (ID: {user.id}, Role: {user.role or "N/A"})')
        if count > 10:
            self.stdout.write(f'  ... and {count - 10} more')

        if options['dry_run']:
            self.stdout.write(self.style.WARNING(f'\n[DRY RUN] Would delete {count} user(s)'))
            return

        if not options['confirm']:
            confirm = input(f'\nType "YES" to delete {count} user(s): ')
            if confirm != 'YES':
                self.stdout.write(self.style.ERROR('Operation cancelled.'))
                return

        with transaction.atomic():
            deleted, _ = users.delete()
        self.stdout.write(self.style.SUCCESS(f'\n✓ Deleted {count} user(s) ({deleted} rows including related records)'))
