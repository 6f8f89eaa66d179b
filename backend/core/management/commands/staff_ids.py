"""
Management command to inspect or clear the pre-registered staff id list
Usage:
    python manage.py staff_ids count
    python manage.py staff_ids delete-all [--dry-run] [--confirm]
"""
from django.core.management.base import BaseCommand
from django.db import transaction

from backend.core.models import StaffId


class Command(BaseCommand):
    help = 'Count or delete all staff ids'

    def add_arguments(self, parser):
        parser.add_argument('action', choices=['count', 'delete-all'])
        parser.add_argument('--dry-run', action='store_true', help='Report without deleting')
        parser.add_argument('--confirm', action='store_true', help='Skip confirmation prompt')

    def handle(self, *args, **options):
        total = StaffId.objects.count()
        assigned = StaffId.objects.filter(is_assigned=True).count()
        self.stdout.write(f'Staff ids: {total} ({assigned} assigned, {total - assigned} unassigned)')

        if options['action'] == 'count':
            return
        if total == 0:
            self.stdout.write(self.style.SUCCESS('✓ Nothing to delete'))
            return
        if options['dry_run']:
            self.stdout.write(self.style.WARNING(f'[DRY RUN] Would delete {total} staff id(s)'))
            return
        if not options['confirm']:
            confirm = input(f'Type "YES" to delete all {total} staff ids: ')
            if confirm != 'YES':
                self.stdout.write(self.style.ERROR('Operation cancelled.'))
                return

        with transaction.atomic():
            deleted, _ = StaffId.objects.all().delete()
        self.stdout.write(self.style.SUCCESS(f'✓ Deleted {deleted} staff id(s)'))
