"""
Management command to change a user's approval status (and optionally role)
Usage: python manage.py update_user_status user@ecg.com.gh active [--role district_engineer]
"""
from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand, CommandError
from django.db import transaction

from backend.core.models import ROLE_CHOICES

User = get_user_model()


class Command(BaseCommand):
    help = 'Update the status of users matching an email (case-insensitive)'

    def add_arguments(self, parser):
        parser.add_argument('email', help='Email of the user')
        parser.add_argument('status', choices=[choice for choice, _ in User.STATUS_CHOICES], help='New status')
        parser.add_argument('--role', choices=[choice for choice, _ in ROLE_CHOICES], help='Also set the role')
        parser.add_argument('--dry-run', action='store_true', help='Show what would change without saving')

    def handle(self, *args, **options):
        users = list(User.objects.filter(email__iexact=options['email'].strip()))
        if not users:
            raise CommandError(f"User not found: {options['email']}")
        if len(users) > 1:
            self.stdout.write(self.style.WARNING(f'⚠️  Found {len(users)} users with this email'))

        updated = 0
        with transaction.atomic():
            for user in users:
                self.stdout.write(f'\n  {user.username} <{user.email}>')
                self.stdout.write(f'    Status: {user.status or "N/A"} → {options["status"]}')
                user.status = options['status']
                fields = ['status', 'updated_at']
                if options['role']:
                    self.stdout.write(f'    Role:   {user.role} → {options["role"]}')
                    user.role = options['role']
                    fields.append('role')
                user.save(update_fields=fields)
                updated += 1
            if options['dry_run']:
                transaction.set_rollback(True)

        if options['dry_run']:
            self.stdout.write(self.style.WARNING(f'\n[DRY RUN] Would update {updated} user(s)'))
        else:
            self.stdout.write(self.style.SUCCESS(f'\n✓ Updated {updated} user(s)'))
