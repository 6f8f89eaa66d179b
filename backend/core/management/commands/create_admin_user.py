"""
Management command to create a system administrator or promote an existing user
Usage: python manage.py create_admin_user --email admin@ecg.com.gh [--username admin] [--password ...]
"""
from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand, CommandError
from django.db import transaction

User = get_user_model()


class Command(BaseCommand):
    help = 'Create a system administrator account, or promote an existing user by email'

    def add_arguments(self, parser):
        parser.add_argument('--email', required=True, help='Email of the admin account')
        parser.add_argument('--username', help='Username (defaults to the part of the email before @)')
        parser.add_argument('--password', help='Password for a new account (unusable password when omitted)')
        parser.add_argument('--name', default='', help='Display name')
        parser.add_argument('--dry-run', action='store_true', help='Show what would change without saving')

    def handle(self, *args, **options):
        email = options['email'].strip().lower()
        if '@' not in email:
            raise CommandError(f'Invalid email: {email}')
        dry_run = options['dry_run']

        with transaction.atomic():
            user = User.objects.filter(email__iexact=email).first()
            if user:
                self.stdout.write(f'  Found existing user {user.username} (role: {user.role}, status: {user.status})')
                user.role = 'system_admin'
                user.status = 'active'
                user.is_staff = True
                user.save(update_fields=['role', 'status', 'is_staff', 'updated_at'])
                message = f'✓ Promoted {email} to system administrator'
            else:
                username = options['username'] or email.split('@')[0]
                if User.objects.filter(username=username).exists():
                    raise CommandError(f'Username {username} is already taken')
                user = User(
                    username=username, email=email, display_name=options['name'],
                    role='system_admin', status='active', is_staff=True,
                )
                if options['password']:
                    user.set_password(options['password'])
                else:
                    user.set_unusable_password()
                user.save()
                message = f'✓ Created system administrator {username} ({email})'

            if dry_run:
                transaction.set_rollback(True)
                self.stdout.write(self.style.WARNING(f'[DRY RUN] {message}'))
            else:
                self.stdout.write(self.style.SUCCESS(message))
