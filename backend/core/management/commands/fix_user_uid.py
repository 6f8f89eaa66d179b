"""
Management command to set or clear the identity provider object id of a user
Usage: python manage.py fix_user_uid user@ecg.com.gh [--uid <object id>] [--clear]

Without --uid the stored uid is cleared so the next login can link the account by email.
"""
from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand, CommandError
from django.db import transaction

User = get_user_model()


class Command(BaseCommand):
    help = "Set (or clear) a user's external identity uid"

    def add_arguments(self, parser):
        parser.add_argument('email', help='Email of the user')
        parser.add_argument('--uid', help='Identity provider object id to store')
        parser.add_argument('--dry-run', action='store_true', help='Show what would change without saving')

    def handle(self, *args, **options):
        user = User.objects.filter(email__iexact=options['email'].strip()).first()
        if user is None:
            raise CommandError(f"User not found: {options['email']}")

        new_uid = options['uid'] or None
        if new_uid and User.objects.filter(uid=new_uid).exclude(pk=user.pk).exists():
            raise CommandError(f'uid {new_uid} already belongs to another user')

        self.stdout.write(f'  {user.username} <{user.email}> role={user.role} status={user.status}')
        self.stdout.write(f'  UID: {user.uid or "N/A"} → {new_uid or "N/A"}')

        with transaction.atomic():
            user.uid = new_uid
            user.save(update_fields=['uid', 'updated_at'])
            if options['dry_run']:
                transaction.set_rollback(True)
                self.stdout.write(self.style.WARNING('[DRY RUN] uid not changed'))
                return
        self.stdout.write(self.style.SUCCESS('✓ UID updated' if new_uid else '✓ UID cleared, the account will be linked by email on next login'))
