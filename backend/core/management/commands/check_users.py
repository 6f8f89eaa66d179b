"""
Management command to report on user accounts
Usage: python manage.py check_users [--email someone@ecg.com.gh]
"""
from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand
from django.db.models import Count, Q

User = get_user_model()


class Command(BaseCommand):
    help = 'Show user counts by role and status, pending users and administrators'

    def add_arguments(self, parser):
        parser.add_argument('--email', help='Search users whose email contains this text')

    def _describe(self, user):
        location = user.district.name if user.district_id else (user.region.name if user.region_id else 'N/A')
        return f'{user.username} <{user.email or "no email"}> role={user.role} status={user.status or "N/A"} area={location}'

    def handle(self, *args, **options):
        users = User.objects.select_related('region', 'district')

        if options['email']:
            matches = users.filter(email__icontains=options['email'].strip())
            self.stdout.write(f'Users matching "{options["email"]}": {matches.count()}')
            for user in matches:
                self.stdout.write(f'  - {self._describe(user)}')
            return

        self.stdout.write(f'Total users: {users.count()}')

        self.stdout.write('\nBy status:')
        for row in users.values('status').annotate(n=Count('id')).order_by('status'):
            self.stdout.write(f'  {row["status"] or "(none)"}: {row["n"]}')

        self.stdout.write('\nBy role:')
        for row in users.values('role').annotate(n=Count('id')).order_by('role'):
            self.stdout.write(f'  {row["role"]}: {row["n"]}')

        pending = users.filter(Q(status='pending') | Q(role='pending'))
        self.stdout.write(f'\nPending approval: {pending.count()}')
        for user in pending[:20]:
            self.stdout.write(f'  - {self._describe(user)}')

        admins = users.filter(Q(role='system_admin') | Q(is_superuser=True))
        self.stdout.write(f'\nAdministrators: {admins.count()}')
        for user in admins:
            self.stdout.write(f'  - {self._describe(user)}')
        if not admins.filter(status='active').exists() and not admins.filter(is_superuser=True).exists():
            self.stdout.write(self.style.WARNING('\n⚠️  No active administrator found. Run create_admin_user.'))
