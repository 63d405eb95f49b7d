"""
Management command to create sample data for testing the API.

Usage:
    python manage.py create_sample_data

This creates:
- 4 users (admin, alice, bob, charlie)
- 2 groups (Summer Camp Parents, Board Game Night)
- Memberships for account holders and one anonymous participant
"""

from django.core.management.base import BaseCommand
from django.db import transaction

from apps.accounts.models import User
from apps.groups.models import AccessType, ContactGroup
from apps.groups.services import (
    close_group,
    create_group,
    join_group_anonymous,
    join_group_authenticated,
)


SAMPLE_GROUP_PASSWORD = 'meeples'


class Command(BaseCommand):
    help = 'Create sample data for testing the API'

    def add_arguments(self, parser):
        parser.add_argument(
            '--clear',
            action='store_true',
            help='Clear existing data before creating new sample data',
        )

    @transaction.atomic
    def handle(self, *args, **options):
        if options['clear']:
            self.stdout.write('Clearing existing data...')
            self.clear_data()

        self.stdout.write('Creating sample data...')

        users = self.create_users()
        groups = self.create_groups(users)
        self.create_memberships(users, groups)

        self.stdout.write(self.style.SUCCESS('Sample data created successfully!'))
        self.stdout.write('')
        self.stdout.write('Test accounts:')
        self.stdout.write('  admin@example.com / admin123 (superuser)')
        self.stdout.write('  alice@example.com / password123')
        self.stdout.write('  bob@example.com / password123')
        self.stdout.write('  charlie@example.com / password123')
        self.stdout.write('')
        self.stdout.write('Share links:')
        for group in groups.values():
            self.stdout.write(f'  {group.name}: /api/groups/join/{group.share_token}/')
        self.stdout.write(f'  (group password: {SAMPLE_GROUP_PASSWORD})')

    def clear_data(self):
        """Clear all data from the database."""
        # Memberships and events cascade with their groups
        ContactGroup.objects.all().delete()
        User.objects.filter(is_superuser=False).delete()
        User.objects.filter(email='admin@example.com').delete()

    def _user(self, email, password, **defaults):
        user, _ = User.objects.get_or_create(email=email, defaults=defaults)
        user.set_password(password)
        user.save()
        return user

    def create_users(self):
        """Create test users."""
        self.stdout.write('  Creating users...')

        return {
            'admin': self._user(
                'admin@example.com', 'admin123',
                first_name='Admin', last_name='User', is_staff=True, is_superuser=True,
            ),
            'alice': self._user(
                'alice@example.com', 'password123',
                first_name='Alice', last_name='Anders', phone='+14155550101',
            ),
            'bob': self._user(
                'bob@example.com', 'password123',
                first_name='Bob', last_name='Brown', phone='+14155550102',
            ),
            'charlie': self._user(
                'charlie@example.com', 'password123',
                first_name='Charlie', last_name='Chen',
            ),
        }

    def create_groups(self, users):
        """Create one open and one password-protected group."""
        self.stdout.write('  Creating groups...')

        camp = create_group(
            owner=users['alice'],
            name='Summer Camp Parents',
            description='Contacts for carpooling and pickups',
        )
        games = create_group(
            owner=users['bob'],
            name='Board Game Night',
            access_type=AccessType.PASSWORD,
            password=SAMPLE_GROUP_PASSWORD,
        )
        return {'camp': camp, 'games': games}

    def create_memberships(self, users, groups):
        """Join users and an anonymous participant to the groups."""
        self.stdout.write('  Creating memberships...')

        camp = groups['camp']
        games = groups['games']

        join_group_authenticated(user=users['bob'], share_token=camp.share_token, notifications_enabled=True)
        join_group_authenticated(user=users['charlie'], share_token=camp.share_token)
        join_group_anonymous(
            share_token=camp.share_token,
            first_name='Dana',
            last_name='Diaz',
            email='dana@example.com',
            phone='+14155550104',
            notifications_enabled=True,
        )

        join_group_authenticated(
            user=users['alice'],
            share_token=games.share_token,
            password=SAMPLE_GROUP_PASSWORD,
        )
        close_group(group_id=games.id, user=users['bob'])
