import pytest
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken
from apps.accounts.models import User
from apps.groups.models import AccessType, GroupMembership
from apps.groups.services import create_group


GROUP_PASSWORD = 'secret-pass'


def client_for(user):
    """Return a new API client authenticated as ``user`` using JWT."""
    client = APIClient()
    refresh = RefreshToken.for_user(user)
    client.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
    return client


@pytest.fixture
def api_client():
    """Return an unauthenticated API client."""
    return APIClient()


@pytest.fixture
def group_owner(db):
    """Create and return a test user (group owner) with a complete profile."""
    return User.objects.create_user(
        email='owner@example.com',
        password='TestPass123!',
        first_name='Olivia',
        last_name='Owner',
        phone='+14155550100',
    )


@pytest.fixture
def member_user(db):
    """Create and return a user with a complete profile."""
    return User.objects.create_user(
        email='member@example.com',
        password='TestPass123!',
        first_name='Max',
        last_name='Member',
        phone='+14155550101',
    )


@pytest.fixture
def group_other_user(db):
    """Create and return a user not in any group."""
    return User.objects.create_user(
        email='other@example.com',
        password='TestPass123!',
        first_name='Oscar',
        last_name='Outsider',
    )


@pytest.fixture
def incomplete_user(db):
    """Create and return a user without a last name."""
    return User.objects.create_user(
        email='incomplete@example.com',
        password='TestPass123!',
        first_name='Ian',
    )


@pytest.fixture
def authenticated_client(group_owner):
    """Return API client authenticated as group owner."""
    return client_for(group_owner)


@pytest.fixture
def member_client(member_user):
    """Return API client authenticated as a group member."""
    return client_for(member_user)


@pytest.fixture
def other_client(group_other_user):
    """Return API client authenticated as a user outside the group."""
    return client_for(group_other_user)


@pytest.fixture
def group(group_owner):
    """Open group owned by group_owner (owner membership included)."""
    return create_group(
        owner=group_owner,
        name='Summer Camp',
        description='Parents of the summer camp kids',
    )


@pytest.fixture
def password_group(group_owner):
    """Password protected group owned by group_owner."""
    return create_group(
        owner=group_owner,
        name='Poker Night',
        access_type=AccessType.PASSWORD,
        password=GROUP_PASSWORD,
    )


@pytest.fixture
def membership(group, member_user):
    """Active membership of member_user in group."""
    return GroupMembership.objects.create(
        group=group,
        user=member_user,
        first_name=member_user.first_name,
        last_name=member_user.last_name,
        email=member_user.email,
        phone=member_user.phone,
    )


@pytest.fixture
def anonymous_membership(group):
    """Active membership without an account."""
    return GroupMembership.objects.create(
        group=group,
        first_name='Anna',
        last_name='Anon',
        email='anna@example.com',
    )


@pytest.fixture
def owner_membership(group, group_owner):
    return GroupMembership.objects.get(group=group, user=group_owner)
