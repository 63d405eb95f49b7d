import pytest
from django.urls import reverse
from rest_framework import status
from apps.accounts.models import User
from apps.accounts.services import update_profile
from apps.groups.models import ContactGroup, EventType, GroupMembership, NotificationEvent
from apps.groups.services import create_group, join_group_anonymous, join_group_authenticated


# =============================================================================
# Registration Tests
# =============================================================================

@pytest.mark.django_db
class TestRegistration:
    """Tests for POST /api/auth/register/"""

    def test_register_success(self, api_client):
        """Successfully register a new user."""
        url = reverse('users:register')
        data = {
            'email': 'NewUser@Example.com',
            'password': 'SecurePass123!',
            'password_confirm': 'SecurePass123!',
            'first_name': 'New',
            'last_name': 'User',
            'phone': '+14155550111',
        }
        response = api_client.post(url, data)

        assert response.status_code == status.HTTP_201_CREATED
        assert 'tokens' in response.data
        assert 'access' in response.data['tokens']
        assert 'refresh' in response.data['tokens']
        assert response.data['user']['is_profile_complete'] is True

        user = User.objects.get(email='newuser@example.com')
        assert user.phone == '+14155550111'

    def test_register_without_names(self, api_client):
        """Names are optional at registration, the profile is just incomplete."""
        url = reverse('users:register')
        data = {
            'email': 'minimal@example.com',
            'password': 'SecurePass123!',
            'password_confirm': 'SecurePass123!',
        }
        response = api_client.post(url, data)

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data['user']['is_profile_complete'] is False

    def test_register_duplicate_email(self, api_client, user):
        """Cannot register with existing email."""
        url = reverse('users:register')
        data = {
            'email': user.email.upper(),
            'password': 'SecurePass123!',
            'password_confirm': 'SecurePass123!',
        }
        response = api_client.post(url, data)

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data['error']['code'] == 'registration_failed'

    def test_register_password_mismatch(self, api_client):
        """Registration fails when passwords don't match."""
        url = reverse('users:register')
        data = {
            'email': 'mismatch@example.com',
            'password': 'SecurePass123!',
            'password_confirm': 'DifferentPass123!',
        }
        response = api_client.post(url, data)

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert 'password_confirm' in response.data

    def test_register_weak_password(self, api_client):
        """Registration fails with weak password."""
        url = reverse('users:register')
        data = {
            'email': 'weak@example.com',
            'password': '123',
            'password_confirm': '123',
        }
        response = api_client.post(url, data)

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_register_invalid_phone(self, api_client):
        url = reverse('users:register')
        data = {
            'email': 'phone@example.com',
            'password': 'SecurePass123!',
            'password_confirm': 'SecurePass123!',
            'phone': '0777 123',
        }
        response = api_client.post(url, data)

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert 'phone' in response.data


# =============================================================================
# Login Tests
# =============================================================================

@pytest.mark.django_db
class TestLogin:
    """Tests for POST /api/auth/login/"""

    def test_login_success(self, api_client, user):
        """Successfully login with valid credentials."""
        url = reverse('users:login')
        data = {
            'email': user.email,
            'password': 'TestPass123!',
        }
        response = api_client.post(url, data)

        assert response.status_code == status.HTTP_200_OK
        assert 'access' in response.data['tokens']
        assert response.data['user']['email'] == user.email

    def test_login_wrong_password(self, api_client, user):
        """Login fails with wrong password."""
        url = reverse('users:login')
        data = {
            'email': user.email,
            'password': 'WrongPassword123!',
        }
        response = api_client.post(url, data)

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.data['error']['code'] == 'invalid_credentials'

    def test_login_nonexistent_user(self, api_client):
        """Login fails for non-existent user."""
        url = reverse('users:login')
        data = {
            'email': 'nonexistent@example.com',
            'password': 'SomePass123!',
        }
        response = api_client.post(url, data)

        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_login_inactive_user(self, api_client, user_inactive):
        """Login fails for inactive user."""
        url = reverse('users:login')
        data = {
            'email': user_inactive.email,
            'password': 'TestPass123!',
        }
        response = api_client.post(url, data)

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert response.data['error']['code'] == 'inactive_account'

    def test_login_updates_last_login(self, api_client, user):
        """Login updates last_login timestamp."""
        url = reverse('users:login')
        response = api_client.post(url, {'email': user.email, 'password': 'TestPass123!'})

        assert response.status_code == status.HTTP_200_OK
        user.refresh_from_db()
        assert user.last_login is not None


# =============================================================================
# Logout Tests
# =============================================================================

@pytest.mark.django_db
class TestLogout:
    """Tests for POST /api/auth/logout/"""

    def test_logout_success(self, authenticated_client):
        """Successfully logout."""
        url = reverse('users:logout')
        response = authenticated_client.post(url, {})

        assert response.status_code == status.HTTP_200_OK
        assert response.data['message'] == 'Logout successful'

    def test_logout_invalid_refresh_token(self, authenticated_client):
        url = reverse('users:logout')
        response = authenticated_client.post(url, {'refresh': 'garbage'})

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_logout_unauthenticated(self, api_client):
        """Logout requires authentication."""
        url = reverse('users:logout')
        response = api_client.post(url)

        assert response.status_code == status.HTTP_401_UNAUTHORIZED


# =============================================================================
# Profile Tests
# =============================================================================

@pytest.mark.django_db
class TestCurrentUser:
    """Tests for GET /api/auth/user/"""

    def test_get_current_user(self, authenticated_client, user):
        url = reverse('users:current-user')
        response = authenticated_client.get(url)

        assert response.status_code == status.HTTP_200_OK
        assert response.data['email'] == user.email
        assert response.data['full_name'] == 'Test User'

    def test_get_current_user_unauthenticated(self, api_client):
        url = reverse('users:current-user')
        response = api_client.get(url)

        assert response.status_code == status.HTTP_401_UNAUTHORIZED


@pytest.mark.django_db
class TestUpdateProfile:
    """Tests for PATCH /api/auth/user/update/"""

    def test_update_propagates_to_memberships(self, authenticated_client, user, other_user):
        group = create_group(owner=other_user, name='Reunion')
        membership = join_group_authenticated(user=user, share_token=group.share_token)

        url = reverse('users:update-profile')
        response = authenticated_client.patch(url, {
            'first_name': 'Renamed',
            'phone': '+14155550999',
        }, format='json')

        assert response.status_code == status.HTTP_200_OK
        assert response.data['first_name'] == 'Renamed'

        membership.refresh_from_db()
        assert membership.first_name == 'Renamed'
        assert membership.phone == '+14155550999'

    def test_update_notification_preference(self, authenticated_client, user):
        url = reverse('users:update-profile')
        response = authenticated_client.patch(url, {'sms_notifications_enabled': False}, format='json')

        assert response.status_code == status.HTTP_200_OK
        user.refresh_from_db()
        assert user.sms_notifications_enabled is False

    def test_update_invalid_phone(self, authenticated_client, user):
        url = reverse('users:update-profile')
        response = authenticated_client.patch(url, {'phone': 'not a phone'}, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data['error']['code'] == 'invalid_input'

    def test_cannot_update_email(self, authenticated_client, user):
        """Email is not part of the editable profile."""
        original_email = user.email
        url = reverse('users:update-profile')
        authenticated_client.patch(url, {'email': 'hacker@example.com'}, format='json')

        user.refresh_from_db()
        assert user.email == original_email

    def test_update_profile_unauthenticated(self, api_client):
        url = reverse('users:update-profile')
        response = api_client.patch(url, {'first_name': 'Hacker'}, format='json')

        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_update_profile_service_sms_only(self, user):
        updated = update_profile(user_id=user.pk, sms_notifications_enabled=False)
        assert updated.sms_notifications_enabled is False


# =============================================================================
# Delete Account Tests
# =============================================================================

@pytest.mark.django_db
class TestDeleteAccount:
    """Tests for DELETE /api/auth/user/delete/"""

    def test_delete_account_success(self, authenticated_client, user):
        url = reverse('users:delete-account')
        response = authenticated_client.delete(url, {'password': 'TestPass123!', 'confirm': True}, format='json')

        assert response.status_code == status.HTTP_204_NO_CONTENT
        assert not User.objects.filter(id=user.id).exists()

    def test_delete_account_transfers_owned_groups(self, authenticated_client, user, other_user):
        group = create_group(owner=user, name='Book Club')
        join_group_authenticated(user=other_user, share_token=group.share_token)

        url = reverse('users:delete-account')
        response = authenticated_client.delete(url, {'password': 'TestPass123!', 'confirm': True}, format='json')

        assert response.status_code == status.HTTP_204_NO_CONTENT
        group.refresh_from_db()
        assert group.owner == other_user

        departed = GroupMembership.objects.departed().get(group=group)
        assert departed.user is None
        assert departed.email == user.email

        left = NotificationEvent.objects.get(group=group, event_type=EventType.MEMBER_LEFT)
        assert left.data['account_deleted'] is True

    def test_delete_account_removes_orphaned_groups(self, authenticated_client, user):
        group = create_group(owner=user, name='Solo')
        join_group_anonymous(
            share_token=group.share_token,
            first_name='Guest',
            last_name='Only',
            email='guest@example.com',
        )

        url = reverse('users:delete-account')
        response = authenticated_client.delete(url, {'password': 'TestPass123!', 'confirm': True}, format='json')

        assert response.status_code == status.HTTP_204_NO_CONTENT
        assert not ContactGroup.objects.filter(id=group.id).exists()

    def test_delete_account_wrong_password(self, authenticated_client, user):
        url = reverse('users:delete-account')
        response = authenticated_client.delete(url, {'password': 'WrongPass!', 'confirm': True}, format='json')

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert User.objects.filter(id=user.id).exists()

    def test_delete_account_without_confirmation(self, authenticated_client, user):
        url = reverse('users:delete-account')
        response = authenticated_client.delete(url, {'password': 'TestPass123!', 'confirm': False}, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert User.objects.filter(id=user.id).exists()

    def test_delete_account_unauthenticated(self, api_client):
        url = reverse('users:delete-account')
        response = api_client.delete(url, {'password': 'whatever', 'confirm': True}, format='json')

        assert response.status_code == status.HTTP_401_UNAUTHORIZED


# =============================================================================
# Account Lookup Tests
# =============================================================================

@pytest.mark.django_db
class TestNoAccountLookup:
    """Contact details are only visible through groups."""

    def test_user_by_id_route_does_not_exist(self, authenticated_client, other_user):
        response = authenticated_client.get(f'/api/auth/users/{other_user.id}/')

        assert response.status_code == status.HTTP_404_NOT_FOUND


# =============================================================================
# User Model Tests
# =============================================================================

@pytest.mark.django_db
class TestUserModel:
    """Tests for User model methods."""

    def test_create_user_normalizes_email(self, db):
        user = User.objects.create_user(
            email='  Model@Example.COM ',
            password='TestPass123!',
        )

        assert user.email == 'model@example.com'
        assert user.check_password('TestPass123!')
        assert user.is_active is True
        assert user.is_staff is False

    def test_create_superuser(self, db):
        user = User.objects.create_superuser(
            email='admin@example.com',
            password='AdminPass123!',
        )

        assert user.is_staff is True
        assert user.is_superuser is True

    def test_get_display_name(self, user):
        """get_display_name returns full name or email prefix."""
        assert user.get_display_name() == 'Test User'

        user.first_name = ''
        user.last_name = ''
        assert user.get_display_name() == 'testuser'

    def test_profile_complete(self, user):
        assert user.is_profile_complete is True

        user.last_name = '  '
        assert user.is_profile_complete is False

    def test_user_str(self, user):
        assert str(user) == user.email
