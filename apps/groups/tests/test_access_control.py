"""
Unit tests for the authorization predicates.

The predicates never touch the database, so these tests use unsaved
model instances.
"""

from uuid import uuid4

from django.contrib.auth.models import AnonymousUser
from django.utils import timezone

from apps.accounts.models import User
from apps.groups.models import ContactGroup, GroupMembership
from apps.groups.services import (
    can_mutate_group,
    can_read_group,
    can_read_group_preview,
    can_remove_membership,
)


def make_user():
    return User(id=uuid4(), email=f'{uuid4().hex[:8]}@example.com')


def make_group(owner):
    return ContactGroup(id=uuid4(), name='Test', owner_id=owner.pk, share_token=uuid4().hex)


def make_membership(group, user=None, departed=False):
    return GroupMembership(
        id=uuid4(),
        group_id=group.pk,
        user_id=user.pk if user else None,
        first_name='Test',
        email='test@example.com',
        departed_at=timezone.now() if departed else None,
    )


class TestCanReadGroup:

    def test_owner_can_read_without_membership(self):
        owner = make_user()
        group = make_group(owner)
        assert can_read_group(owner, group) is True

    def test_active_member_can_read(self):
        owner, member = make_user(), make_user()
        group = make_group(owner)
        membership = make_membership(group, member)
        assert can_read_group(member, group, membership) is True

    def test_departed_member_cannot_read(self):
        owner, member = make_user(), make_user()
        group = make_group(owner)
        membership = make_membership(group, member, departed=True)
        assert can_read_group(member, group, membership) is False

    def test_outsider_cannot_read(self):
        group = make_group(make_user())
        assert can_read_group(make_user(), group) is False

    def test_membership_of_someone_else_does_not_grant_access(self):
        owner, member, outsider = make_user(), make_user(), make_user()
        group = make_group(owner)
        membership = make_membership(group, member)
        assert can_read_group(outsider, group, membership) is False

    def test_membership_in_other_group_does_not_grant_access(self):
        owner, member = make_user(), make_user()
        group = make_group(owner)
        other_group = make_group(owner)
        membership = make_membership(other_group, member)
        assert can_read_group(member, group, membership) is False

    def test_anonymous_actor_cannot_read(self):
        group = make_group(make_user())
        assert can_read_group(AnonymousUser(), group) is False
        assert can_read_group(None, group) is False


class TestPreviewAndMutate:

    def test_preview_is_public(self):
        assert can_read_group_preview(make_group(make_user())) is True

    def test_only_owner_can_mutate(self):
        owner, member = make_user(), make_user()
        group = make_group(owner)
        assert can_mutate_group(owner, group) is True
        assert can_mutate_group(member, group) is False
        assert can_mutate_group(AnonymousUser(), group) is False


class TestCanRemoveMembership:

    def test_owner_can_remove_member(self):
        owner, member = make_user(), make_user()
        group = make_group(owner)
        assert can_remove_membership(owner, group, make_membership(group, member)) is True

    def test_owner_can_remove_anonymous_member(self):
        owner = make_user()
        group = make_group(owner)
        assert can_remove_membership(owner, group, make_membership(group)) is True

    def test_member_can_remove_self(self):
        owner, member = make_user(), make_user()
        group = make_group(owner)
        assert can_remove_membership(member, group, make_membership(group, member)) is True

    def test_member_cannot_remove_other_member(self):
        owner, member, other = make_user(), make_user(), make_user()
        group = make_group(owner)
        assert can_remove_membership(member, group, make_membership(group, other)) is False

    def test_nobody_can_remove_owner_membership(self):
        owner = make_user()
        group = make_group(owner)
        owner_membership = make_membership(group, owner)
        assert can_remove_membership(owner, group, owner_membership) is False

    def test_anonymous_actor_cannot_remove(self):
        group = make_group(make_user())
        assert can_remove_membership(AnonymousUser(), group, make_membership(group)) is False
