"""
Group lifecycle service.

Handles group creation, settings, closing and read access with proper
transaction safety.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional
from uuid import UUID

from django.conf import settings
from django.db import transaction, IntegrityError
from django.db.models import Count, Q
from django.utils import timezone

from apps.accounts.models import User
from apps.groups.models import AccessType, ContactGroup, GroupMembership

from .access_control import can_mutate_group, can_read_group
from .exceptions import (
    ForbiddenError,
    GroupNotFoundError,
    InvalidInputError,
    NotGroupOwnerError,
    PasswordRequiredError,
    ProfileIncompleteError,
    ShareTokenCollisionError,
)
from .notifications import emit_group_closed
from .password_gate import hash_group_password
from .share_tokens import generate_share_token

logger = logging.getLogger(__name__)


def _clean_name(name: Optional[str]) -> str:
    cleaned = (name or '').strip()
    if not cleaned:
        raise InvalidInputError("Group name is required")
    if len(cleaned) > 100:
        raise InvalidInputError("Group name must be at most 100 characters")
    return cleaned


def _clean_description(description: Optional[str]) -> str:
    cleaned = (description or '').strip()
    if len(cleaned) > 500:
        raise InvalidInputError("Description must be at most 500 characters")
    return cleaned


def _get_group_for_update(group_id: UUID) -> ContactGroup:
    try:
        return (
            ContactGroup.objects
            .select_for_update()
            .get(id=group_id)
        )
    except ContactGroup.DoesNotExist:
        raise GroupNotFoundError(f"Group with ID {group_id} not found")


def create_group(
    *,
    owner: User,
    name: str,
    description: str = '',
    access_type: str = AccessType.OPEN,
    password: Optional[str] = None,
    max_attempts: int = None
) -> ContactGroup:
    """
    Create a new contact group and add the creator as its first member.

    This is a multi-step operation wrapped in a transaction:
    1. Generate unique share token
    2. Create the group
    3. Create the owner's membership from their profile

    No notification event is emitted for creation.

    Args:
        owner: User who will own the group
        name: Group name
        description: Optional group description
        access_type: 'open' or 'password'
        password: Join password, required when access_type is 'password'
        max_attempts: Attempts to generate a unique share token

    Returns:
        Created ContactGroup instance (with ``share_token``)

    Raises:
        ProfileIncompleteError: If the owner's profile lacks name or email
        InvalidInputError: If name is blank or access_type is unknown
        PasswordRequiredError: If a password group gets no password
        ShareTokenCollisionError: If no unique share token could be generated
    """
    if max_attempts is None:
        max_attempts = settings.CONTACT_GROUPS_TOKEN_MAX_ATTEMPTS

    if not owner.is_profile_complete:
        raise ProfileIncompleteError("Please complete your profile before creating a group")

    name = _clean_name(name)
    description = _clean_description(description)

    if access_type not in AccessType.values:
        raise InvalidInputError(f"Unknown access type: {access_type}")

    password_hash = None
    if access_type == AccessType.PASSWORD:
        password_hash = hash_group_password(password)
    elif password:
        raise InvalidInputError("A password can only be set on password-protected groups")

    # Retry outside the transaction to handle share token collisions
    for attempt in range(max_attempts):
        share_token = generate_share_token()

        try:
            # Each attempt is a separate transaction
            with transaction.atomic():
                group = ContactGroup.objects.create(
                    name=name,
                    description=description,
                    owner=owner,
                    access_type=access_type,
                    join_password_hash=password_hash,
                    share_token=share_token,
                )

                GroupMembership.objects.create(
                    group=group,
                    user=owner,
                    first_name=owner.first_name.strip(),
                    last_name=owner.last_name.strip(),
                    email=owner.email.strip().lower(),
                    phone=owner.phone or None,
                    avatar_url=owner.avatar_url or None,
                    notifications_enabled=owner.sms_notifications_enabled,
                )
        except IntegrityError:
            # Share token collision (very rare)
            logger.warning("Share token collision creating group for %s (attempt %d)", owner.pk, attempt + 1)
            continue

        logger.info("Group %s created by %s (%s)", group.id, owner.pk, access_type)
        return group

    raise ShareTokenCollisionError(
        f"Failed to generate unique share token after {max_attempts} attempts"
    )


def _close_locked_group(group: ContactGroup, user: User) -> bool:
    """Close an already locked group. Returns False if it was closed before."""
    if group.is_closed:
        return False

    closed_at = timezone.now()
    group.is_closed = True
    group.save(update_fields=['is_closed', 'updated_at'])
    emit_group_closed(group, closed_by=user, closed_at=closed_at)

    logger.info("Group %s closed by %s", group.id, user.pk)
    return True


@transaction.atomic
def close_group(*, group_id: UUID, user: User) -> ContactGroup:
    """
    Close a group to new members (owner only).

    Closing an already closed group is a no-op and emits no second event.
    Existing memberships stay readable.

    Raises:
        GroupNotFoundError: If group doesn't exist
        NotGroupOwnerError: If user is not the owner
    """
    group = _get_group_for_update(group_id)

    if not can_mutate_group(user, group):
        logger.warning("User %s tried to close group %s", user.pk, group.id)
        raise NotGroupOwnerError("Only the group owner can close the group")

    _close_locked_group(group, user)
    return group


@transaction.atomic
def update_group_settings(
    *,
    group_id: UUID,
    user: User,
    name: Optional[str] = None,
    description: Optional[str] = None,
    access_type: Optional[str] = None,
    password: Optional[str] = None,
    is_closed: Optional[bool] = None
) -> ContactGroup:
    """
    Update group settings (owner only).

    Uses select_for_update to prevent concurrent modifications.

    Access rules:
    - switching to 'password' needs a password unless a hash already exists
    - a password given while staying on 'password' replaces the hash
    - switching to 'open' clears the hash
    - is_closed=True closes the group like ``close_group`` (idempotent)
    - is_closed=False reopens the group

    Raises:
        GroupNotFoundError: If group doesn't exist
        NotGroupOwnerError: If user is not the owner
        PasswordRequiredError: If password access is requested without any password
        InvalidInputError: If a field is malformed
    """
    group = _get_group_for_update(group_id)

    if not can_mutate_group(user, group):
        logger.warning("User %s tried to update settings of group %s", user.pk, group.id)
        raise NotGroupOwnerError("Only the group owner can update the group")

    update_fields = ['updated_at']

    if name is not None:
        group.name = _clean_name(name)
        update_fields.append('name')

    if description is not None:
        group.description = _clean_description(description)
        update_fields.append('description')

    if access_type is not None and access_type not in AccessType.values:
        raise InvalidInputError(f"Unknown access type: {access_type}")

    target_access = access_type or group.access_type
    has_new_password = password is not None and password.strip() != ''

    if target_access == AccessType.PASSWORD:
        if has_new_password:
            group.join_password_hash = hash_group_password(password)
        elif not group.join_password_hash:
            raise PasswordRequiredError("A password is required to protect this group")
    else:
        if has_new_password:
            raise InvalidInputError("A password can only be set on password-protected groups")
        group.join_password_hash = None

    if target_access != group.access_type or has_new_password:
        group.access_type = target_access
        update_fields.extend(['access_type', 'join_password_hash'])

    if is_closed is False and group.is_closed:
        group.is_closed = False
        update_fields.append('is_closed')
        logger.info("Group %s reopened by %s", group.id, user.pk)

    group.save(update_fields=update_fields)

    if is_closed:
        _close_locked_group(group, user)

    logger.info("Settings updated for group %s: %s", group.id, ', '.join(update_fields[1:]) or 'nothing')
    return group


def get_group_by_id(*, group_id: UUID, user: User) -> ContactGroup:
    """
    Get a group the user may read.

    Raises:
        GroupNotFoundError: If group doesn't exist
        ForbiddenError: If user is neither owner nor active member
    """
    try:
        group = ContactGroup.objects.select_related('owner').get(id=group_id)
    except ContactGroup.DoesNotExist:
        raise GroupNotFoundError(f"Group with ID {group_id} not found")

    membership = None
    if user is not None and user.is_authenticated:
        membership = (
            GroupMembership.objects
            .active()
            .filter(group=group, user=user)
            .first()
        )

    if not can_read_group(user, group, membership):
        raise ForbiddenError("You do not have access to this group")

    return group


def get_user_groups(*, user: User):
    """
    Groups where the user holds an active membership, newest first.

    Each group is annotated with ``member_count`` (active members only).
    """
    # Subquery keeps the membership join of the count independent of the filter
    group_ids = GroupMembership.objects.active().filter(user=user).values('group_id')

    return (
        ContactGroup.objects
        .filter(id__in=group_ids)
        .select_related('owner')
        .annotate(
            member_count=Count(
                'memberships',
                filter=Q(memberships__departed_at__isnull=True),
            )
        )
        .order_by('-created_at')
    )


@dataclass(frozen=True)
class GroupStats:
    member_count: int
    notification_subscribers: int
    members_with_phone: int
    departed_count: int
    last_member_joined: Optional[datetime]


def get_group_stats(*, group_id: UUID, user: User) -> GroupStats:
    """
    Membership statistics for the owner's dashboard.

    Raises:
        GroupNotFoundError: If group doesn't exist
        NotGroupOwnerError: If user is not the owner
    """
    try:
        group = ContactGroup.objects.get(id=group_id)
    except ContactGroup.DoesNotExist:
        raise GroupNotFoundError(f"Group with ID {group_id} not found")

    if not can_mutate_group(user, group):
        raise NotGroupOwnerError("Only the group owner can view group statistics")

    active = GroupMembership.objects.active().filter(group=group)
    latest = active.order_by('-joined_at').values_list('joined_at', flat=True).first()

    return GroupStats(
        member_count=active.count(),
        notification_subscribers=active.filter(notifications_enabled=True).count(),
        members_with_phone=active.filter(phone__isnull=False).exclude(phone='').count(),
        departed_count=GroupMembership.objects.departed().filter(group=group).count(),
        last_member_joined=latest,
    )
