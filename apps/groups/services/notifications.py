"""
Notification event emitter.

Appends NotificationEvent rows consumed by the external SMS delivery
worker. Emitters must be called inside the same transaction as the
state change they describe, so a change never commits without its event.
"""

import logging
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from django.db import transaction
from django.utils import timezone

from apps.accounts.models import User
from apps.groups.models import ContactGroup, EventType, GroupMembership, NotificationEvent

from .access_control import can_mutate_group
from .exceptions import GroupNotFoundError, NotGroupOwnerError

logger = logging.getLogger(__name__)


def _append(group: ContactGroup, event_type: str, data: dict) -> NotificationEvent:
    if not transaction.get_connection().in_atomic_block:
        raise RuntimeError("Notification events must be written inside the state change transaction")

    event = NotificationEvent.objects.create(group=group, event_type=event_type, data=data)
    logger.debug("Appended %s event %s for group %s", event_type, event.id, group.id)
    return event


def emit_member_joined(membership: GroupMembership) -> NotificationEvent:
    data = {
        'membership_id': str(membership.id),
        'member_name': membership.full_name,
        'member_email': membership.email,
        'anonymous': membership.user_id is None,
        'joined_at': membership.joined_at.isoformat(),
    }
    if membership.user_id is not None:
        data['user_id'] = str(membership.user_id)
    return _append(membership.group, EventType.MEMBER_JOINED, data)


def emit_member_left(
    membership: GroupMembership,
    *,
    removed_by_owner: bool,
    account_deleted: bool = False
) -> NotificationEvent:
    data = {
        'membership_id': str(membership.id),
        'member_name': membership.full_name,
        'member_email': membership.email,
        'removed_by_owner': removed_by_owner,
    }
    if account_deleted:
        data['account_deleted'] = True
    return _append(membership.group, EventType.MEMBER_LEFT, data)


def emit_group_closed(group: ContactGroup, *, closed_by: User, closed_at: datetime) -> NotificationEvent:
    data = {
        'closed_by': str(closed_by.pk),
        'group_name': group.name,
        'closed_at': closed_at.isoformat(),
    }
    return _append(group, EventType.GROUP_CLOSED, data)


def list_group_events(
    *,
    group_id: UUID,
    user: User,
    since: Optional[datetime] = None,
    event_type: Optional[str] = None
) -> List[NotificationEvent]:
    """
    Events of a group in append order (owner only).

    Args:
        group_id: UUID of the group
        user: Requesting user (must be owner)
        since: Only events created strictly after this instant
        event_type: Only events of this type

    Raises:
        GroupNotFoundError: If group doesn't exist
        NotGroupOwnerError: If user is not the owner
    """
    try:
        group = ContactGroup.objects.get(id=group_id)
    except ContactGroup.DoesNotExist:
        raise GroupNotFoundError(f"Group with ID {group_id} not found")

    if not can_mutate_group(user, group):
        raise NotGroupOwnerError("Only the group owner can read the event log")

    events = NotificationEvent.objects.filter(group=group)
    if since is not None:
        if timezone.is_naive(since):
            since = timezone.make_aware(since)
        events = events.filter(created_at__gt=since)
    if event_type:
        events = events.filter(event_type=event_type)

    return list(events.order_by('created_at'))
