"""
Ownership reaper.

Runs when an account is about to be deleted: hands each owned group to the
longest-standing member who has an account, deletes groups nobody can
take over, and retires the account's remaining memberships.
"""

import logging
from dataclasses import dataclass, field
from typing import List
from uuid import UUID

from django.db import transaction
from django.utils import timezone

from apps.accounts.models import User
from apps.groups.models import ContactGroup, GroupMembership

from .notifications import emit_member_left

logger = logging.getLogger(__name__)


@dataclass
class ReapResult:
    transferred: List[UUID] = field(default_factory=list)
    deleted: List[UUID] = field(default_factory=list)
    departed_memberships: List[UUID] = field(default_factory=list)


@transaction.atomic
def reassign_owned_groups(*, user: User) -> ReapResult:
    """
    Transfer or delete every group owned by ``user``.

    For each owned group the earliest-joined active member with an account
    becomes the owner. Groups without such a member are hard-deleted
    together with their memberships and events. All of the user's other
    active memberships are marked departed with a member_left event.

    Returns:
        ReapResult listing transferred and deleted group ids and the
        memberships that were retired
    """
    result = ReapResult()

    owned_groups = (
        ContactGroup.objects
        .select_for_update()
        .filter(owner=user)
        .order_by('created_at')
    )

    for group in owned_groups:
        successor = group.next_owner_membership()

        if successor is None:
            result.deleted.append(group.id)
            logger.info("Deleting orphaned group %s of departing user %s", group.id, user.pk)
            group.delete()
            continue

        group.owner_id = successor.user_id
        group.save(update_fields=['owner', 'updated_at'])
        result.transferred.append(group.id)
        logger.info(
            "Ownership of group %s transferred from %s to %s",
            group.id, user.pk, successor.user_id,
        )

    now = timezone.now()
    remaining = (
        GroupMembership.objects
        .active()
        .select_for_update()
        .select_related('group')
        .filter(user=user)
    )
    for membership in remaining:
        emit_member_left(membership, removed_by_owner=False, account_deleted=True)
        membership.departed_at = now
        membership.save(update_fields=['departed_at'])
        result.departed_memberships.append(membership.id)

    return result
