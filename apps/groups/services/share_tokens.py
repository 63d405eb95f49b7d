"""
Share token management service.

Handles share token generation and rotation with uniqueness guarantees.
"""

import logging
import secrets
from uuid import UUID

from django.conf import settings
from django.db import transaction, IntegrityError

from apps.accounts.models import User
from apps.groups.models import ContactGroup

from .access_control import can_mutate_group
from .exceptions import (
    GroupNotFoundError,
    NotGroupOwnerError,
    ShareTokenCollisionError,
)

logger = logging.getLogger(__name__)


def generate_share_token() -> str:
    """Random hex token used as the capability to join a group."""
    return secrets.token_hex(settings.CONTACT_GROUPS_SHARE_TOKEN_BYTES)


def resolve_share_token(*, share_token: str, for_update: bool = False) -> ContactGroup:
    """
    Look up a group by share token.

    Raises:
        GroupNotFoundError: If no group currently holds this token
    """
    if not share_token:
        raise GroupNotFoundError("Invalid group link or group not found")

    queryset = ContactGroup.objects.all()
    if for_update:
        queryset = queryset.select_for_update()

    try:
        return queryset.get(share_token=share_token)
    except ContactGroup.DoesNotExist:
        raise GroupNotFoundError("Invalid group link or group not found")


@transaction.atomic
def regenerate_share_token(
    *,
    group_id: UUID,
    user: User,
    max_attempts: int = None
) -> str:
    """
    Replace a group's share token (owner only).

    Uses row-level locking and a single retry on collision. The previous
    token stops resolving as soon as the transaction commits.

    Args:
        group_id: UUID of the group
        user: User requesting regeneration (must be owner)
        max_attempts: Attempts before giving up (defaults to setting)

    Returns:
        New share token

    Raises:
        GroupNotFoundError: If group doesn't exist
        NotGroupOwnerError: If user is not the owner
        ShareTokenCollisionError: If no unique token could be generated
    """
    if max_attempts is None:
        max_attempts = settings.CONTACT_GROUPS_TOKEN_MAX_ATTEMPTS

    try:
        group = (
            ContactGroup.objects
            .select_for_update()
            .get(id=group_id)
        )
    except ContactGroup.DoesNotExist:
        raise GroupNotFoundError(f"Group with ID {group_id} not found")

    if not can_mutate_group(user, group):
        logger.warning("User %s tried to regenerate token of group %s", user.pk, group.id)
        raise NotGroupOwnerError("Only the group owner can regenerate the share link")

    for attempt in range(max_attempts):
        new_token = generate_share_token()

        try:
            with transaction.atomic():
                group.share_token = new_token
                group.save(update_fields=['share_token', 'updated_at'])
        except IntegrityError:
            logger.warning("Share token collision for group %s (attempt %d)", group.id, attempt + 1)
            continue

        logger.info("Share token regenerated for group %s", group.id)
        return new_token

    raise ShareTokenCollisionError(
        f"Failed to generate unique share token after {max_attempts} attempts"
    )
