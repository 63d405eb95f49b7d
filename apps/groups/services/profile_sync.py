"""
Profile propagation service.

Keeps the contact card a user shares in their groups in step with their
profile.
"""

import logging
from typing import Optional
from uuid import UUID

from django.contrib.auth import get_user_model
from django.db import transaction

from apps.groups.models import GroupMembership

from .exceptions import InvalidInputError, ProfileNotFoundError
from .membership_management import normalize_phone

logger = logging.getLogger(__name__)

User = get_user_model()


@transaction.atomic
def update_profile_across_groups(
    *,
    user_id: UUID,
    first_name: Optional[str] = None,
    last_name: Optional[str] = None,
    phone: Optional[str] = None,
    avatar_url: Optional[str] = None
):
    """
    Update a profile and every active membership of that user at once.

    Only fields that are not None change. Departed memberships keep the
    details they had when the member left.

    Args:
        user_id: Profile owner
        first_name: New first name (cannot be blank)
        last_name: New last name
        phone: New phone in E.164 format, blank clears it
        avatar_url: New avatar URL, blank clears it

    Returns:
        Updated User instance

    Raises:
        ProfileNotFoundError: If the user doesn't exist
        InvalidInputError: If a field is malformed
    """
    try:
        user = (
            User.objects
            .select_for_update()
            .get(id=user_id)
        )
    except User.DoesNotExist:
        raise ProfileNotFoundError(f"Profile {user_id} not found")

    changes = {}

    if first_name is not None:
        first_name = first_name.strip()
        if not first_name:
            raise InvalidInputError("First name is required")
        changes['first_name'] = first_name

    if last_name is not None:
        changes['last_name'] = last_name.strip()

    if phone is not None:
        changes['phone'] = normalize_phone(phone)

    if avatar_url is not None:
        changes['avatar_url'] = avatar_url.strip() or None

    if not changes:
        return user

    for field_name, value in changes.items():
        setattr(user, field_name, value)
    user.save(update_fields=[*changes, 'updated_at'])

    updated = (
        GroupMembership.objects
        .active()
        .filter(user=user)
        .update(**changes)
    )

    logger.info(
        "Profile %s updated (%s) across %d active memberships",
        user.pk, ', '.join(changes), updated,
    )
    return user
