"""Account management service."""

import logging
from typing import Optional
from uuid import UUID

from django.db import transaction
from django.contrib.auth import get_user_model

from apps.groups.services import reassign_owned_groups, update_profile_across_groups

from .exceptions import PasswordConfirmationError, UserNotFoundError

User = get_user_model()

logger = logging.getLogger(__name__)


@transaction.atomic
def delete_user_account(*, user_id: UUID, password: str) -> None:
    """
    Delete an account after password confirmation.

    Owned groups are handed to their earliest remaining member, or deleted
    when nobody is left. The user's other memberships are marked as departed
    so the contact cards stay consistent with the event log.

    Args:
        user_id: User's ID
        password: User's password for confirmation

    Raises:
        UserNotFoundError: If the user does not exist
        PasswordConfirmationError: If password is incorrect
    """
    try:
        user = (
            User.objects
            .select_for_update()
            .get(id=user_id)
        )
    except User.DoesNotExist:
        raise UserNotFoundError(f"User {user_id} not found")

    # Verify password
    if not user.check_password(password):
        raise PasswordConfirmationError("Invalid password")

    result = reassign_owned_groups(user=user)
    user.delete()

    logger.info(
        "Account %s deleted (%d groups transferred, %d deleted, %d memberships retired)",
        user_id, len(result.transferred), len(result.deleted), len(result.departed_memberships),
    )


@transaction.atomic
def update_profile(
    *,
    user_id: UUID,
    first_name: Optional[str] = None,
    last_name: Optional[str] = None,
    phone: Optional[str] = None,
    avatar_url: Optional[str] = None,
    sms_notifications_enabled: Optional[bool] = None
) -> User:
    """
    Update the user's profile and copy contact fields to active memberships.

    Raises:
        ProfileNotFoundError: If the user does not exist
        InvalidInputError: If a field is malformed
    """
    user = update_profile_across_groups(
        user_id=user_id,
        first_name=first_name,
        last_name=last_name,
        phone=phone,
        avatar_url=avatar_url,
    )

    if sms_notifications_enabled is not None:
        user.sms_notifications_enabled = sms_notifications_enabled
        user.save(update_fields=['sms_notifications_enabled', 'updated_at'])

    return user
