"""
Membership management service.

Handles join, removal and listing of group memberships with concurrency
protection. Uniqueness of active memberships is enforced by partial
unique constraints on the table; the early existence checks below only
produce a friendlier error before the insert, the constraint decides.
"""

import csv
import io
import logging
from typing import List, Optional
from uuid import UUID

from django.conf import settings
from django.core.exceptions import ValidationError as DjangoValidationError
from django.core.validators import validate_email
from django.db import transaction, IntegrityError
from django.utils import timezone

from apps.accounts.models import User, e164_phone_validator
from apps.groups.models import ContactGroup, GroupMembership

from .access_control import can_read_group, can_remove_membership, is_group_owner
from .exceptions import (
    AlreadyMemberError,
    AuthenticationRequiredError,
    DuplicateEmailError,
    ForbiddenError,
    GroupClosedError,
    GroupNotFoundError,
    InvalidInputError,
    InvalidPasswordError,
    MembershipNotFoundError,
    OwnerCannotLeaveError,
    PasswordRequiredError,
    ProfileIncompleteError,
)
from .notifications import emit_member_joined, emit_member_left
from .password_gate import verify_group_password
from .share_tokens import resolve_share_token

logger = logging.getLogger(__name__)


def normalize_email(email: Optional[str]) -> str:
    return (email or '').strip().lower()


def normalize_phone(phone: Optional[str]) -> Optional[str]:
    """Trim a phone number, map blank to None and require E.164."""
    if phone is None:
        return None
    phone = phone.strip()
    if not phone:
        return None
    try:
        e164_phone_validator(phone)
    except DjangoValidationError:
        raise InvalidInputError("Invalid phone number format. Use +1234567890")
    return phone


def _resolve_joinable_group(
    share_token: str,
    password: Optional[str],
    *,
    anonymous: bool = False
) -> ContactGroup:
    """
    Steps shared by both join flows: resolve, closed check, password check.

    The group row is locked so a concurrent close or token rotation cannot
    interleave with the join.
    """
    group = resolve_share_token(share_token=share_token, for_update=True)

    if group.is_closed:
        raise GroupClosedError("This group is closed and no longer accepting new members")

    if group.is_password_protected:
        if anonymous and not settings.CONTACT_GROUPS_ALLOW_ANONYMOUS_PASSWORD_JOIN:
            raise AuthenticationRequiredError(
                "Please sign in or create an account to join this password-protected group"
            )
        if password is None or password == '':
            raise PasswordRequiredError("This group requires a password to join")
        if not verify_group_password(group, password):
            raise InvalidPasswordError("Incorrect group password")

    return group


def _insert_membership(group: ContactGroup, **fields) -> GroupMembership:
    """
    Insert an active membership inside a savepoint.

    Translates a unique constraint violation into the matching domain error.
    """
    try:
        with transaction.atomic():
            membership = GroupMembership.objects.create(group=group, **fields)
    except IntegrityError:
        user = fields.get('user')
        if user is not None and GroupMembership.objects.active().filter(group=group, user=user).exists():
            raise AlreadyMemberError(f"You are already a member of {group.name}")
        raise DuplicateEmailError("This email address is already registered in this group")

    emit_member_joined(membership)
    return membership


@transaction.atomic
def join_group_authenticated(
    *,
    user: User,
    share_token: str,
    notifications_enabled: bool = False,
    password: Optional[str] = None
) -> GroupMembership:
    """
    Join a group through its share link as a signed-in user.

    Contact details are copied from the user's profile. The membership and
    its member_joined event are written in one transaction.

    Args:
        user: User joining the group
        share_token: Token from the share link
        notifications_enabled: Whether the member wants SMS notifications
        password: Group password for password-protected groups

    Returns:
        Created GroupMembership instance

    Raises:
        GroupNotFoundError: If the token does not resolve
        GroupClosedError: If the group is closed
        PasswordRequiredError: If the group needs a password and none was given
        InvalidPasswordError: If the password is wrong
        AlreadyMemberError: If the user already has an active membership
        DuplicateEmailError: If the user's email is already used by an active member
        ProfileIncompleteError: If the user's profile lacks name or email
    """
    group = _resolve_joinable_group(share_token, password)

    if GroupMembership.objects.active().filter(group=group, user=user).exists():
        raise AlreadyMemberError(f"You are already a member of {group.name}")

    if not user.is_profile_complete:
        raise ProfileIncompleteError("Please complete your profile before joining a group")

    email = normalize_email(user.email)
    if GroupMembership.objects.active().filter(group=group, email=email).exists():
        raise DuplicateEmailError("This email address is already registered in this group")

    membership = _insert_membership(
        group,
        user=user,
        first_name=user.first_name.strip(),
        last_name=user.last_name.strip(),
        email=email,
        phone=user.phone or None,
        avatar_url=user.avatar_url or None,
        notifications_enabled=notifications_enabled,
    )

    logger.info("User %s joined group %s (membership %s)", user.pk, group.id, membership.id)
    return membership


@transaction.atomic
def join_group_anonymous(
    *,
    share_token: str,
    first_name: str,
    last_name: str,
    email: str,
    phone: Optional[str] = None,
    notifications_enabled: bool = False,
    password: Optional[str] = None
) -> GroupMembership:
    """
    Join a group through its share link without an account.

    Uniqueness is keyed on the normalized (trimmed, lower-cased) email.

    Raises:
        GroupNotFoundError: If the token does not resolve
        GroupClosedError: If the group is closed
        AuthenticationRequiredError: If anonymous joins to password groups are disabled
        PasswordRequiredError: If the group needs a password and none was given
        InvalidPasswordError: If the password is wrong
        InvalidInputError: If first name or email is missing, or email/phone is malformed
        DuplicateEmailError: If the email already has an active membership
    """
    group = _resolve_joinable_group(share_token, password, anonymous=True)

    first_name = (first_name or '').strip()
    last_name = (last_name or '').strip()
    email = normalize_email(email)

    if not first_name:
        raise InvalidInputError("First name is required")
    if not email:
        raise InvalidInputError("Email is required")
    if len(first_name) > 50 or len(last_name) > 50:
        raise InvalidInputError("Names must be at most 50 characters")
    try:
        validate_email(email)
    except DjangoValidationError:
        raise InvalidInputError("Invalid email address")
    phone = normalize_phone(phone)

    if GroupMembership.objects.active().filter(group=group, email=email).exists():
        raise DuplicateEmailError("This email address is already registered in this group")

    membership = _insert_membership(
        group,
        user=None,
        first_name=first_name,
        last_name=last_name,
        email=email,
        phone=phone,
        notifications_enabled=notifications_enabled,
    )

    logger.info("Anonymous member joined group %s (membership %s)", group.id, membership.id)
    return membership


@transaction.atomic
def remove_membership(*, membership_id: UUID, user: User) -> None:
    """
    Remove a member from a group (soft delete).

    The owner may remove anyone but themselves; members may remove
    themselves. The member_left event is appended before ``departed_at``
    is set, both in the same transaction.

    Args:
        membership_id: UUID of the membership to remove
        user: User performing the removal

    Raises:
        MembershipNotFoundError: If membership doesn't exist or already departed
        OwnerCannotLeaveError: If the owner targets their own membership
        ForbiddenError: If user is neither owner nor the member
    """
    try:
        membership = (
            GroupMembership.objects
            .select_for_update()
            .select_related('group')
            .get(id=membership_id, departed_at__isnull=True)
        )
    except GroupMembership.DoesNotExist:
        raise MembershipNotFoundError(f"Membership {membership_id} not found")

    group = membership.group

    is_owners_membership = membership.user_id is not None and membership.user_id == group.owner_id

    # Only the owner learns that the target is the owner's own membership
    if is_owners_membership and is_group_owner(user, group):
        raise OwnerCannotLeaveError(
            "Group owner cannot leave. Transfer ownership before leaving the group."
        )

    if not can_remove_membership(user, group, membership):
        logger.warning("User %s tried to remove membership %s", getattr(user, 'pk', None), membership.id)
        raise ForbiddenError("You do not have permission to remove this member")

    removed_by_owner = is_group_owner(user, group)
    emit_member_left(membership, removed_by_owner=removed_by_owner)

    membership.departed_at = timezone.now()
    membership.save(update_fields=['departed_at'])

    logger.info(
        "Membership %s departed group %s (removed_by_owner=%s)",
        membership.id, group.id, removed_by_owner,
    )


def _get_readable_group(group_id: UUID, user: User) -> ContactGroup:
    try:
        group = ContactGroup.objects.get(id=group_id)
    except ContactGroup.DoesNotExist:
        raise GroupNotFoundError(f"Group with ID {group_id} not found")

    membership = None
    if user is not None and user.is_authenticated:
        membership = GroupMembership.objects.active().filter(group=group, user=user).first()

    if not can_read_group(user, group, membership):
        raise ForbiddenError("You do not have access to this group")

    return group


def list_active_members(*, group_id: UUID, user: User) -> List[GroupMembership]:
    """
    Active members of a group, oldest first.

    Each membership gets an ``is_owner`` attribute.

    Raises:
        GroupNotFoundError: If group doesn't exist
        ForbiddenError: If user is neither owner nor active member
    """
    group = _get_readable_group(group_id, user)

    members = list(
        GroupMembership.objects
        .active()
        .filter(group=group)
        .order_by('joined_at', 'id')
    )
    for membership in members:
        membership.is_owner = membership.user_id is not None and membership.user_id == group.owner_id

    return members


EXPORT_COLUMNS = ['first_name', 'last_name', 'email', 'phone', 'joined_at', 'is_owner']


def export_members_csv(*, group_id: UUID, user: User) -> str:
    """
    Export active members' contact details as CSV.

    Raises:
        GroupNotFoundError: If group doesn't exist
        ForbiddenError: If user is neither owner nor active member
    """
    members = list_active_members(group_id=group_id, user=user)

    buffer = io.StringIO()
    writer = csv.writer(buffer)
    writer.writerow(EXPORT_COLUMNS)
    for membership in members:
        writer.writerow([
            membership.first_name,
            membership.last_name,
            membership.email,
            membership.phone or '',
            membership.joined_at.isoformat(),
            'yes' if membership.is_owner else 'no',
        ])

    logger.info("Members of group %s exported by %s", group_id, user.pk)
    return buffer.getvalue()
