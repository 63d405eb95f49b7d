"""
Group join-password hashing and verification.

Uses Django's configured PASSWORD_HASHERS so group passwords get the same
treatment as account passwords. Raw passwords are never logged or stored.
"""

import logging

from django.contrib.auth.hashers import check_password, make_password

from apps.groups.models import ContactGroup

from .exceptions import InvalidInputError, NotPasswordProtectedError, PasswordRequiredError
from .share_tokens import resolve_share_token

logger = logging.getLogger(__name__)


def hash_group_password(raw_password: str) -> str:
    """
    One-way hash of a group join password.

    Raises:
        PasswordRequiredError: If the password is missing or blank
    """
    if raw_password is None or not raw_password.strip():
        raise PasswordRequiredError("A non-empty password is required for password-protected groups")
    return make_password(raw_password)


def verify_group_password(group: ContactGroup, raw_password: str) -> bool:
    """
    Check a password against the group's stored hash.

    Returns False on mismatch. Raises only on caller errors.

    Raises:
        NotPasswordProtectedError: If the group is open
        InvalidInputError: If the password is empty
    """
    if not group.is_password_protected or not group.join_password_hash:
        raise NotPasswordProtectedError(f"Group {group.id} is not password protected")

    if raw_password is None or raw_password == '':
        raise InvalidInputError("Password must not be empty")

    matches = check_password(raw_password, group.join_password_hash)
    if not matches:
        logger.warning("Wrong join password for group %s", group.id)
    return matches


def validate_group_password(*, share_token: str, raw_password: str) -> bool:
    """
    Resolve a share token and verify the password for the join flow.

    Raises:
        GroupNotFoundError: If the token does not resolve
        NotPasswordProtectedError: If the group is open
        InvalidInputError: If the password is empty
    """
    group = resolve_share_token(share_token=share_token)
    return verify_group_password(group, raw_password)
