"""
Domain-specific exceptions for groups app.

These exceptions represent business rule violations and should be
caught in views and converted to appropriate HTTP responses.

Every concrete exception belongs to exactly one category (not found,
forbidden, conflict, invalid input, precondition failed) and carries a
stable ``code`` from ``ErrorCode`` so callers can branch on the kind of
failure instead of parsing messages.
"""

from django.db import models


class ErrorCode(models.TextChoices):
    GROUP_NOT_FOUND = 'group_not_found', 'Group not found'
    MEMBERSHIP_NOT_FOUND = 'membership_not_found', 'Membership not found'
    PROFILE_NOT_FOUND = 'profile_not_found', 'Profile not found'
    FORBIDDEN = 'forbidden', 'Forbidden'
    NOT_GROUP_OWNER = 'not_group_owner', 'Not the group owner'
    AUTHENTICATION_REQUIRED = 'authentication_required', 'Authentication required'
    DUPLICATE_EMAIL = 'duplicate_email', 'Duplicate email'
    ALREADY_MEMBER = 'already_member', 'Already a member'
    TOKEN_COLLISION = 'token_collision', 'Share token collision'
    INVALID_INPUT = 'invalid_input', 'Invalid input'
    PROFILE_INCOMPLETE = 'profile_incomplete', 'Profile incomplete'
    GROUP_CLOSED = 'group_closed', 'Group closed'
    OWNER_CANNOT_LEAVE = 'owner_cannot_leave', 'Owner cannot leave'
    PASSWORD_REQUIRED = 'password_required', 'Password required'
    INVALID_PASSWORD = 'invalid_password', 'Invalid password'
    NOT_PASSWORD_PROTECTED = 'not_password_protected', 'Group is not password protected'


class GroupsServiceError(Exception):
    """Base exception for all groups service errors."""
    code = None

    def __init__(self, message=None):
        super().__init__(message or self.default_message())

    @classmethod
    def default_message(cls):
        if cls.code is None:
            return "Contact group operation failed"
        return ErrorCode(cls.code).label

    @property
    def message(self):
        return str(self)


# Categories

class NotFoundError(GroupsServiceError):
    """A group, membership or profile does not exist (or is no longer active)."""
    pass


class ForbiddenError(GroupsServiceError):
    """The actor is not allowed to perform the operation."""
    code = ErrorCode.FORBIDDEN


class ConflictError(GroupsServiceError):
    """The operation collides with existing state."""
    pass


class InvalidInputError(GroupsServiceError):
    """A required field is missing or malformed."""
    code = ErrorCode.INVALID_INPUT


class PreconditionFailedError(GroupsServiceError):
    """The group or the actor is not in a state that allows the operation."""
    pass


# Not found

class GroupNotFoundError(NotFoundError):
    """Raised when a group id or share token does not resolve."""
    code = ErrorCode.GROUP_NOT_FOUND


class MembershipNotFoundError(NotFoundError):
    """Raised when a membership does not exist or has already departed."""
    code = ErrorCode.MEMBERSHIP_NOT_FOUND


class ProfileNotFoundError(NotFoundError):
    """Raised when the user whose profile is being updated does not exist."""
    code = ErrorCode.PROFILE_NOT_FOUND


# Forbidden

class NotGroupOwnerError(ForbiddenError):
    """Raised when a non-owner attempts an owner-only operation."""
    code = ErrorCode.NOT_GROUP_OWNER


class AuthenticationRequiredError(ForbiddenError):
    """Raised when anonymous joins are disabled for password-protected groups."""
    code = ErrorCode.AUTHENTICATION_REQUIRED


# Conflict

class DuplicateEmailError(ConflictError):
    """Raised when an active membership already uses this email in the group."""
    code = ErrorCode.DUPLICATE_EMAIL


class AlreadyMemberError(ConflictError):
    """Raised when a user tries to join a group they're already in."""
    code = ErrorCode.ALREADY_MEMBER


class ShareTokenCollisionError(ConflictError):
    """Raised when no unique share token could be generated."""
    code = ErrorCode.TOKEN_COLLISION


# Precondition failed

class ProfileIncompleteError(PreconditionFailedError):
    """Raised when the acting user's profile lacks name or email."""
    code = ErrorCode.PROFILE_INCOMPLETE


class GroupClosedError(PreconditionFailedError):
    """Raised when joining a group that no longer accepts members."""
    code = ErrorCode.GROUP_CLOSED


class OwnerCannotLeaveError(PreconditionFailedError):
    """Raised when removing the owner's own membership."""
    code = ErrorCode.OWNER_CANNOT_LEAVE


class PasswordRequiredError(PreconditionFailedError):
    """Raised when a password-protected operation gets no password."""
    code = ErrorCode.PASSWORD_REQUIRED


class InvalidPasswordError(PreconditionFailedError):
    """Raised when the supplied group password does not match."""
    code = ErrorCode.INVALID_PASSWORD


class NotPasswordProtectedError(PreconditionFailedError):
    """Raised when verifying a password against an open group."""
    code = ErrorCode.NOT_PASSWORD_PROTECTED
