"""
Groups app services layer.

Services contain business logic and orchestrate operations across models.
All state-changing operations use transactions and concurrency protection,
and every state change writes its notification event in the same transaction.
"""

from .exceptions import (
    ErrorCode,
    GroupsServiceError,
    NotFoundError,
    ForbiddenError,
    ConflictError,
    InvalidInputError,
    PreconditionFailedError,
    GroupNotFoundError,
    MembershipNotFoundError,
    ProfileNotFoundError,
    NotGroupOwnerError,
    AuthenticationRequiredError,
    DuplicateEmailError,
    AlreadyMemberError,
    ShareTokenCollisionError,
    ProfileIncompleteError,
    GroupClosedError,
    OwnerCannotLeaveError,
    PasswordRequiredError,
    InvalidPasswordError,
    NotPasswordProtectedError,
)

from .access_control import (
    can_read_group,
    can_read_group_preview,
    can_mutate_group,
    can_remove_membership,
)

from .password_gate import (
    hash_group_password,
    verify_group_password,
    validate_group_password,
)

from .share_tokens import (
    generate_share_token,
    resolve_share_token,
    regenerate_share_token,
)

from .group_management import (
    create_group,
    update_group_settings,
    close_group,
    get_group_by_id,
    get_user_groups,
    get_group_stats,
    GroupStats,
)

from .membership_management import (
    join_group_authenticated,
    join_group_anonymous,
    remove_membership,
    list_active_members,
    export_members_csv,
)

from .notifications import (
    emit_member_joined,
    emit_member_left,
    emit_group_closed,
    list_group_events,
)

from .ownership import (
    reassign_owned_groups,
    ReapResult,
)

from .profile_sync import (
    update_profile_across_groups,
)


__all__ = [
    # Exceptions
    'ErrorCode',
    'GroupsServiceError',
    'NotFoundError',
    'ForbiddenError',
    'ConflictError',
    'InvalidInputError',
    'PreconditionFailedError',
    'GroupNotFoundError',
    'MembershipNotFoundError',
    'ProfileNotFoundError',
    'NotGroupOwnerError',
    'AuthenticationRequiredError',
    'DuplicateEmailError',
    'AlreadyMemberError',
    'ShareTokenCollisionError',
    'ProfileIncompleteError',
    'GroupClosedError',
    'OwnerCannotLeaveError',
    'PasswordRequiredError',
    'InvalidPasswordError',
    'NotPasswordProtectedError',

    # Access control
    'can_read_group',
    'can_read_group_preview',
    'can_mutate_group',
    'can_remove_membership',

    # Password gate
    'hash_group_password',
    'verify_group_password',
    'validate_group_password',

    # Share tokens
    'generate_share_token',
    'resolve_share_token',
    'regenerate_share_token',

    # Group lifecycle
    'create_group',
    'update_group_settings',
    'close_group',
    'get_group_by_id',
    'get_user_groups',
    'get_group_stats',
    'GroupStats',

    # Membership
    'join_group_authenticated',
    'join_group_anonymous',
    'remove_membership',
    'list_active_members',
    'export_members_csv',

    # Notification events
    'emit_member_joined',
    'emit_member_left',
    'emit_group_closed',
    'list_group_events',

    # Ownership
    'reassign_owned_groups',
    'ReapResult',

    # Profile propagation
    'update_profile_across_groups',
]
