"""
Authorization predicates for contact groups.

All functions here are pure: they look only at objects the caller has
already loaded and never query the database. Services load the group
(and the actor's active membership when needed) first, then ask.
"""

from typing import Optional

from apps.groups.models import ContactGroup, GroupMembership


def _actor_id(actor):
    if actor is None or not getattr(actor, 'is_authenticated', False):
        return None
    return actor.pk


def is_group_owner(actor, group: ContactGroup) -> bool:
    actor_id = _actor_id(actor)
    return actor_id is not None and actor_id == group.owner_id


def can_read_group(actor, group: ContactGroup, actor_membership: Optional[GroupMembership] = None) -> bool:
    """
    Owner, or holder of an active membership in this group.

    ``actor_membership`` must be the actor's active membership in ``group``
    (or None if they have none).
    """
    if is_group_owner(actor, group):
        return True

    actor_id = _actor_id(actor)
    if actor_id is None or actor_membership is None:
        return False

    return (
        actor_membership.group_id == group.pk
        and actor_membership.user_id == actor_id
        and actor_membership.departed_at is None
    )


def can_read_group_preview(group: ContactGroup) -> bool:
    """Anyone holding the share token may see group metadata, never members."""
    return group is not None


def can_mutate_group(actor, group: ContactGroup) -> bool:
    return is_group_owner(actor, group)


def can_remove_membership(actor, group: ContactGroup, membership: GroupMembership) -> bool:
    """
    Owner may remove anyone, members may remove themselves.

    The owner's own membership can never be removed: ownership must be
    transferred first.
    """
    if membership.user_id is not None and membership.user_id == group.owner_id:
        return False

    if is_group_owner(actor, group):
        return True

    actor_id = _actor_id(actor)
    return actor_id is not None and membership.user_id == actor_id
