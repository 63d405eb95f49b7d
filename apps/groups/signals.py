"""
Signals for the groups app.

Account deletion goes through ``delete_user_account`` in the API, but the
admin and plain ``User.delete()`` calls skip that service. The receiver
below runs the ownership reaper on every deletion path.
"""
import logging

from django.conf import settings
from django.db.models.signals import pre_delete
from django.dispatch import receiver

from .services.ownership import reassign_owned_groups

logger = logging.getLogger(__name__)


@receiver(pre_delete, sender=settings.AUTH_USER_MODEL, dispatch_uid='groups_reap_deleted_user')
def reap_groups_of_deleted_user(sender, instance, **kwargs):
    """Hand over owned groups and retire memberships of a user being deleted."""
    result = reassign_owned_groups(user=instance)

    if result.transferred or result.deleted or result.departed_memberships:
        logger.info(
            'Reaped groups of deleted user %s (%d transferred, %d deleted, %d memberships retired)',
            instance.pk,
            len(result.transferred),
            len(result.deleted),
            len(result.departed_memberships),
        )
