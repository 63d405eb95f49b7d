# ==========================================
# apps/groups/models.py
# ==========================================

from django.conf import settings
from django.db import models
from django.db.models import Q
import uuid

from apps.accounts.models import e164_phone_validator


class AccessType(models.TextChoices):
    OPEN = 'open', 'Open'
    PASSWORD = 'password', 'Password protected'


class EventType(models.TextChoices):
    MEMBER_JOINED = 'member_joined', 'Member joined'
    MEMBER_LEFT = 'member_left', 'Member left'
    GROUP_CLOSED = 'group_closed', 'Group closed'


def transfer_or_cascade(collector, field, sub_objs, using):
    """
    on_delete handler for group owners.

    A group whose owner is deleted passes to its earliest remaining member
    with an account. Groups with no such member are deleted with the owner.
    """
    orphans = []
    for group in sub_objs:
        successor = group.next_owner_membership()
        if successor is None:
            orphans.append(group)
        else:
            collector.add_field_update(field, successor.user_id, [group])

    if orphans:
        models.CASCADE(collector, field, orphans, using)


class ContactGroup(models.Model):
    """Event contact group that participants join through a share link."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=100)
    description = models.TextField(max_length=500, blank=True)
    owner = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=transfer_or_cascade,
        related_name='owned_contact_groups',
    )
    is_closed = models.BooleanField(default=False)
    access_type = models.CharField(max_length=10, choices=AccessType.choices, default=AccessType.OPEN)
    join_password_hash = models.CharField(max_length=255, null=True, blank=True, editable=False)
    share_token = models.CharField(max_length=64, unique=True, editable=False)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'contact_groups'
        indexes = [
            models.Index(fields=['owner', 'created_at'], name='contact_gro_owner_i_3f1c2a_idx'),
        ]
        constraints = [
            models.CheckConstraint(
                condition=Q(access_type__in=[AccessType.OPEN, AccessType.PASSWORD]),
                name='contact_groups_access_type_valid',
            ),
            models.CheckConstraint(
                condition=(
                    Q(access_type=AccessType.PASSWORD, join_password_hash__isnull=False)
                    | Q(access_type=AccessType.OPEN, join_password_hash__isnull=True)
                ),
                name='contact_groups_password_hash_matches_access_type',
            ),
        ]
        ordering = ['-created_at']

    def __str__(self):
        return self.name

    @property
    def is_password_protected(self):
        return self.access_type == AccessType.PASSWORD

    def is_owned_by(self, user):
        return user is not None and getattr(user, 'pk', None) == self.owner_id

    def next_owner_membership(self):
        """Earliest-joined active membership with an account, other than the owner's."""
        return (
            self.memberships
            .active()
            .filter(user__isnull=False)
            .exclude(user_id=self.owner_id)
            .order_by('joined_at', 'id')
            .first()
        )


class MembershipQuerySet(models.QuerySet):

    def active(self):
        return self.filter(departed_at__isnull=True)

    def departed(self):
        return self.filter(departed_at__isnull=False)


class GroupMembership(models.Model):
    """
    A participant's contact card inside one group.

    Rows are never deleted by the application: leaving or being removed
    sets ``departed_at``. Rejoining creates a new row.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    group = models.ForeignKey(ContactGroup, on_delete=models.CASCADE, related_name='memberships')
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='group_memberships',
    )
    first_name = models.CharField(max_length=50)
    last_name = models.CharField(max_length=50, blank=True)
    email = models.EmailField(max_length=255)
    phone = models.CharField(max_length=16, null=True, blank=True, validators=[e164_phone_validator])
    avatar_url = models.URLField(max_length=500, null=True, blank=True)
    notifications_enabled = models.BooleanField(default=False)
    joined_at = models.DateTimeField(auto_now_add=True)
    departed_at = models.DateTimeField(null=True, blank=True)

    objects = MembershipQuerySet.as_manager()

    class Meta:
        db_table = 'group_memberships'
        constraints = [
            models.UniqueConstraint(
                fields=['group', 'email'],
                condition=Q(departed_at__isnull=True),
                name='unique_active_membership_email',
            ),
            models.UniqueConstraint(
                fields=['group', 'user'],
                condition=Q(user__isnull=False, departed_at__isnull=True),
                name='unique_active_membership_user',
            ),
        ]
        indexes = [
            models.Index(fields=['group', 'joined_at'], name='group_membe_group_i_8d2e41_idx'),
            models.Index(fields=['user', 'joined_at'], name='group_membe_user_id_5b7c90_idx'),
        ]
        ordering = ['joined_at']

    def __str__(self):
        return f"{self.full_name} <{self.email}> in {self.group.name}"

    @property
    def full_name(self):
        return f"{self.first_name.strip()} {self.last_name.strip()}".strip()

    @property
    def is_active(self):
        return self.departed_at is None

    @property
    def is_anonymous(self):
        return self.user_id is None


class NotificationEventError(Exception):
    """Raised when code tries to rewrite or delete an appended event."""


class NotificationEvent(models.Model):
    """Append-only record of a group state transition for the SMS consumer."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    group = models.ForeignKey(ContactGroup, on_delete=models.CASCADE, related_name='notification_events')
    event_type = models.CharField(max_length=20, choices=EventType.choices)
    data = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'notification_events'
        indexes = [
            models.Index(fields=['group', 'created_at'], name='notificatio_group_i_a41f07_idx'),
        ]
        constraints = [
            models.CheckConstraint(
                condition=Q(event_type__in=[choice.value for choice in EventType]),
                name='notification_events_event_type_valid',
            ),
        ]
        ordering = ['created_at']

    def __str__(self):
        return f"{self.event_type} in {self.group_id} at {self.created_at}"

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise NotificationEventError("Notification events are append-only")
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise NotificationEventError("Notification events are append-only")
