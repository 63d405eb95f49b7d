from rest_framework import serializers

from apps.accounts.models import User
from .models import AccessType, ContactGroup, GroupMembership, NotificationEvent


class OwnerMinimalSerializer(serializers.ModelSerializer):
    """Minimal owner info for nested serialization."""

    display_name = serializers.SerializerMethodField()

    class Meta:
        model = User
        fields = ['id', 'email', 'display_name']
        read_only_fields = fields

    def get_display_name(self, obj):
        return obj.get_display_name()


class GroupSerializer(serializers.ModelSerializer):
    """Main serializer for groups, shown to owner and members."""

    owner = OwnerMinimalSerializer(read_only=True)
    member_count = serializers.SerializerMethodField()
    is_owner = serializers.SerializerMethodField()
    share_token = serializers.SerializerMethodField()

    class Meta:
        model = ContactGroup
        fields = [
            'id',
            'name',
            'description',
            'is_closed',
            'access_type',
            'share_token',
            'owner',
            'member_count',
            'is_owner',
            'created_at',
            'updated_at',
        ]
        read_only_fields = fields

    def _is_owner(self, obj):
        request = self.context.get('request')
        return bool(request and request.user.is_authenticated and obj.owner_id == request.user.pk)

    def get_member_count(self, obj):
        """Number of active members."""
        annotated = getattr(obj, 'member_count', None)
        if annotated is not None:
            return annotated
        return obj.memberships.active().count()

    def get_is_owner(self, obj):
        return self._is_owner(obj)

    def get_share_token(self, obj):
        """Share token is visible to the owner only."""
        if self._is_owner(obj):
            return obj.share_token
        return None


class GroupListSerializer(GroupSerializer):
    """Lightweight serializer for list views."""

    class Meta(GroupSerializer.Meta):
        fields = [
            'id',
            'name',
            'description',
            'is_closed',
            'access_type',
            'owner',
            'member_count',
            'is_owner',
            'created_at',
        ]
        read_only_fields = fields


class GroupCreateSerializer(serializers.Serializer):
    """Serializer for creating groups."""

    name = serializers.CharField(max_length=100)
    description = serializers.CharField(max_length=500, required=False, allow_blank=True, default='')
    access_type = serializers.ChoiceField(choices=AccessType.choices, default=AccessType.OPEN)
    password = serializers.CharField(
        max_length=100,
        required=False,
        allow_blank=True,
        write_only=True,
        style={'input_type': 'password'}
    )


class GroupCreatedSerializer(serializers.Serializer):
    """Identifiers returned after creating a group."""

    group_id = serializers.UUIDField(source='id')
    share_token = serializers.CharField()


class GroupSettingsSerializer(serializers.Serializer):
    """Partial update of group settings."""

    name = serializers.CharField(max_length=100, required=False)
    description = serializers.CharField(max_length=500, required=False, allow_blank=True)
    access_type = serializers.ChoiceField(choices=AccessType.choices, required=False)
    password = serializers.CharField(
        max_length=100,
        required=False,
        allow_blank=True,
        write_only=True,
        style={'input_type': 'password'}
    )
    is_closed = serializers.BooleanField(required=False)


class GroupPreviewSerializer(serializers.ModelSerializer):
    """Public group metadata behind a share link. Never includes members."""

    owner_first_name = serializers.CharField(source='owner.first_name', read_only=True)
    requires_password = serializers.BooleanField(source='is_password_protected', read_only=True)

    class Meta:
        model = ContactGroup
        fields = [
            'id',
            'name',
            'description',
            'is_closed',
            'access_type',
            'requires_password',
            'owner_first_name',
        ]
        read_only_fields = fields


class GroupMemberSerializer(serializers.ModelSerializer):
    """Active member contact card."""

    full_name = serializers.CharField(read_only=True)
    is_owner = serializers.SerializerMethodField()

    class Meta:
        model = GroupMembership
        fields = [
            'id',
            'first_name',
            'last_name',
            'full_name',
            'email',
            'phone',
            'avatar_url',
            'notifications_enabled',
            'joined_at',
            'is_owner',
        ]
        read_only_fields = fields

    def get_is_owner(self, obj):
        return getattr(obj, 'is_owner', False)


class JoinGroupSerializer(serializers.Serializer):
    """Join request. Contact fields are required only for anonymous joins."""

    first_name = serializers.CharField(max_length=50, required=False, allow_blank=True)
    last_name = serializers.CharField(max_length=50, required=False, allow_blank=True, default='')
    email = serializers.CharField(max_length=255, required=False, allow_blank=True)
    phone = serializers.CharField(max_length=32, required=False, allow_blank=True, allow_null=True)
    notifications_enabled = serializers.BooleanField(default=False)
    password = serializers.CharField(
        max_length=100,
        required=False,
        allow_blank=True,
        write_only=True,
        style={'input_type': 'password'}
    )


class ValidatePasswordSerializer(serializers.Serializer):
    """Password check before showing the join form."""

    password = serializers.CharField(max_length=100, allow_blank=True, style={'input_type': 'password'})


class GroupStatsSerializer(serializers.Serializer):
    member_count = serializers.IntegerField()
    notification_subscribers = serializers.IntegerField()
    members_with_phone = serializers.IntegerField()
    departed_count = serializers.IntegerField()
    last_member_joined = serializers.DateTimeField(allow_null=True)


class NotificationEventSerializer(serializers.ModelSerializer):

    class Meta:
        model = NotificationEvent
        fields = ['id', 'event_type', 'data', 'created_at']
        read_only_fields = fields
