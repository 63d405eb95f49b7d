from rest_framework import serializers
from django.contrib.auth.password_validation import validate_password
from .models import User, E164_PHONE_REGEX


class UserSerializer(serializers.ModelSerializer):
    """Basic user serializer for profile display."""

    full_name = serializers.CharField(read_only=True)
    is_profile_complete = serializers.BooleanField(read_only=True)

    class Meta:
        model = User
        fields = [
            'id',
            'email',
            'first_name',
            'last_name',
            'full_name',
            'phone',
            'avatar_url',
            'sms_notifications_enabled',
            'is_profile_complete',
            'created_at',
            'last_login',
        ]
        read_only_fields = fields


class UserRegistrationSerializer(serializers.Serializer):
    """Serializer for user registration."""

    email = serializers.EmailField(max_length=255)
    first_name = serializers.CharField(max_length=50, required=False, allow_blank=True, default='')
    last_name = serializers.CharField(max_length=50, required=False, allow_blank=True, default='')
    phone = serializers.RegexField(
        E164_PHONE_REGEX,
        max_length=16,
        required=False,
        allow_blank=True,
        allow_null=True,
    )
    password = serializers.CharField(
        write_only=True,
        required=True,
        validators=[validate_password],
        style={'input_type': 'password'}
    )
    password_confirm = serializers.CharField(
        write_only=True,
        required=True,
        style={'input_type': 'password'}
    )

    def validate(self, attrs):
        """Validate password confirmation."""
        if attrs['password'] != attrs['password_confirm']:
            raise serializers.ValidationError({
                'password_confirm': 'Passwords do not match'
            })
        return attrs


class UserLoginSerializer(serializers.Serializer):
    """Serializer for user login."""

    email = serializers.EmailField(required=True)
    password = serializers.CharField(
        required=True,
        write_only=True,
        style={'input_type': 'password'}
    )


class ProfileUpdateSerializer(serializers.Serializer):
    """
    Partial profile update.

    Changes to name, phone and avatar are copied to every active
    group membership of the user.
    """

    first_name = serializers.CharField(max_length=50, required=False)
    last_name = serializers.CharField(max_length=50, required=False, allow_blank=True)
    phone = serializers.CharField(max_length=32, required=False, allow_blank=True)
    avatar_url = serializers.URLField(max_length=500, required=False, allow_blank=True)
    sms_notifications_enabled = serializers.BooleanField(required=False)


class DeleteAccountSerializer(serializers.Serializer):
    password = serializers.CharField(style={'input_type': 'password'})
    confirm = serializers.BooleanField(help_text="Must be true to confirm deletion")

    def validate_confirm(self, value):
        if not value:
            raise serializers.ValidationError('Confirmation required')
        return value
