from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin
from django.db.models import Count, Q
from django.utils.html import format_html

from apps.groups.models import GroupMembership
from .models import User


class ActiveMembershipInline(admin.TabularInline):
    """Groups the user currently belongs to."""

    model = GroupMembership
    fk_name = 'user'
    extra = 0
    can_delete = False
    verbose_name_plural = 'Active memberships'
    fields = ['group', 'first_name', 'last_name', 'email', 'phone', 'joined_at']
    readonly_fields = fields

    def get_queryset(self, request):
        return super().get_queryset(request).filter(departed_at__isnull=True).select_related('group')

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    """
    Admin for accounts.

    Profile edits made here do not reach group memberships; use the
    profile endpoint for that so the copies stay in sync.
    """

    list_display = [
        'email',
        'full_name',
        'phone',
        'profile_badge',
        'group_count',
        'is_active',
        'created_at',
    ]
    list_filter = ['is_active', 'is_staff', 'sms_notifications_enabled', 'created_at']
    search_fields = ['email', 'first_name', 'last_name', 'phone']
    ordering = ['-created_at']
    date_hierarchy = 'created_at'

    # BaseUserAdmin expects a username field
    fieldsets = (
        (None, {'fields': ('email', 'password')}),
        ('Contact Profile', {
            'fields': ('first_name', 'last_name', 'phone', 'avatar_url', 'sms_notifications_enabled'),
        }),
        ('Permissions', {
            'fields': ('is_active', 'is_staff', 'is_superuser', 'groups', 'user_permissions'),
            'classes': ('collapse',),
        }),
        ('Timestamps', {
            'fields': ('created_at', 'updated_at', 'last_login'),
            'classes': ('collapse',),
        }),
    )
    add_fieldsets = (
        (None, {
            'classes': ('wide',),
            'fields': ('email', 'first_name', 'last_name', 'phone', 'password1', 'password2'),
        }),
    )
    readonly_fields = ['created_at', 'updated_at', 'last_login']
    inlines = [ActiveMembershipInline]

    def get_queryset(self, request):
        return super().get_queryset(request).annotate(
            active_groups=Count('group_memberships', filter=Q(group_memberships__departed_at__isnull=True))
        )

    @admin.display(description='Groups', ordering='active_groups')
    def group_count(self, obj):
        return obj.active_groups

    @admin.display(description='Profile')
    def profile_badge(self, obj):
        """Whether the user can create and join groups."""
        if obj.is_profile_complete:
            color, label = '#6B8E5E', 'Complete'
        else:
            color, label = '#B85C5C', 'Incomplete'
        return format_html(
            '<span style="background: {}; color: white; padding: 3px 8px; '
            'border-radius: 10px; font-size: 11px;">{}</span>',
            color,
            label,
        )
