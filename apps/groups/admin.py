# ==========================================
# apps/groups/admin.py
# ==========================================

from django.contrib import admin
from apps.groups.models import ContactGroup, GroupMembership, NotificationEvent


class GroupMembershipInline(admin.TabularInline):
    """Inline admin for group memberships."""
    model = GroupMembership
    extra = 0
    fields = ['first_name', 'last_name', 'email', 'phone', 'user', 'joined_at', 'departed_at']
    readonly_fields = ['joined_at', 'departed_at']


@admin.register(ContactGroup)
class ContactGroupAdmin(admin.ModelAdmin):
    """Admin interface for contact groups."""

    list_display = [
        'name',
        'owner',
        'member_count',
        'access_type',
        'is_closed',
        'created_at'
    ]
    list_filter = ['access_type', 'is_closed', 'created_at']
    search_fields = ['name', 'description', 'owner__email', 'share_token']
    readonly_fields = ['share_token', 'created_at', 'updated_at']
    inlines = [GroupMembershipInline]
    date_hierarchy = 'created_at'
    ordering = ['-created_at']

    fieldsets = (
        ('Basic Information', {
            'fields': ('name', 'description', 'owner', 'is_closed')
        }),
        ('Access', {
            'fields': ('access_type', 'share_token')
        }),
        ('Metadata', {
            'fields': ('created_at', 'updated_at'),
            'classes': ('collapse',)
        }),
    )

    def member_count(self, obj):
        """Show number of active members."""
        return obj.memberships.active().count()
    member_count.short_description = 'Members'


@admin.register(GroupMembership)
class GroupMembershipAdmin(admin.ModelAdmin):
    """Admin interface for group memberships."""

    list_display = ['email', 'full_name', 'group', 'user', 'joined_at', 'departed_at']
    list_filter = ['notifications_enabled', 'joined_at', 'departed_at']
    search_fields = ['email', 'first_name', 'last_name', 'group__name']
    readonly_fields = ['joined_at', 'departed_at']
    date_hierarchy = 'joined_at'
    ordering = ['-joined_at']

    def get_queryset(self, request):
        """Optimize query."""
        qs = super().get_queryset(request)
        return qs.select_related('user', 'group')


@admin.register(NotificationEvent)
class NotificationEventAdmin(admin.ModelAdmin):
    """Read-only view of the notification event log."""

    list_display = ['event_type', 'group', 'created_at']
    list_filter = ['event_type', 'created_at']
    search_fields = ['group__name']
    readonly_fields = ['group', 'event_type', 'data', 'created_at']
    ordering = ['-created_at']

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
