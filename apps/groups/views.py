"""
HTTP views for contact groups.

Views do not catch service exceptions. Every `GroupsServiceError` raised by
a service reaches `config.exceptions.custom_exception_handler`, which maps
its category to a status code and renders `{"error": {"code", "message"}}`.
"""
from django.http import HttpResponse
from django.utils.dateparse import parse_datetime
from rest_framework import viewsets, status
from rest_framework.decorators import action, api_view, permission_classes
from rest_framework.exceptions import ValidationError
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.pagination import PageNumberPagination
from drf_spectacular.utils import OpenApiParameter, extend_schema

from .models import EventType
from .serializers import (
    GroupSerializer,
    GroupCreateSerializer,
    GroupCreatedSerializer,
    GroupListSerializer,
    GroupMemberSerializer,
    GroupPreviewSerializer,
    GroupSettingsSerializer,
    GroupStatsSerializer,
    JoinGroupSerializer,
    NotificationEventSerializer,
    ValidatePasswordSerializer,
)

from apps.groups.services import (
    create_group,
    update_group_settings,
    close_group,
    get_group_by_id,
    get_user_groups,
    get_group_stats,
    regenerate_share_token,
    resolve_share_token,
    validate_group_password,
    join_group_authenticated,
    join_group_anonymous,
    remove_membership,
    list_active_members,
    export_members_csv,
    list_group_events,
)


class GroupPagination(PageNumberPagination):
    """Custom pagination for groups."""
    page_size = 20
    page_size_query_param = 'page_size'
    max_page_size = 100


class GroupViewSet(viewsets.GenericViewSet):
    """
    ViewSet for contact group operations.

    All business logic is handled by services.
    Views are thin HTTP handlers only; service errors are turned into
    responses by the project exception handler.

    list: Groups where the user is an active member
    create: Create a new group
    retrieve: Get a specific group (owner or active member)
    partial_update: Update group settings (owner only)
    """

    serializer_class = GroupSerializer
    permission_classes = [IsAuthenticated]
    pagination_class = GroupPagination
    lookup_value_regex = r'[0-9a-fA-F-]{36}'

    def get_queryset(self):
        return get_user_groups(user=self.request.user)

    def get_serializer_class(self):
        """Use different serializers for different actions."""
        if self.action == 'list':
            return GroupListSerializer
        elif self.action == 'create':
            return GroupCreateSerializer
        elif self.action == 'partial_update':
            return GroupSettingsSerializer
        return GroupSerializer

    def list(self, request):
        page = self.paginate_queryset(self.get_queryset())
        serializer = GroupListSerializer(page, many=True, context={'request': request})
        return self.get_paginated_response(serializer.data)

    @extend_schema(responses={201: GroupCreatedSerializer})
    def create(self, request):
        """Create a new group. The creator becomes its first member."""
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        group = create_group(
            owner=request.user,
            name=serializer.validated_data['name'],
            description=serializer.validated_data.get('description', ''),
            access_type=serializer.validated_data['access_type'],
            password=serializer.validated_data.get('password') or None,
        )

        return Response(GroupCreatedSerializer(group).data, status=status.HTTP_201_CREATED)

    def retrieve(self, request, pk=None):
        group = get_group_by_id(group_id=pk, user=request.user)
        serializer = GroupSerializer(group, context={'request': request})
        return Response(serializer.data)

    @extend_schema(request=GroupSettingsSerializer, responses={200: GroupSerializer})
    def partial_update(self, request, pk=None):
        """Update group settings (owner only)."""
        serializer = GroupSettingsSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        group = update_group_settings(group_id=pk, user=request.user, **serializer.validated_data)

        output_serializer = GroupSerializer(group, context={'request': request})
        return Response(output_serializer.data)

    @extend_schema(request=None, responses={200: GroupSerializer})
    @action(detail=True, methods=['post'])
    def close(self, request, pk=None):
        """Close the group to new members (owner only)."""
        group = close_group(group_id=pk, user=request.user)
        return Response(GroupSerializer(group, context={'request': request}).data)

    @extend_schema(request=None)
    @action(detail=True, methods=['post'])
    def regenerate_token(self, request, pk=None):
        """Issue a new share token (owner only). The old link stops working."""
        new_token = regenerate_share_token(group_id=pk, user=request.user)
        return Response({
            'share_token': new_token,
            'message': 'Share link regenerated successfully'
        })

    @extend_schema(responses={200: GroupMemberSerializer(many=True)})
    @action(detail=True, methods=['get'])
    def members(self, request, pk=None):
        """Active members of the group (owner or active member)."""
        members = list_active_members(group_id=pk, user=request.user)
        serializer = GroupMemberSerializer(members, many=True)
        return Response(serializer.data)

    @extend_schema(responses={(200, 'text/csv'): str})
    @action(detail=True, methods=['get'])
    def export(self, request, pk=None):
        """Download active members as CSV (owner or active member)."""
        content = export_members_csv(group_id=pk, user=request.user)
        response = HttpResponse(content, content_type='text/csv')
        response['Content-Disposition'] = f'attachment; filename="group-{pk}-members.csv"'
        return response

    @extend_schema(responses={200: GroupStatsSerializer})
    @action(detail=True, methods=['get'])
    def stats(self, request, pk=None):
        """Membership statistics (owner only)."""
        stats = get_group_stats(group_id=pk, user=request.user)
        return Response(GroupStatsSerializer(stats).data)

    @extend_schema(
        parameters=[
            OpenApiParameter('since', str, description='ISO 8601 timestamp, exclusive'),
            OpenApiParameter('event_type', str, enum=EventType.values),
        ],
        responses={200: NotificationEventSerializer(many=True)},
    )
    @action(detail=True, methods=['get'])
    def events(self, request, pk=None):
        """Notification event log of the group (owner only)."""
        since = request.query_params.get('since')
        since_dt = None
        if since:
            try:
                since_dt = parse_datetime(since)
            except ValueError:
                # well formed but out of range, e.g. month 13
                since_dt = None
            if since_dt is None:
                raise ValidationError({'since': 'Invalid datetime. Use ISO 8601.'})

        event_type = request.query_params.get('event_type')
        if event_type and event_type not in EventType.values:
            raise ValidationError({'event_type': f'Unknown event type: {event_type}'})

        events = list_group_events(group_id=pk, user=request.user, since=since_dt, event_type=event_type)
        return Response(NotificationEventSerializer(events, many=True).data)


@extend_schema(
    responses={204: None},
    description="Remove a membership. Owners remove others, members remove themselves.",
    tags=['groups'],
)
@api_view(['DELETE'])
@permission_classes([IsAuthenticated])
def remove_membership_view(request, membership_id):
    remove_membership(membership_id=membership_id, user=request.user)
    return Response(status=status.HTTP_204_NO_CONTENT)


@extend_schema(
    methods=['GET'],
    responses={200: GroupPreviewSerializer},
    description="Public preview of the group behind a share link.",
    tags=['groups'],
)
@extend_schema(
    methods=['POST'],
    request=JoinGroupSerializer,
    responses={201: GroupMemberSerializer},
    description="Join through a share link. Signed-in users join with their profile, others give contact details.",
    tags=['groups'],
)
@api_view(['GET', 'POST'])
@permission_classes([AllowAny])
def join_group_view(request, token):
    if request.method == 'GET':
        group = resolve_share_token(share_token=token)
        return Response(GroupPreviewSerializer(group).data)

    serializer = JoinGroupSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    data = serializer.validated_data

    if request.user.is_authenticated:
        membership = join_group_authenticated(
            user=request.user,
            share_token=token,
            notifications_enabled=data['notifications_enabled'],
            password=data.get('password'),
        )
    else:
        membership = join_group_anonymous(
            share_token=token,
            first_name=data.get('first_name', ''),
            last_name=data.get('last_name', ''),
            email=data.get('email', ''),
            phone=data.get('phone'),
            notifications_enabled=data['notifications_enabled'],
            password=data.get('password'),
        )

    return Response(GroupMemberSerializer(membership).data, status=status.HTTP_201_CREATED)


@extend_schema(
    request=ValidatePasswordSerializer,
    description="Check a group password before showing the join form.",
    tags=['groups'],
)
@api_view(['POST'])
@permission_classes([AllowAny])
def validate_password_view(request, token):
    serializer = ValidatePasswordSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    valid = validate_group_password(share_token=token, raw_password=serializer.validated_data['password'])
    return Response({'valid': valid})
