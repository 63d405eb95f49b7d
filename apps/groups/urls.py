from django.urls import path, include
from rest_framework.routers import SimpleRouter
from . import views

app_name = 'groups'

# Router for ViewSets
router = SimpleRouter()
router.register(r'', views.GroupViewSet, basename='group')

urlpatterns = [
    # Group ViewSet routes
    # GET    /api/groups/              - List user's groups
    # POST   /api/groups/              - Create group
    # GET    /api/groups/{id}/         - Get group details
    # PATCH  /api/groups/{id}/         - Update settings (owner)

    # Custom group actions
    # POST   /api/groups/{id}/close/               - Close group (owner)
    # POST   /api/groups/{id}/regenerate_token/    - New share link (owner)
    # GET    /api/groups/{id}/members/             - List active members
    # GET    /api/groups/{id}/export/              - Members as CSV
    # GET    /api/groups/{id}/stats/               - Membership stats (owner)
    # GET    /api/groups/{id}/events/              - Notification events (owner)

    # Share link and membership endpoints
    path('join/<str:token>/', views.join_group_view, name='join'),
    path('join/<str:token>/validate-password/', views.validate_password_view, name='validate-password'),
    path('memberships/<uuid:membership_id>/', views.remove_membership_view, name='remove-membership'),

    # Include router URLs
    path('', include(router.urls)),
]
