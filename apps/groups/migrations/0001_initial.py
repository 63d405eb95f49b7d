# Generated manually for contact groups

import uuid
import django.core.validators
import django.db.models.deletion
import apps.groups.models
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='ContactGroup',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('name', models.CharField(max_length=100)),
                ('description', models.TextField(blank=True, max_length=500)),
                ('is_closed', models.BooleanField(default=False)),
                ('access_type', models.CharField(choices=[('open', 'Open'), ('password', 'Password protected')], default='open', max_length=10)),
                ('join_password_hash', models.CharField(blank=True, editable=False, max_length=255, null=True)),
                ('share_token', models.CharField(editable=False, max_length=64, unique=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('owner', models.ForeignKey(on_delete=apps.groups.models.transfer_or_cascade, related_name='owned_contact_groups', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'contact_groups',
                'ordering': ['-created_at'],
                'indexes': [models.Index(fields=['owner', 'created_at'], name='contact_gro_owner_i_3f1c2a_idx')],
                'constraints': [
                    models.CheckConstraint(condition=models.Q(('access_type__in', ['open', 'password'])), name='contact_groups_access_type_valid'),
                    models.CheckConstraint(condition=models.Q(models.Q(('access_type', 'password'), ('join_password_hash__isnull', False)), models.Q(('access_type', 'open'), ('join_password_hash__isnull', True)), _connector='OR'), name='contact_groups_password_hash_matches_access_type'),
                ],
            },
        ),
        migrations.CreateModel(
            name='GroupMembership',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('first_name', models.CharField(max_length=50)),
                ('last_name', models.CharField(blank=True, max_length=50)),
                ('email', models.EmailField(max_length=255)),
                ('phone', models.CharField(blank=True, max_length=16, null=True, validators=[django.core.validators.RegexValidator(message='Invalid phone number format. Use +1234567890', regex='^\\+[1-9]\\d{1,14}$')])),
                ('avatar_url', models.URLField(blank=True, max_length=500, null=True)),
                ('notifications_enabled', models.BooleanField(default=False)),
                ('joined_at', models.DateTimeField(auto_now_add=True)),
                ('departed_at', models.DateTimeField(blank=True, null=True)),
                ('group', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='memberships', to='groups.contactgroup')),
                ('user', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='group_memberships', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'group_memberships',
                'ordering': ['joined_at'],
                'indexes': [
                    models.Index(fields=['group', 'joined_at'], name='group_membe_group_i_8d2e41_idx'),
                    models.Index(fields=['user', 'joined_at'], name='group_membe_user_id_5b7c90_idx'),
                ],
                'constraints': [
                    models.UniqueConstraint(condition=models.Q(('departed_at__isnull', True)), fields=('group', 'email'), name='unique_active_membership_email'),
                    models.UniqueConstraint(condition=models.Q(('user__isnull', False), ('departed_at__isnull', True)), fields=('group', 'user'), name='unique_active_membership_user'),
                ],
            },
        ),
        migrations.CreateModel(
            name='NotificationEvent',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('event_type', models.CharField(choices=[('member_joined', 'Member joined'), ('member_left', 'Member left'), ('group_closed', 'Group closed')], max_length=20)),
                ('data', models.JSONField(blank=True, default=dict)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('group', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='notification_events', to='groups.contactgroup')),
            ],
            options={
                'db_table': 'notification_events',
                'ordering': ['created_at'],
                'indexes': [models.Index(fields=['group', 'created_at'], name='notificatio_group_i_a41f07_idx')],
                'constraints': [
                    models.CheckConstraint(condition=models.Q(('event_type__in', ['member_joined', 'member_left', 'group_closed'])), name='notification_events_event_type_valid'),
                ],
            },
        ),
    ]
