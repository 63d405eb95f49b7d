from django.apps import AppConfig


class GroupsConfig(AppConfig):
    name = 'apps.groups'
    label = 'groups'
    verbose_name = 'Contact groups'

    def ready(self):
        from . import signals  # noqa: F401
