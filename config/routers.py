"""
Router shared by the guides and topics apps.
"""

from rest_framework.routers import DefaultRouter


class SafeDefaultRouter(DefaultRouter):
    """
    DefaultRouter for apps that each mount one viewset at ''.

    Format suffixes are off because every router would register the
    'drf_format_suffix' converter again. The API root view is off because
    it would shadow the list route.
    """
    include_format_suffixes = False
    include_root_view = False
