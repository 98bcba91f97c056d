"""
Guide API URLs.
"""

from django.urls import path, include
from config.routers import SafeDefaultRouter
from .views import GuideViewSet

app_name = 'guides'

router = SafeDefaultRouter()
router.register(r'', GuideViewSet, basename='guide')

urlpatterns = [
    path('', include(router.urls)),
]
