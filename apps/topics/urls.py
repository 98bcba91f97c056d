"""
Topic API URLs.
"""

from django.urls import path, include
from config.routers import SafeDefaultRouter
from .views import TopicViewSet

app_name = 'topics'

router = SafeDefaultRouter()
router.register(r'', TopicViewSet, basename='topic')

urlpatterns = [
    path('', include(router.urls)),
]
