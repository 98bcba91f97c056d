"""
Topic API views.

GET  /api/topics/                 - List topics
GET  /api/topics/{id}/            - Topic with its sections
POST /api/topics/{id}/publish/    - Push and publish the topic
"""

import logging

from django.db import transaction
from rest_framework import viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from .models import Topic
from .serializers import TopicSerializer

logger = logging.getLogger(__name__)


class TopicViewSet(viewsets.ReadOnlyModelViewSet):
    """
    Topics are edited in the admin and published from here.
    """

    permission_classes = [IsAuthenticated]
    queryset = Topic.objects.all()
    serializer_class = TopicSerializer

    @action(detail=True, methods=['post'])
    def publish(self, request, pk=None):
        from apps.publishing.publishers import TopicPublisher

        topic = self.get_object()
        publisher = TopicPublisher(topic)

        # Tagging jobs are only queued once the push has succeeded
        with transaction.atomic():
            publisher.process()
            publisher.publish()

        logger.info("Topic %s published by user %s", topic.path, request.user.pk)
        return Response(TopicSerializer(topic).data)
