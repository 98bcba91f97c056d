"""
Guide API views.

GET   /api/guides/                            - List guides (?author=&state=&content_owner=)
POST  /api/guides/                            - Create a guide with its first edition
GET   /api/guides/{id}/                       - Guide detail with latest edition
PATCH /api/guides/{id}/                       - Save changes through the next edition
GET   /api/guides/{id}/editions/              - All editions, newest first
POST  /api/guides/{id}/request-review/        - draft -> review_requested
POST  /api/guides/{id}/approve/               - review_requested -> ready
POST  /api/guides/{id}/publish/               - ready -> published
POST  /api/guides/{id}/unpublish/             - published -> unpublished
"""

import logging

from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from apps.core.exceptions import NotFoundError

from .models import Guide
from .serializers import (
    EditionSerializer,
    GuideDetailSerializer,
    GuideListSerializer,
    GuideWriteSerializer,
)
from .services import save_guide
from .state_machine import EditionStateMachine

logger = logging.getLogger(__name__)


class GuideViewSet(
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    viewsets.GenericViewSet,
):
    """
    Guides and their editorial workflow.

    Writes go through GuideForm and workflow actions through
    EditionStateMachine, so each response reflects what was pushed to the
    publishing API.
    """

    permission_classes = [IsAuthenticated]
    queryset = Guide.objects.all()

    def get_serializer_class(self):
        if self.action == 'list':
            return GuideListSerializer
        if self.action in ('create', 'partial_update'):
            return GuideWriteSerializer
        return GuideDetailSerializer

    def get_queryset(self):
        queryset = super().get_queryset()
        params = self.request.query_params

        queryset = queryset.by_author(params.get('author'))
        queryset = queryset.in_state(params.get('state'))
        queryset = queryset.owned_by(params.get('content_owner'))

        kind = params.get('kind')
        if kind:
            queryset = queryset.filter(kind=kind)

        return queryset

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------

    def create(self, request):
        serializer = GuideWriteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        guide, edition = save_guide(Guide(), None, request.user, serializer.validated_data)

        return Response(GuideDetailSerializer(guide).data, status=status.HTTP_201_CREATED)

    def partial_update(self, request, pk=None):
        guide = self.get_object()
        serializer = GuideWriteSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)

        guide, edition = save_guide(guide, guide.latest_edition, request.user, serializer.validated_data)

        return Response(GuideDetailSerializer(guide).data)

    # -------------------------------------------------------------------------
    # Editions and workflow
    # -------------------------------------------------------------------------

    @action(detail=True, methods=['get'])
    def editions(self, request, pk=None):
        guide = self.get_object()
        editions = guide.editions.select_related('author', 'content_owner').most_recent_first()
        return Response(EditionSerializer(editions, many=True).data)

    @action(detail=True, methods=['post'], url_path='request-review')
    def request_review(self, request, pk=None):
        return self._transition(request, 'request_review')

    @action(detail=True, methods=['post'])
    def approve(self, request, pk=None):
        return self._transition(request, 'approve')

    @action(detail=True, methods=['post'])
    def publish(self, request, pk=None):
        return self._transition(request, 'publish')

    @action(detail=True, methods=['post'])
    def unpublish(self, request, pk=None):
        guide = self.get_object()
        edition = guide.latest_published_edition
        if edition is None:
            raise NotFoundError(f"Guide {guide.slug} has no published edition")

        EditionStateMachine(edition, acting_user=request.user).unpublish()
        return Response(EditionSerializer(edition).data)

    def _transition(self, request, name):
        guide = self.get_object()
        edition = guide.latest_edition
        if edition is None:
            raise NotFoundError(f"Guide {guide.slug} has no editions")

        machine = EditionStateMachine(edition, acting_user=request.user)
        getattr(machine, name)()
        return Response(EditionSerializer(edition).data)
