"""
Synchronizes guides and topics with the publishing API.

Publishers push a rendered draft, the link graph, and publish commands.
Errors from the API propagate to the caller, which owns the rollback.
"""

import logging
from functools import partial
from typing import Optional

from django.db import transaction

from apps.core.middleware import celery_request_id_headers
from apps.guides.models import Edition, Guide
from apps.topics.models import Topic

from .client import PublishingApiClient, get_publishing_api
from .presenters import GuidePresenter, TopicPresenter
from .tasks import tag_guide_to_topic

logger = logging.getLogger(__name__)

# Publish type for metadata-only corrections
REPUBLISH = 'republish'


class GuidePublisher:
    """Pushes one guide, rendered through `edition` (the latest by default)."""

    def __init__(
        self,
        guide: Guide,
        edition: Optional[Edition] = None,
        publishing_api: Optional[PublishingApiClient] = None,
    ):
        self.guide = guide
        self.edition = edition
        self.publishing_api = publishing_api or get_publishing_api()

    @property
    def content_id(self) -> str:
        return str(self.guide.content_id)

    @property
    def presenter(self) -> GuidePresenter:
        return GuidePresenter(self.guide, self.edition)

    def put_draft(self):
        logger.debug("Putting draft for guide %s", self.content_id)
        return self.publishing_api.put_content(self.content_id, self.presenter.exportable_attributes())

    def put_links(self):
        logger.debug("Patching links for guide %s", self.content_id)
        return self.publishing_api.patch_links(self.content_id, self.presenter.links())

    def process(self):
        """Push draft content and links."""
        self.put_draft()
        self.put_links()

    def publish(self, update_type: Optional[str] = None):
        edition = self.edition or self.guide.latest_edition
        update_type = update_type or edition.update_type
        logger.info("Publishing guide %s (%s)", self.content_id, update_type)
        return self.publishing_api.publish(self.content_id, update_type)

    def unpublish(self):
        logger.info("Unpublishing guide %s", self.content_id)
        return self.publishing_api.unpublish(self.content_id, 'gone')


class TopicPublisher:
    """Pushes a topic and tags the guides it lists."""

    DEFAULT_UPDATE_TYPE = Edition.UPDATE_TYPE_MINOR

    def __init__(self, topic: Topic, publishing_api: Optional[PublishingApiClient] = None):
        self.topic = topic
        self.publishing_api = publishing_api or get_publishing_api()

    @property
    def content_id(self) -> str:
        return str(self.topic.content_id)

    @property
    def presenter(self) -> TopicPresenter:
        return TopicPresenter(self.topic)

    def put_draft(self):
        logger.debug("Putting draft for topic %s", self.content_id)
        return self.publishing_api.put_content(self.content_id, self.presenter.exportable_attributes())

    def put_links(self):
        """
        Push the topic's links, then tag every linked guide in the background.

        One tagging job per entry: a repeated id is tagged twice.
        """
        payload = self.presenter.links()
        logger.debug("Putting links for topic %s", self.content_id)
        response = self.publishing_api.put_links(self.content_id, payload)

        for guide_content_id in payload.get('links', {}).get('linked_items', []):
            logger.debug("Queueing tag of guide %s to topic %s", guide_content_id, self.content_id)
            transaction.on_commit(partial(_enqueue_tagging, guide_content_id, self.content_id))

        return response

    def process(self):
        self.put_draft()
        self.put_links()

    def publish(self, update_type: str = DEFAULT_UPDATE_TYPE):
        logger.info("Publishing topic %s (%s)", self.content_id, update_type)
        return self.publishing_api.publish(self.content_id, update_type)


def _enqueue_tagging(guide_content_id: str, topic_content_id: str):
    tag_guide_to_topic.apply_async(
        args=[guide_content_id, topic_content_id],
        headers=celery_request_id_headers(),
    )
