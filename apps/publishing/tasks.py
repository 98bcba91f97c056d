"""
Celery tasks for the publishing API.
"""

import logging

from celery import shared_task

from .client import PublishingApiClientError, PublishingApiError, get_publishing_api

logger = logging.getLogger(__name__)


@shared_task(bind=True, max_retries=3)
def tag_guide_to_topic(self, guide_content_id: str, topic_content_id: str):
    """Link a guide to the topic that lists it."""
    try:
        get_publishing_api().patch_links(
            guide_content_id,
            {'links': {'service_manual_topics': [topic_content_id]}},
        )
        logger.info("Tagged guide %s to topic %s", guide_content_id, topic_content_id)
        return {"guide_content_id": guide_content_id, "topic_content_id": topic_content_id, "status": "tagged"}
    except PublishingApiClientError as exc:
        # Rejected outright; retrying will not help
        logger.error("Tagging guide %s to topic %s rejected: %s", guide_content_id, topic_content_id, exc)
        return {"error": str(exc), "guide_content_id": guide_content_id}
    except PublishingApiError as exc:
        logger.warning("Tagging guide %s to topic %s failed: %s", guide_content_id, topic_content_id, exc)
        raise self.retry(exc=exc, countdown=30 * (self.request.retries + 1))
