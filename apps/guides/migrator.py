"""
Maintenance operations on published editions.

These bypass the review workflow to correct metadata on content that is
already live, then republish it with update type "republish". The local
change is committed before the publishing API is called; if the call
fails, the error is raised to the operator and the two copies stay
diverged until the operation is re-run.

With dry_run=True nothing is sent to the publishing API.
"""

import logging
from typing import Optional

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import IntegrityError, transaction

from apps.core.exceptions import NotFoundError, ValidationError
from apps.publishing.client import PublishingApiClient, get_publishing_api
from apps.publishing.publishers import REPUBLISH, GuidePublisher

from .models import Edition

logger = logging.getLogger(__name__)


class ChangeNoteMigrator:
    """
    Usage:
        migrator = ChangeNoteMigrator(dry_run=True)
        migrator.make_minor(edition_id)
    """

    def __init__(self, publishing_api: Optional[PublishingApiClient] = None, dry_run: bool = False):
        self.dry_run = dry_run
        self._publishing_api = publishing_api

    @property
    def publishing_api(self) -> PublishingApiClient:
        if self._publishing_api is None:
            self._publishing_api = get_publishing_api()
        return self._publishing_api

    def update_change_note(self, edition_id, change_note: str) -> Edition:
        edition = self._published_edition(edition_id)
        edition.change_note = change_note
        self._save(edition, ['change_note'])
        self._republish(edition)
        return edition

    def make_major(self, edition_id, change_note: str) -> Edition:
        edition = self._published_edition(edition_id)
        edition.update_type = Edition.UPDATE_TYPE_MAJOR
        edition.change_note = change_note
        self._save(edition, ['update_type', 'change_note'])
        self._republish(edition)
        return edition

    def make_minor(self, edition_id) -> Edition:
        edition = self._published_edition(edition_id)
        edition.update_type = Edition.UPDATE_TYPE_MINOR
        self._save(edition, ['update_type'])
        self._republish(edition)
        return edition

    def revise_version(self, edition_id, version: int) -> Edition:
        """Rewrite the version of an edition in any state; local only."""
        edition = self._get_edition(edition_id, f"Edition {edition_id} not found")
        edition.version = version
        try:
            self._save(edition, ['version'])
        except IntegrityError:
            raise ValidationError([('version', 'has already been taken')])
        return edition

    def _published_edition(self, edition_id) -> Edition:
        return self._get_edition(
            edition_id, f"Published edition {edition_id} not found", state=Edition.STATE_PUBLISHED,
        )

    def _get_edition(self, edition_id, missing_message: str, **filters) -> Edition:
        # A mistyped id is not a UUID and fails before the query runs
        try:
            return Edition.objects.select_related('guide').get(pk=edition_id, **filters)
        except (Edition.DoesNotExist, DjangoValidationError, ValueError):
            raise NotFoundError(missing_message)

    def _save(self, edition: Edition, fields):
        with transaction.atomic():
            edition.save(update_fields=[*fields, 'updated_at'])
        logger.info(
            "Edition %s (guide %s): updated %s%s",
            edition.pk, edition.guide_id, ', '.join(fields), ' [dry run]' if self.dry_run else '',
        )

    def _republish(self, edition: Edition):
        if self.dry_run:
            logger.info("Dry run: not republishing guide %s", edition.guide_id)
            return

        publisher = GuidePublisher(edition.guide, edition, publishing_api=self.publishing_api)
        publisher.put_draft()
        publisher.put_links()
        publisher.publish(REPUBLISH)
