"""
Guide editing: the transactional entry point for saving a guide and its edition.

GuideForm holds the editable attributes of a guide and the edition being
worked on. `save()`:

1. applies the attributes to the guide and edition
2. validates everything, writing nothing if anything is invalid
3. in one transaction, saves guide, edition and topic section membership,
   then pushes the guide (and any topic whose membership changed) to the
   publishing API
4. if the publishing API raises, the transaction is rolled back, the
   in-memory objects are restored, and the error propagates

The push happens before commit, so a failed push leaves no local trace.
A crash after the push but before commit can still leave the remote
copy ahead of the database; there is no distributed transaction.
"""

import logging
from typing import Any, Dict, List, Optional, Tuple

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import IntegrityError, transaction

from apps.core.exceptions import ValidationError
from apps.topics.models import Topic, TopicSection, TopicSectionGuide

from .models import Edition, Guide
from .version_policy import edition_for_update

logger = logging.getLogger(__name__)


class GuideForm:
    """
    Edit a guide through its next edition.

    Usage:
        form = GuideForm(guide=guide, edition=guide.latest_edition, user=request.user)
        form.assign_attributes({'title': 'New title', 'topic_section_id': section.id})
        if not form.save():
            print(form.full_messages)
    """

    EDITION_ATTRIBUTES = (
        'title',
        'description',
        'body',
        'phase',
        'related_discussion_title',
        'related_discussion_href',
        'update_type',
        'change_note',
        'change_summary',
        'content_owner_id',
        'author_id',
    )
    GUIDE_ATTRIBUTES = ('slug', 'type')
    ATTRIBUTES = EDITION_ATTRIBUTES + GUIDE_ATTRIBUTES + ('topic_section_id',)

    # Attempts at the read-then-write of a new version
    MAX_SAVE_ATTEMPTS = 3

    def __init__(self, guide: Guide, edition: Optional[Edition], user, publishing_api=None):
        self.guide = guide
        self.user = user
        self.publishing_api = publishing_api
        self.errors: List[Tuple[str, str]] = []

        self.edition = edition_for_update(guide, edition, acting_user=user)
        self._load_attributes()

    def _load_attributes(self):
        edition = self.edition
        for name in self.EDITION_ATTRIBUTES:
            setattr(self, name, getattr(edition, name))
        if self.author_id is None:
            self.author_id = getattr(self.user, 'pk', None)

        self.slug = self.guide.slug or None
        self.type = self.guide.kind

        section = self.guide.topic_section
        self.topic_section_id = section.pk if section else None

    # -------------------------------------------------------------------------
    # Attributes
    # -------------------------------------------------------------------------

    def assign_attributes(self, attributes: Dict[str, Any]):
        unknown = set(attributes) - set(self.ATTRIBUTES)
        if unknown:
            raise TypeError(f"Unknown guide attributes: {', '.join(sorted(unknown))}")
        for name, value in attributes.items():
            setattr(self, name, value)

    @property
    def title_slug(self) -> Optional[str]:
        if self.guide._state.adding or not self.guide.slug:
            return None
        return self.guide.slug.rstrip('/').rsplit('/', 1)[-1]

    def to_param(self) -> str:
        return str(self.guide.pk)

    @property
    def full_messages(self) -> List[str]:
        return ValidationError(self.errors).full_messages if self.errors else []

    # -------------------------------------------------------------------------
    # Save
    # -------------------------------------------------------------------------

    def save(self) -> bool:
        """
        Validate and persist; False (with `errors`) if invalid.

        Raises:
            ExternalServiceError: the publishing API rejected the push; nothing was saved
        """
        for attempt in range(1, self.MAX_SAVE_ATTEMPTS + 1):
            self._apply_attributes()

            self.errors = self._validation_errors()
            if self.errors:
                logger.info(
                    "Guide %s not saved: %s", self.guide.slug or '(new)', '; '.join(self.full_messages)
                )
                return False

            snapshot = self._snapshot()
            try:
                self._persist_and_synchronize()
            except IntegrityError as exc:
                self._restore(snapshot)
                if attempt == self.MAX_SAVE_ATTEMPTS:
                    raise
                logger.warning(
                    "Guide %s: concurrent edit while saving v%s, retrying: %s",
                    self.guide.slug, self.edition.version, exc,
                )
                self.edition = edition_for_update(self.guide, None, acting_user=self.user)
                continue
            except Exception as exc:
                self._restore(snapshot)
                logger.warning("Guide %s rolled back after publishing API failure: %s", self.guide.slug, exc)
                raise

            logger.info(
                "Saved guide %s edition v%s (%s) by user %s",
                self.guide.slug, self.edition.version, self.edition.state, getattr(self.user, 'pk', None),
            )
            return True

        return False

    def _apply_attributes(self):
        guide = self.guide
        guide.slug = self.slug or ''
        if guide._state.adding and self.type:
            guide.kind = self.type

        edition = self.edition
        edition.guide = guide
        edition.state = Edition.STATE_DRAFT
        for name in self.EDITION_ATTRIBUTES:
            value = getattr(self, name)
            if name in ('content_owner_id', 'author_id'):
                setattr(edition, name, value or None)
            else:
                setattr(edition, name, value if value is not None else '')

    def _validation_errors(self) -> List[Tuple[str, str]]:
        errors = list(self.guide.validation_errors(self.edition))
        errors.extend(self.edition.validation_errors())

        if self.edition.content_owner_id:
            try:
                is_community = Guide.objects.communities().filter(pk=self.edition.content_owner_id).exists()
            except (ValueError, DjangoValidationError):
                is_community = False
            if not is_community:
                errors.append(('content_owner', "is not a guide community"))

        if not self.topic_section_id:
            errors.append(('topic_section_id', "can't be blank"))
        else:
            try:
                exists = TopicSection.objects.filter(pk=self.topic_section_id).exists()
            except (ValueError, DjangoValidationError):
                exists = False
            if not exists:
                errors.append(('topic_section_id', "does not exist"))

        return errors

    def _persist_and_synchronize(self):
        from apps.publishing.publishers import GuidePublisher, TopicPublisher

        with transaction.atomic():
            if not self.guide._state.adding:
                Guide.objects.lock(self.guide.pk)

            self.guide.save()
            self.edition.guide = self.guide
            self.edition.save()

            changed_topics = self._assign_topic_section()

            GuidePublisher(self.guide, self.edition, publishing_api=self.publishing_api).process()
            for topic in changed_topics:
                TopicPublisher(topic, publishing_api=self.publishing_api).process()

    def _assign_topic_section(self) -> List[Topic]:
        """
        Move the guide into the chosen topic section.

        Returns the topics whose membership changed; empty when the guide
        is already in that section.
        """
        current = list(
            TopicSectionGuide.objects.filter(guide=self.guide).select_related('topic_section__topic')
        )
        if len(current) == 1 and str(current[0].topic_section_id) == str(self.topic_section_id):
            return []

        changed: Dict[Any, Topic] = {}
        for join in current:
            changed[join.topic_section.topic_id] = join.topic_section.topic
            join.delete()

        section = TopicSection.objects.select_related('topic').get(pk=self.topic_section_id)
        position = TopicSectionGuide.objects.filter(topic_section=section).count()
        TopicSectionGuide.objects.create(topic_section=section, guide=self.guide, position=position)
        changed[section.topic_id] = section.topic

        logger.info("Guide %s moved to topic section %s", self.guide.slug, section.pk)
        return list(changed.values())

    # -------------------------------------------------------------------------
    # Rollback of in-memory state
    # -------------------------------------------------------------------------

    def _snapshot(self) -> dict:
        return {
            'guide_adding': self.guide._state.adding,
            'guide_content_id': self.guide.content_id,
            'edition_adding': self.edition._state.adding,
        }

    def _restore(self, snapshot: dict):
        self.guide._state.adding = snapshot['guide_adding']
        self.guide.content_id = snapshot['guide_content_id']
        self.edition._state.adding = snapshot['edition_adding']


def save_guide(guide: Guide, edition: Optional[Edition], acting_user, attributes: Dict[str, Any],
               publishing_api=None) -> Tuple[Guide, Edition]:
    """
    Save `attributes` to `guide` through its next edition.

    Raises:
        ValidationError: with every field error; nothing was written
        ExternalServiceError: the publishing API failed; nothing was written
    """
    form = GuideForm(guide=guide, edition=edition, user=acting_user, publishing_api=publishing_api)
    form.assign_attributes(attributes)
    if not form.save():
        raise ValidationError(form.errors)
    return form.guide, form.edition


