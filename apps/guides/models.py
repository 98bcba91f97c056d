"""
Guide and edition models for the service manual publisher.

A guide is the stable entity (content_id, slug); its editions are the
versioned revisions. Editions are never deleted on their own, only with
their guide.
"""

import re
import uuid
from typing import List, Optional, Tuple

from django.conf import settings
from django.db import models

from apps.core.models import BaseModel


SLUG_PREFIX = '/service-manual/'


def slug_format_errors(slug: Optional[str]) -> List[Tuple[str, str]]:
    """
    Check a guide slug against /service-manual/<topic>/<name...>.

    Only the first failing check is reported.
    """
    slug = slug or ''
    if not slug.startswith(SLUG_PREFIX):
        return [('slug', "must be present and start with '/service-manual/'")]
    if not re.match(r'\A/service-manual/\w+', slug):
        return [('slug', "must be filled in")]
    if not re.match(r'\A/service-manual/[a-z0-9\-/]+\Z', slug):
        return [('slug', "can only contain letters, numbers and dashes")]
    if not re.match(r'\A/service-manual/[a-z0-9-]+/[a-z0-9-]+', slug):
        return [('slug', "must be present and start with '/service-manual/[topic]'")]
    return []


class GuideQuerySet(models.QuerySet):
    """Filters used by guide listings; each is a no-op for an empty argument."""

    def by_author(self, author_id):
        if not author_id:
            return self
        return self.filter(editions__author_id=author_id).distinct()

    def in_state(self, state):
        if not state:
            return self
        return self.filter(editions__state=state).distinct()

    def owned_by(self, content_owner_id):
        if not content_owner_id:
            return self
        return self.filter(editions__content_owner_id=content_owner_id).distinct()

    def with_published_editions(self):
        return self.filter(editions__state=Edition.STATE_PUBLISHED).distinct()

    def communities(self):
        return self.filter(kind=Guide.KIND_GUIDE_COMMUNITY)

    def lock(self, pk):
        """Row-lock a guide for the rest of the current transaction."""
        return list(self.select_for_update().filter(pk=pk).values_list('pk', flat=True))


class Guide(BaseModel):
    """
    A service manual guide.

    `kind` replaces subclassing: a community guide is itself a content
    owner and does not need one of its own.
    """

    KIND_GUIDE = 'guide'
    KIND_GUIDE_COMMUNITY = 'guide_community'

    KIND_CHOICES = [
        (KIND_GUIDE, 'Guide'),
        (KIND_GUIDE_COMMUNITY, 'Guide community'),
    ]

    # Kinds whose editions must name a content owner
    KINDS_REQUIRING_CONTENT_OWNER = {KIND_GUIDE}

    content_id = models.UUIDField(
        null=True,
        blank=True,
        unique=True,
        editable=False,
        verbose_name='Content ID',
        help_text='Stable identifier in the publishing API, assigned on first save'
    )

    slug = models.CharField(
        max_length=255,
        unique=True,
        verbose_name='Slug',
        help_text='Path of the guide, e.g. /service-manual/agile-delivery/writing-user-stories'
    )

    kind = models.CharField(
        max_length=32,
        choices=KIND_CHOICES,
        default=KIND_GUIDE,
        db_index=True,
        verbose_name='Kind'
    )

    objects = GuideQuerySet.as_manager()

    class Meta:
        db_table = 'guides'
        ordering = ['slug']
        verbose_name = 'Guide'
        verbose_name_plural = 'Guides'

    def __str__(self):
        return self.slug

    def save(self, *args, **kwargs):
        if self.content_id is None:
            self.content_id = uuid.uuid4()
        super().save(*args, **kwargs)

    @property
    def requires_content_owner(self) -> bool:
        return self.kind in self.KINDS_REQUIRING_CONTENT_OWNER

    # -------------------------------------------------------------------------
    # Editions
    # -------------------------------------------------------------------------

    @property
    def latest_edition(self) -> Optional['Edition']:
        if self._state.adding:
            return None
        return self.editions.most_recent_first().first()

    @property
    def latest_published_edition(self) -> Optional['Edition']:
        if self._state.adding:
            return None
        return self.editions.published().most_recent_first().first()

    @property
    def title(self) -> str:
        latest = self.latest_edition
        return latest.title if latest else ''

    def has_published_edition(self) -> bool:
        return not self._state.adding and self.editions.published().exists()

    def has_unpublished_edition(self) -> bool:
        return not self._state.adding and self.editions.filter(state=Edition.STATE_UNPUBLISHED).exists()

    def has_ever_been_published(self) -> bool:
        return not self._state.adding and self.editions.filter(state__in=Edition.PUBLIC_STATES).exists()

    def can_be_unpublished(self) -> bool:
        return self.has_published_edition() and not self.has_unpublished_edition()

    def editions_since_last_published(self):
        latest_published = self.latest_published_edition
        if latest_published is None:
            return self.editions.none()
        return self.editions.filter(created_at__gt=latest_published.created_at)

    def work_in_progress_edition(self) -> bool:
        latest = self.latest_edition
        return latest is not None and not latest.is_published

    # -------------------------------------------------------------------------
    # Topic membership
    # -------------------------------------------------------------------------

    @property
    def topic_section(self):
        if self._state.adding:
            return None
        join = self.topic_section_guides.select_related('topic_section__topic').first()
        return join.topic_section if join else None

    @property
    def topic(self):
        section = self.topic_section
        return section.topic if section else None

    def included_in_a_topic(self) -> bool:
        return self.topic is not None

    # -------------------------------------------------------------------------
    # Validation
    # -------------------------------------------------------------------------

    def validation_errors(self, edition: Optional['Edition'] = None) -> List[Tuple[str, str]]:
        errors = slug_format_errors(self.slug)

        if not self._state.adding:
            stored_slug = Guide.objects.filter(pk=self.pk).values_list('slug', flat=True).first()
            if stored_slug is not None and stored_slug != self.slug and self.has_published_edition():
                errors.append(('slug', "can't be changed if guide has a published edition"))

        if self.slug and Guide.objects.filter(slug=self.slug).exclude(pk=self.pk).exists():
            errors.append(('slug', "has already been taken"))

        if self.requires_content_owner and edition is not None and edition.content_owner_id is None:
            errors.append(('latest_edition', 'must have a content owner'))

        return errors


class EditionQuerySet(models.QuerySet):

    def most_recent_first(self):
        return self.order_by('-created_at', '-version')

    def published(self):
        return self.filter(state=Edition.STATE_PUBLISHED)

    def drafts(self):
        return self.filter(state=Edition.STATE_DRAFT)


class Edition(BaseModel):
    """
    One versioned revision of a guide and its workflow state.
    """

    STATE_DRAFT = 'draft'
    STATE_REVIEW_REQUESTED = 'review_requested'
    STATE_READY = 'ready'
    STATE_PUBLISHED = 'published'
    STATE_UNPUBLISHED = 'unpublished'

    STATE_CHOICES = [
        (STATE_DRAFT, 'Draft'),
        (STATE_REVIEW_REQUESTED, 'Review requested'),
        (STATE_READY, 'Ready'),
        (STATE_PUBLISHED, 'Published'),
        (STATE_UNPUBLISHED, 'Unpublished'),
    ]

    # States that have been live on the publishing API
    PUBLIC_STATES = (STATE_PUBLISHED, STATE_UNPUBLISHED)

    UPDATE_TYPE_MAJOR = 'major'
    UPDATE_TYPE_MINOR = 'minor'

    UPDATE_TYPE_CHOICES = [
        (UPDATE_TYPE_MAJOR, 'Major'),
        (UPDATE_TYPE_MINOR, 'Minor'),
    ]

    PHASE_CHOICES = [
        ('discovery', 'Discovery'),
        ('alpha', 'Alpha'),
        ('beta', 'Beta'),
        ('live', 'Live'),
    ]

    guide = models.ForeignKey(
        Guide,
        on_delete=models.CASCADE,
        related_name='editions',
        verbose_name='Guide'
    )

    version = models.PositiveIntegerField(
        default=1,
        verbose_name='Version'
    )

    state = models.CharField(
        max_length=20,
        choices=STATE_CHOICES,
        default=STATE_DRAFT,
        db_index=True,
        verbose_name='State'
    )

    update_type = models.CharField(
        max_length=10,
        choices=UPDATE_TYPE_CHOICES,
        default=UPDATE_TYPE_MAJOR,
        verbose_name='Update type'
    )

    phase = models.CharField(
        max_length=20,
        choices=PHASE_CHOICES,
        default='beta',
        verbose_name='Phase'
    )

    title = models.CharField(
        max_length=255,
        blank=True,
        verbose_name='Title'
    )

    description = models.TextField(
        blank=True,
        verbose_name='Description'
    )

    body = models.TextField(
        blank=True,
        verbose_name='Body',
        help_text='Markdown body of the guide'
    )

    related_discussion_title = models.CharField(
        max_length=255,
        blank=True,
        verbose_name='Related discussion title'
    )

    related_discussion_href = models.URLField(
        max_length=1000,
        blank=True,
        verbose_name='Link to related discussion'
    )

    author = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='authored_editions',
        verbose_name='Author'
    )

    content_owner = models.ForeignKey(
        Guide,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='owned_editions',
        limit_choices_to={'kind': Guide.KIND_GUIDE_COMMUNITY},
        verbose_name='Content owner',
        help_text='Community accountable for this edition'
    )

    change_note = models.TextField(
        blank=True,
        default='',
        verbose_name='Change note',
        help_text='Public note describing the change since the last published edition'
    )

    change_summary = models.TextField(
        blank=True,
        default='',
        verbose_name='Change summary',
        help_text='Reason for change, shown in the change history'
    )

    objects = EditionQuerySet.as_manager()

    class Meta:
        db_table = 'editions'
        ordering = ['-created_at']
        verbose_name = 'Edition'
        verbose_name_plural = 'Editions'
        constraints = [
            # Serializes version assignment for concurrent saves on one guide
            models.UniqueConstraint(fields=['guide', 'version'], name='editions_unique_guide_version'),
        ]
        indexes = [
            models.Index(fields=['guide', 'created_at'], name='editions_guide_created_idx'),
        ]

    def __str__(self):
        return f"{self.guide_id} v{self.version} ({self.state})"

    @property
    def is_draft(self) -> bool:
        return self.state == self.STATE_DRAFT

    @property
    def is_published(self) -> bool:
        return self.state == self.STATE_PUBLISHED

    @property
    def is_unpublished(self) -> bool:
        return self.state == self.STATE_UNPUBLISHED

    @property
    def is_major(self) -> bool:
        return self.update_type == self.UPDATE_TYPE_MAJOR

    def is_latest_edition(self) -> bool:
        latest = self.guide.latest_edition
        return latest is not None and latest.pk == self.pk

    def copy_attributes(self) -> dict:
        """Editable attributes, used to start a new edition from this one."""
        return {
            'title': self.title,
            'description': self.description,
            'body': self.body,
            'phase': self.phase,
            'related_discussion_title': self.related_discussion_title,
            'related_discussion_href': self.related_discussion_href,
            'update_type': self.update_type,
            'change_note': self.change_note,
            'change_summary': self.change_summary,
            'content_owner_id': self.content_owner_id,
            'author_id': self.author_id,
            'version': self.version,
            'state': self.state,
        }

    def validation_errors(self) -> List[Tuple[str, str]]:
        errors = []
        for name in ('title', 'description', 'body'):
            if not (getattr(self, name) or '').strip():
                errors.append((name, "can't be blank"))
        if not self.version or self.version < 1:
            errors.append(('version', "must be greater than 0"))
        if self.update_type not in dict(self.UPDATE_TYPE_CHOICES):
            errors.append(('update_type', "is not included in the list"))
        if self.state not in dict(self.STATE_CHOICES):
            errors.append(('state', "is not included in the list"))
        if self.phase not in dict(self.PHASE_CHOICES):
            errors.append(('phase', "is not included in the list"))
        return errors
