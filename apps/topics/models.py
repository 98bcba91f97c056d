"""
Topic models for the service manual publisher.

A topic is a landing page made of ordered sections; each section lists
guides. A guide is listed in at most one section at a time.
"""

import uuid

from django.db import models
from apps.core.models import BaseModel


class Topic(BaseModel):
    """
    A service manual topic, published to the publishing API alongside guides.
    """

    content_id = models.UUIDField(
        default=uuid.uuid4,
        unique=True,
        editable=False,
        verbose_name='Content ID',
        help_text='Stable identifier in the publishing API'
    )

    path = models.CharField(
        max_length=255,
        unique=True,
        verbose_name='Path',
        help_text='Base path, e.g. /service-manual/agile-delivery'
    )

    title = models.CharField(
        max_length=255,
        verbose_name='Title'
    )

    description = models.TextField(
        blank=True,
        verbose_name='Description'
    )

    class Meta:
        db_table = 'topics'
        ordering = ['path']
        verbose_name = 'Topic'
        verbose_name_plural = 'Topics'

    def __str__(self):
        return self.title or self.path

    @property
    def ordered_sections(self):
        return self.topic_sections.order_by('position', 'created_at')


class TopicSection(BaseModel):
    """
    A titled group of guides within a topic.
    """

    topic = models.ForeignKey(
        Topic,
        on_delete=models.CASCADE,
        related_name='topic_sections',
        verbose_name='Topic'
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

    position = models.PositiveIntegerField(
        default=0,
        verbose_name='Position',
        help_text='Order of the section within its topic'
    )

    guides = models.ManyToManyField(
        'guides.Guide',
        through='TopicSectionGuide',
        related_name='topic_sections',
        blank=True,
    )

    class Meta:
        db_table = 'topic_sections'
        ordering = ['position', 'created_at']
        verbose_name = 'Topic Section'
        verbose_name_plural = 'Topic Sections'

    def __str__(self):
        return f"{self.topic} / {self.title or self.position}"

    @property
    def ordered_guides(self):
        return self.guides.order_by('topic_section_guides__position', 'topic_section_guides__created_at')


class TopicSectionGuide(BaseModel):
    """
    Join row listing a guide under a topic section.
    """

    topic_section = models.ForeignKey(
        TopicSection,
        on_delete=models.CASCADE,
        related_name='topic_section_guides',
    )

    guide = models.ForeignKey(
        'guides.Guide',
        on_delete=models.CASCADE,
        related_name='topic_section_guides',
    )

    position = models.PositiveIntegerField(default=0)

    class Meta:
        db_table = 'topic_section_guides'
        ordering = ['position', 'created_at']
        constraints = [
            # A guide belongs to at most one topic section
            models.UniqueConstraint(fields=['guide'], name='topic_section_guides_one_per_guide'),
        ]

    def __str__(self):
        return f"{self.guide} in {self.topic_section}"
