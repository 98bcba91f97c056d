"""
Shared model base for the publisher apps.
"""

import uuid
from django.db import models
from django.utils import timezone


class BaseModel(models.Model):
    """
    UUID primary key plus creation and modification timestamps.

    `created_at` is set when the instance is built, not when it is first
    saved, so an unsaved edition already sorts after the ones before it.
    """
    id = models.UUIDField(
        primary_key=True,
        default=uuid.uuid4,
        editable=False,
        verbose_name='ID',
        help_text='Unique identifier (UUID)'
    )

    created_at = models.DateTimeField(
        default=timezone.now,
        editable=False,
        db_index=True,
        verbose_name='Created At',
        help_text='Timestamp when record was created'
    )

    updated_at = models.DateTimeField(
        auto_now=True,
        verbose_name='Updated At',
        help_text='Timestamp when record was last updated'
    )

    class Meta:
        abstract = True
        ordering = ['-created_at']

    def __str__(self):
        return f"{self._meta.verbose_name} {self.pk}"
