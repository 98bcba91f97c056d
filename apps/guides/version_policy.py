"""
Edition versioning rules.

    no edition ever published      -> version 1, drafts reuse it
    latest edition published       -> new edition, version + 1, update type
                                      back to major, change note/summary cleared
    latest edition not published   -> keep editing that edition in place

Unpublished editions count as published here: they were live once and
are never edited in place.
"""

import logging
from typing import Optional

from django.db.models import Max

from .models import Edition, Guide

logger = logging.getLogger(__name__)


def next_version(guide: Guide) -> int:
    """Version number for a new edition of `guide`."""
    if not guide.has_ever_been_published():
        return 1
    highest = guide.editions.aggregate(highest=Max('version'))['highest'] or 0
    return highest + 1


def edition_for_update(guide: Guide, edition: Optional[Edition] = None, acting_user=None) -> Edition:
    """
    Return the edition the next edit of `guide` applies to, with its
    version and workflow defaults filled in.

    A published edition passed in is never returned; a fresh copy of it
    is built instead.
    """
    latest = guide.latest_edition

    if latest is None:
        edition = edition if edition is not None and edition._state.adding else Edition(guide=guide)
        edition.guide = guide
        edition.version = 1
        edition.state = Edition.STATE_DRAFT
        if acting_user is not None and acting_user.pk is not None:
            edition.author = acting_user
        return edition

    if latest.state in Edition.PUBLIC_STATES:
        if edition is None or not edition._state.adding:
            edition = Edition(guide=guide, **_carried_attributes(latest))
        edition.guide = guide
        edition.version = next_version(guide)
        edition.state = Edition.STATE_DRAFT
        edition.update_type = Edition.UPDATE_TYPE_MAJOR
        edition.change_note = ''
        edition.change_summary = ''
        if acting_user is not None and acting_user.pk is not None:
            edition.author = acting_user
        logger.debug(
            "Guide %s: new edition v%s after published v%s",
            guide.pk, edition.version, latest.version,
        )
        return edition

    # Work in progress: continue the latest edition
    if edition is not None and edition.pk != latest.pk:
        logger.debug("Guide %s: continuing latest edition v%s", guide.pk, latest.version)
    if latest.author_id is None and acting_user is not None and acting_user.pk is not None:
        latest.author = acting_user
    return latest


def _carried_attributes(edition: Edition) -> dict:
    attributes = edition.copy_attributes()
    for name in ('version', 'state', 'update_type', 'change_note', 'change_summary', 'author_id'):
        attributes.pop(name)
    return attributes
