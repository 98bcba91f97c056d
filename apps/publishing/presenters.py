"""
Payload renderers for the publishing API.

Presenters turn guides and topics into the content and links payloads the
publishing API stores; they never talk to the API themselves.
"""

import re
from typing import Any, Dict, List, Optional

from django.conf import settings
from django.utils import timezone
from django.utils.text import slugify

from apps.guides.models import Edition, Guide
from apps.topics.models import Topic

HEADING_PATTERN = re.compile(r'^##\s+(?P<title>.+?)\s*#*\s*$', re.MULTILINE)


def header_links(body: str) -> List[Dict[str, str]]:
    """Anchor links for each level-two markdown heading in `body`."""
    return [
        {'title': match.group('title'), 'href': f"#{slugify(match.group('title'))}"}
        for match in HEADING_PATTERN.finditer(body or '')
    ]


def _timestamp(value) -> str:
    return (value or timezone.now()).isoformat()


class GuidePresenter:
    """Renders a guide through one of its editions (the latest by default)."""

    SCHEMA_NAME = 'service_manual_guide'

    def __init__(self, guide: Guide, edition: Optional[Edition] = None):
        self.guide = guide
        self.edition = edition or guide.latest_edition

    def exportable_attributes(self) -> Dict[str, Any]:
        edition = self.edition
        details: Dict[str, Any] = {
            'body': edition.body,
            'header_links': header_links(edition.body),
            'change_history': self.change_history(),
        }
        if edition.change_note:
            details['change_note'] = edition.change_note
        if edition.related_discussion_href:
            details['related_discussion'] = {
                'title': edition.related_discussion_title,
                'href': edition.related_discussion_href,
            }

        return {
            'base_path': self.guide.slug,
            'title': edition.title,
            'description': edition.description,
            'phase': edition.phase,
            'document_type': self.SCHEMA_NAME,
            'schema_name': self.SCHEMA_NAME,
            'publishing_app': settings.PUBLISHING_APP,
            'rendering_app': settings.RENDERING_APP,
            'locale': 'en',
            'update_type': edition.update_type,
            'public_updated_at': _timestamp(edition.updated_at),
            'routes': [
                {'type': 'exact', 'path': self.guide.slug},
            ],
            'details': details,
        }

    def change_history(self) -> List[Dict[str, str]]:
        """Published major editions' change notes, newest first."""
        history = []
        if self.guide._state.adding:
            return history

        major_editions = (
            self.guide.editions
            .filter(state__in=Edition.PUBLIC_STATES, update_type=Edition.UPDATE_TYPE_MAJOR)
            .exclude(change_note='')
            .most_recent_first()
        )
        for edition in major_editions:
            history.append({
                'public_timestamp': _timestamp(edition.updated_at),
                'note': edition.change_note,
                'reason_for_change': edition.change_summary,
            })
        return history

    def links(self) -> Dict[str, Any]:
        content_owner = self.edition.content_owner if self.edition else None
        topic = self.guide.topic
        return {
            'links': {
                'organisations': [settings.SERVICE_MANUAL_ORGANISATION_CONTENT_ID],
                'content_owners': [str(content_owner.content_id)] if content_owner else [],
                'service_manual_topics': [str(topic.content_id)] if topic else [],
            }
        }


class TopicPresenter:
    """Renders a topic and its sections."""

    SCHEMA_NAME = 'service_manual_topic'

    def __init__(self, topic: Topic):
        self.topic = topic

    def exportable_attributes(self) -> Dict[str, Any]:
        return {
            'base_path': self.topic.path,
            'title': self.topic.title,
            'description': self.topic.description,
            'phase': 'beta',
            'document_type': self.SCHEMA_NAME,
            'schema_name': self.SCHEMA_NAME,
            'publishing_app': settings.PUBLISHING_APP,
            'rendering_app': settings.RENDERING_APP,
            'locale': 'en',
            'public_updated_at': _timestamp(self.topic.updated_at),
            'routes': [
                {'type': 'exact', 'path': self.topic.path},
            ],
            'details': {
                'groups': self.groups(),
            },
        }

    def groups(self) -> List[Dict[str, Any]]:
        if self.topic._state.adding:
            return []
        return [
            {
                'name': section.title,
                'description': section.description,
                'content_ids': [str(guide.content_id) for guide in section.ordered_guides],
            }
            for section in self.topic.ordered_sections
        ]

    def linked_items(self) -> List[str]:
        """Guide content ids in section order."""
        return [content_id for group in self.groups() for content_id in group['content_ids']]

    def links(self) -> Dict[str, Any]:
        content_owners = []
        if not self.topic._state.adding:
            for section in self.topic.ordered_sections:
                for guide in section.ordered_guides:
                    latest = guide.latest_edition
                    if latest and latest.content_owner:
                        owner_id = str(latest.content_owner.content_id)
                        if owner_id not in content_owners:
                            content_owners.append(owner_id)
        return {
            'links': {
                'linked_items': self.linked_items(),
                'content_owners': content_owners,
            }
        }
