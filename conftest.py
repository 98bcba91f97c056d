"""
Shared fixtures for the publisher test suite.
"""

import pytest
from unittest.mock import MagicMock

from apps.guides.models import Edition, Guide
from apps.publishing.client import PublishingApiClient
from apps.topics.models import Topic, TopicSection, TopicSectionGuide


@pytest.fixture
def user(db, django_user_model):
    """Author of the editions under test."""
    return django_user_model.objects.create_user(username='author', password='pass')


@pytest.fixture
def reviewer(db, django_user_model):
    """A second user, allowed to approve the author's work."""
    return django_user_model.objects.create_user(username='reviewer', password='pass')


@pytest.fixture
def publishing_api():
    """Publishing API double; every call succeeds unless told otherwise."""
    api = MagicMock(spec=PublishingApiClient)
    api.put_content.return_value = {}
    api.patch_links.return_value = {}
    api.put_links.return_value = {}
    api.publish.return_value = {}
    api.unpublish.return_value = {}
    return api


@pytest.fixture
def topic(db):
    return Topic.objects.create(
        path='/service-manual/test-topic',
        title='Test topic',
        description='Guides about testing',
    )


@pytest.fixture
def topic_section(topic):
    return TopicSection.objects.create(topic=topic, title='Getting started', description='First steps', position=0)


@pytest.fixture
def community(db):
    """A published guide community, usable as a content owner."""
    guide = Guide.objects.create(slug='/service-manual/test-community/agile', kind=Guide.KIND_GUIDE_COMMUNITY)
    Edition.objects.create(
        guide=guide,
        title='Agile community',
        description='People who do agile',
        body='Join us',
        state=Edition.STATE_PUBLISHED,
        version=1,
    )
    return guide


@pytest.fixture
def make_guide(db, user, community):
    """
    Build a guide with one edition.

    Usage:
        guide = make_guide(state=Edition.STATE_PUBLISHED, topic_section=section)
    """
    def _make(slug='/service-manual/test-topic/test-guide', state=Edition.STATE_DRAFT, version=1,
              topic_section=None, **edition_attributes):
        guide = Guide.objects.create(slug=slug)
        attributes = {
            'title': 'Test guide',
            'description': 'A guide for tests',
            'body': '## Why test\n\nBecause.',
            'content_owner': community,
            'author': user,
        }
        attributes.update(edition_attributes)
        Edition.objects.create(guide=guide, state=state, version=version, **attributes)
        if topic_section is not None:
            TopicSectionGuide.objects.create(topic_section=topic_section, guide=guide)
        return guide

    return _make


@pytest.fixture
def guide_attributes(community, topic_section):
    """Attributes that make a valid new guide."""
    return {
        'slug': '/service-manual/test-topic/new-guide',
        'title': 'New guide',
        'description': 'What this guide covers',
        'body': '## First\n\nSome words.',
        'content_owner_id': community.pk,
        'topic_section_id': topic_section.pk,
    }
