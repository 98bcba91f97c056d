"""
Tests for publishing API payloads.
"""

import pytest

from apps.guides.models import Edition
from apps.publishing.presenters import GuidePresenter, TopicPresenter, header_links
from apps.topics.models import TopicSection, TopicSectionGuide


class TestHeaderLinks:

    def test_level_two_headings(self):
        body = "Intro\n\n## Writing user stories\n\nText\n\n### Not this one\n\n## Acceptance criteria ##\n"

        assert header_links(body) == [
            {'title': 'Writing user stories', 'href': '#writing-user-stories'},
            {'title': 'Acceptance criteria', 'href': '#acceptance-criteria'},
        ]

    def test_empty_body(self):
        assert header_links('') == []


@pytest.mark.django_db
class TestGuidePresenter:

    def test_content_payload(self, make_guide, settings):
        guide = make_guide(
            title='User stories',
            description='How to write them',
            body='## Format\n\nAs a...',
            phase='alpha',
            change_note='Rewritten',
            related_discussion_title='Slack',
            related_discussion_href='https://example.com/chat',
        )

        payload = GuidePresenter(guide).exportable_attributes()

        assert payload['base_path'] == guide.slug
        assert payload['routes'] == [{'type': 'exact', 'path': guide.slug}]
        assert payload['title'] == 'User stories'
        assert payload['phase'] == 'alpha'
        assert payload['schema_name'] == 'service_manual_guide'
        assert payload['publishing_app'] == settings.PUBLISHING_APP
        assert payload['update_type'] == Edition.UPDATE_TYPE_MAJOR
        details = payload['details']
        assert details['header_links'] == [{'title': 'Format', 'href': '#format'}]
        assert details['change_note'] == 'Rewritten'
        assert details['related_discussion'] == {'title': 'Slack', 'href': 'https://example.com/chat'}

    def test_change_history_lists_published_major_notes(self, make_guide, user):
        guide = make_guide(state=Edition.STATE_PUBLISHED, version=1, change_note='First', change_summary='Launch')
        Edition.objects.create(
            guide=guide, version=2, state=Edition.STATE_PUBLISHED, update_type=Edition.UPDATE_TYPE_MINOR,
            change_note='Typo', title='t', description='d', body='b', author=user,
        )
        Edition.objects.create(
            guide=guide, version=3, state=Edition.STATE_DRAFT, change_note='Not yet',
            title='t', description='d', body='b', author=user,
        )

        history = GuidePresenter(guide).change_history()

        assert [entry['note'] for entry in history] == ['First']
        assert history[0]['reason_for_change'] == 'Launch'

    def test_links(self, make_guide, topic_section, community, settings):
        guide = make_guide(topic_section=topic_section)

        links = GuidePresenter(guide).links()['links']

        assert links['organisations'] == [settings.SERVICE_MANUAL_ORGANISATION_CONTENT_ID]
        assert links['content_owners'] == [str(community.content_id)]
        assert links['service_manual_topics'] == [str(topic_section.topic.content_id)]


@pytest.mark.django_db
class TestTopicPresenter:

    def test_groups_follow_section_order(self, topic, make_guide):
        later = TopicSection.objects.create(topic=topic, title='Later', description='', position=1)
        first = TopicSection.objects.create(topic=topic, title='First', description='Start here', position=0)
        guide_a = make_guide(slug='/service-manual/test-topic/a', topic_section=first)
        guide_b = make_guide(slug='/service-manual/test-topic/b', topic_section=later)

        presenter = TopicPresenter(topic)

        assert presenter.groups() == [
            {'name': 'First', 'description': 'Start here', 'content_ids': [str(guide_a.content_id)]},
            {'name': 'Later', 'description': '', 'content_ids': [str(guide_b.content_id)]},
        ]
        assert presenter.linked_items() == [str(guide_a.content_id), str(guide_b.content_id)]

    def test_links_collect_content_owners_once(self, topic, topic_section, make_guide, community):
        make_guide(slug='/service-manual/test-topic/one', topic_section=topic_section)
        make_guide(slug='/service-manual/test-topic/two', topic_section=topic_section)

        links = TopicPresenter(topic).links()['links']

        assert len(links['linked_items']) == 2
        assert links['content_owners'] == [str(community.content_id)]

    def test_guides_keep_their_position(self, topic, topic_section, make_guide):
        second = make_guide(slug='/service-manual/test-topic/second')
        first = make_guide(slug='/service-manual/test-topic/first')
        TopicSectionGuide.objects.create(topic_section=topic_section, guide=second, position=1)
        TopicSectionGuide.objects.create(topic_section=topic_section, guide=first, position=0)

        assert TopicPresenter(topic).linked_items() == [str(first.content_id), str(second.content_id)]
