"""
Tests for the edition workflow state machine.
"""

import pytest

from apps.core.exceptions import WorkflowGuardError
from apps.guides.models import Edition
from apps.guides.state_machine import EditionState, EditionStateMachine, VALID_TRANSITIONS
from apps.publishing.client import PublishingApiServerError


class TestTransitionTable:

    def test_linear_workflow(self):
        assert VALID_TRANSITIONS[EditionState.DRAFT] == {EditionState.REVIEW_REQUESTED}
        assert VALID_TRANSITIONS[EditionState.REVIEW_REQUESTED] == {EditionState.READY}
        assert VALID_TRANSITIONS[EditionState.READY] == {EditionState.PUBLISHED}
        assert VALID_TRANSITIONS[EditionState.PUBLISHED] == {EditionState.UNPUBLISHED}

    def test_unpublished_is_terminal(self):
        assert EditionState.UNPUBLISHED.is_terminal
        assert VALID_TRANSITIONS[EditionState.UNPUBLISHED] == set()

    def test_unknown_state(self):
        with pytest.raises(ValueError):
            EditionState.from_string('archived')


@pytest.mark.django_db
class TestRequestReview:

    def test_latest_draft_can_be_sent_for_review(self, make_guide, user):
        edition = make_guide().latest_edition

        EditionStateMachine(edition, acting_user=user).request_review()

        edition.refresh_from_db()
        assert edition.state == Edition.STATE_REVIEW_REQUESTED

    def test_older_edition_cannot_be_sent_for_review(self, make_guide, user):
        guide = make_guide(state=Edition.STATE_DRAFT, version=1)
        older = guide.latest_edition
        Edition.objects.create(guide=guide, version=2, title='t', description='d', body='b', author=user)

        with pytest.raises(WorkflowGuardError) as exc_info:
            EditionStateMachine(older, acting_user=user).request_review()

        assert exc_info.value.guard == 'latest_edition'
        older.refresh_from_db()
        assert older.state == Edition.STATE_DRAFT

    def test_skipping_a_step_is_rejected(self, make_guide, user, publishing_api):
        edition = make_guide().latest_edition

        with pytest.raises(WorkflowGuardError) as exc_info:
            EditionStateMachine(edition, acting_user=user, publishing_api=publishing_api).publish()

        assert exc_info.value.guard == 'valid_transition'
        assert exc_info.value.status_code == 409
        publishing_api.publish.assert_not_called()


@pytest.mark.django_db
class TestApprove:

    def test_author_cannot_approve_own_edition(self, make_guide, user):
        edition = make_guide(state=Edition.STATE_REVIEW_REQUESTED).latest_edition
        machine = EditionStateMachine(edition, acting_user=user)

        assert not machine.can_transition_to(EditionState.READY)
        with pytest.raises(WorkflowGuardError) as exc_info:
            machine.approve()

        assert exc_info.value.guard == 'no_self_approval'
        assert edition.state == Edition.STATE_REVIEW_REQUESTED
        assert machine.history[-1].success is False

    def test_reviewer_can_approve(self, make_guide, reviewer):
        edition = make_guide(state=Edition.STATE_REVIEW_REQUESTED).latest_edition
        machine = EditionStateMachine(edition, acting_user=reviewer)

        assert machine.get_valid_transitions() == {EditionState.READY}
        machine.approve()

        edition.refresh_from_db()
        assert edition.state == Edition.STATE_READY
        assert machine.history[-1].to_state is EditionState.READY
        assert machine.history[-1].acting_user_id == reviewer.pk


@pytest.mark.django_db
class TestPublish:

    def test_publish_pushes_then_publishes(self, make_guide, reviewer, publishing_api):
        guide = make_guide(state=Edition.STATE_READY, update_type=Edition.UPDATE_TYPE_MINOR)
        edition = guide.latest_edition

        EditionStateMachine(edition, acting_user=reviewer, publishing_api=publishing_api).publish()

        edition.refresh_from_db()
        assert edition.state == Edition.STATE_PUBLISHED
        publishing_api.put_content.assert_called_once()
        publishing_api.patch_links.assert_called_once()
        publishing_api.publish.assert_called_once_with(str(guide.content_id), Edition.UPDATE_TYPE_MINOR)

    def test_failed_publish_is_rolled_back(self, make_guide, reviewer, publishing_api):
        edition = make_guide(state=Edition.STATE_READY).latest_edition
        publishing_api.publish.side_effect = PublishingApiServerError("Publishing API returned 500", code=500)
        machine = EditionStateMachine(edition, acting_user=reviewer, publishing_api=publishing_api)

        with pytest.raises(PublishingApiServerError):
            machine.publish()

        assert edition.state == Edition.STATE_READY
        edition.refresh_from_db()
        assert edition.state == Edition.STATE_READY
        assert machine.history[-1].error == "Publishing API returned 500"

    def test_version_cannot_be_published_twice(self, make_guide, reviewer, publishing_api):
        guide = make_guide(state=Edition.STATE_PUBLISHED, version=2)
        stale = Edition.objects.create(
            guide=guide, version=1, state=Edition.STATE_READY,
            title='t', description='d', body='b', author=reviewer,
        )

        with pytest.raises(WorkflowGuardError) as exc_info:
            EditionStateMachine(stale, acting_user=reviewer, publishing_api=publishing_api).publish()

        assert exc_info.value.guard == 'not_already_published'
        publishing_api.put_content.assert_not_called()


@pytest.mark.django_db
class TestUnpublish:

    def test_unpublish_calls_the_publishing_api(self, make_guide, reviewer, publishing_api):
        guide = make_guide(state=Edition.STATE_PUBLISHED)
        edition = guide.latest_edition

        EditionStateMachine(edition, acting_user=reviewer, publishing_api=publishing_api).unpublish()

        edition.refresh_from_db()
        assert edition.state == Edition.STATE_UNPUBLISHED
        publishing_api.unpublish.assert_called_once_with(str(guide.content_id), 'gone')
        assert not guide.can_be_unpublished()

    def test_unpublished_edition_cannot_move(self, make_guide, reviewer):
        edition = make_guide(state=Edition.STATE_UNPUBLISHED).latest_edition
        machine = EditionStateMachine(edition, acting_user=reviewer)

        assert machine.get_valid_transitions() == set()
        with pytest.raises(WorkflowGuardError):
            machine.transition_to('published')

    def test_guide_with_an_unpublished_edition_cannot_be_unpublished_again(self, make_guide, user, reviewer,
                                                                          publishing_api):
        guide = make_guide(state=Edition.STATE_UNPUBLISHED, version=1)
        live = Edition.objects.create(
            guide=guide, version=2, state=Edition.STATE_PUBLISHED,
            title='t', description='d', body='b', author=user,
        )

        with pytest.raises(WorkflowGuardError) as exc_info:
            EditionStateMachine(live, acting_user=reviewer, publishing_api=publishing_api).unpublish()

        assert exc_info.value.guard == 'can_be_unpublished'
        live.refresh_from_db()
        assert live.state == Edition.STATE_PUBLISHED
        publishing_api.unpublish.assert_not_called()
