"""
Tests for change-note corrections on published editions.
"""

import uuid
from io import StringIO
from unittest.mock import patch

import pytest
from django.core.management import CommandError, call_command

from apps.core.exceptions import NotFoundError, ValidationError
from apps.guides.migrator import ChangeNoteMigrator
from apps.guides.models import Edition, Guide
from apps.publishing.client import PublishingApiServerError
from apps.publishing.publishers import REPUBLISH


@pytest.fixture
def published_edition(db, user, community):
    guide = Guide.objects.create(slug='/service-manual/test/slug_published')
    return Edition.objects.create(
        guide=guide,
        version=1,
        state=Edition.STATE_PUBLISHED,
        update_type=Edition.UPDATE_TYPE_MAJOR,
        title='Published guide',
        description='Already live',
        body='Content',
        change_note='Original note',
        content_owner=community,
        author=user,
    )


@pytest.mark.django_db
class TestChangeNoteMigrator:

    def test_make_minor_republishes(self, published_edition, publishing_api):
        migrator = ChangeNoteMigrator(publishing_api=publishing_api)

        migrator.make_minor(published_edition.pk)

        published_edition.refresh_from_db()
        assert published_edition.update_type == Edition.UPDATE_TYPE_MINOR
        assert published_edition.state == Edition.STATE_PUBLISHED
        content_id = str(published_edition.guide.content_id)
        assert publishing_api.put_content.call_count == 1
        assert publishing_api.patch_links.call_count == 1
        publishing_api.publish.assert_called_once_with(content_id, REPUBLISH)

    def test_update_change_note(self, published_edition, publishing_api):
        ChangeNoteMigrator(publishing_api=publishing_api).update_change_note(published_edition.pk, 'Corrected note')

        published_edition.refresh_from_db()
        assert published_edition.change_note == 'Corrected note'
        payload = publishing_api.put_content.call_args.args[1]
        assert payload['details']['change_note'] == 'Corrected note'

    def test_make_major_sets_the_note(self, published_edition, publishing_api):
        published_edition.update_type = Edition.UPDATE_TYPE_MINOR
        published_edition.save()

        ChangeNoteMigrator(publishing_api=publishing_api).make_major(published_edition.pk, 'Now a major change')

        published_edition.refresh_from_db()
        assert published_edition.update_type == Edition.UPDATE_TYPE_MAJOR
        assert published_edition.change_note == 'Now a major change'

    def test_dry_run_makes_no_calls(self, published_edition, publishing_api):
        migrator = ChangeNoteMigrator(publishing_api=publishing_api, dry_run=True)

        migrator.update_change_note(published_edition.pk, 'Dry note')
        migrator.make_major(published_edition.pk, 'Dry major')
        migrator.make_minor(published_edition.pk)
        migrator.revise_version(published_edition.pk, 4)

        published_edition.refresh_from_db()
        assert published_edition.change_note == 'Dry major'
        assert published_edition.update_type == Edition.UPDATE_TYPE_MINOR
        assert published_edition.version == 4
        publishing_api.put_content.assert_not_called()
        publishing_api.patch_links.assert_not_called()
        publishing_api.publish.assert_not_called()

    def test_dry_run_never_builds_a_client(self, published_edition):
        with patch('apps.guides.migrator.get_publishing_api') as mock_get_api:
            ChangeNoteMigrator(dry_run=True).make_minor(published_edition.pk)

        mock_get_api.assert_not_called()

    @pytest.mark.parametrize('operation, args', [
        ('update_change_note', ('note',)),
        ('make_major', ('note',)),
        ('make_minor', ()),
    ])
    def test_draft_edition_is_not_found(self, make_guide, publishing_api, operation, args):
        draft = make_guide(state=Edition.STATE_DRAFT).latest_edition
        migrator = ChangeNoteMigrator(publishing_api=publishing_api)

        with pytest.raises(NotFoundError):
            getattr(migrator, operation)(draft.pk, *args)

        publishing_api.put_content.assert_not_called()

    def test_missing_edition_is_not_found(self, publishing_api):
        with pytest.raises(NotFoundError):
            ChangeNoteMigrator(publishing_api=publishing_api).make_minor(uuid.uuid4())

    def test_revise_version_works_on_a_draft(self, make_guide, publishing_api):
        draft = make_guide(state=Edition.STATE_DRAFT).latest_edition

        ChangeNoteMigrator(publishing_api=publishing_api).revise_version(draft.pk, 3)

        draft.refresh_from_db()
        assert draft.version == 3
        assert draft.state == Edition.STATE_DRAFT
        publishing_api.put_content.assert_not_called()

    def test_failed_republish_keeps_the_local_change(self, published_edition, publishing_api):
        publishing_api.publish.side_effect = PublishingApiServerError("down", code=503)

        with pytest.raises(PublishingApiServerError):
            ChangeNoteMigrator(publishing_api=publishing_api).make_minor(published_edition.pk)

        published_edition.refresh_from_db()
        assert published_edition.update_type == Edition.UPDATE_TYPE_MINOR

    @pytest.mark.parametrize('edition_id', ['not-a-uuid', '42'])
    def test_malformed_id_is_not_found(self, edition_id, publishing_api):
        migrator = ChangeNoteMigrator(publishing_api=publishing_api)

        with pytest.raises(NotFoundError):
            migrator.make_minor(edition_id)
        with pytest.raises(NotFoundError):
            migrator.revise_version(edition_id, 2)

    def test_revise_version_to_a_taken_version(self, make_guide, user, publishing_api):
        guide = make_guide(state=Edition.STATE_PUBLISHED, version=1)
        draft = Edition.objects.create(
            guide=guide, version=2, state=Edition.STATE_DRAFT,
            title='t', description='d', body='b', author=user,
        )

        with pytest.raises(ValidationError) as exc_info:
            ChangeNoteMigrator(publishing_api=publishing_api).revise_version(draft.pk, 1)

        assert exc_info.value.full_messages == ['Version has already been taken']
        draft.refresh_from_db()
        assert draft.version == 2


@pytest.mark.django_db
class TestChangeNotesCommand:

    def test_update_note(self, published_edition, publishing_api):
        out = StringIO()
        with patch('apps.guides.migrator.get_publishing_api', return_value=publishing_api):
            call_command('change_notes', 'update-note', str(published_edition.pk), '--text', 'From the CLI', stdout=out)

        published_edition.refresh_from_db()
        assert published_edition.change_note == 'From the CLI'
        publishing_api.publish.assert_called_once_with(str(published_edition.guide.content_id), REPUBLISH)
        assert 'From the CLI' in out.getvalue()

    def test_dry_run(self, published_edition):
        out = StringIO()
        with patch('apps.guides.migrator.get_publishing_api') as mock_get_api:
            call_command('change_notes', 'make-minor', str(published_edition.pk), '--dry-run', stdout=out)

        mock_get_api.assert_not_called()
        assert 'DRY RUN' in out.getvalue()

    def test_revise_version(self, make_guide):
        draft = make_guide().latest_edition

        call_command('change_notes', 'revise-version', str(draft.pk), '--new-version', '2', stdout=StringIO())

        draft.refresh_from_db()
        assert draft.version == 2

    def test_text_is_required(self, published_edition):
        with pytest.raises(CommandError):
            call_command('change_notes', 'make-major', str(published_edition.pk))

    def test_not_published(self, make_guide):
        draft = make_guide().latest_edition

        with pytest.raises(CommandError):
            call_command('change_notes', 'make-minor', str(draft.pk), '--dry-run')

    def test_malformed_id(self):
        with pytest.raises(CommandError, match='not found'):
            call_command('change_notes', 'make-minor', '42', '--dry-run')

    def test_revise_version_collision(self, make_guide, user):
        guide = make_guide(state=Edition.STATE_PUBLISHED, version=1)
        draft = Edition.objects.create(
            guide=guide, version=2, state=Edition.STATE_DRAFT,
            title='t', description='d', body='b', author=user,
        )

        with pytest.raises(CommandError, match='Version has already been taken'):
            call_command('change_notes', 'revise-version', str(draft.pk), '--new-version', '1')
