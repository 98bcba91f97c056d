"""
Management command for correcting change notes on published editions.

Usage:
    python manage.py change_notes update-note <edition_id> --text "Fixed a typo"
    python manage.py change_notes make-major <edition_id> --text "Added guidance on accessibility"
    python manage.py change_notes make-minor <edition_id>
    python manage.py change_notes revise-version <edition_id> --new-version 3
    python manage.py change_notes make-minor <edition_id> --dry-run
"""

from django.core.management.base import BaseCommand, CommandError

from apps.core.exceptions import ExternalServiceError, NotFoundError, ValidationError


class Command(BaseCommand):
    help = 'Correct the change note, update type or version of an edition'

    ACTIONS = ['update-note', 'make-major', 'make-minor', 'revise-version']

    def add_arguments(self, parser):
        parser.add_argument(
            'action',
            choices=self.ACTIONS,
            help='Correction to apply'
        )
        parser.add_argument(
            'edition_id',
            type=str,
            help='ID of the edition to correct'
        )
        parser.add_argument(
            '--text',
            type=str,
            default=None,
            help='New change note (update-note, make-major)'
        )
        parser.add_argument(
            '--new-version',
            type=int,
            default=None,
            dest='new_version',
            help='New version number (revise-version)'
        )
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='Update the database but do not republish to the publishing API'
        )

    def handle(self, *args, **options):
        from apps.guides.migrator import ChangeNoteMigrator

        action = options['action']
        edition_id = options['edition_id']
        text = options['text']

        if action in ('update-note', 'make-major') and not text:
            raise CommandError(f'{action} requires --text')
        if action == 'revise-version' and not options['new_version']:
            raise CommandError('revise-version requires --new-version')

        migrator = ChangeNoteMigrator(dry_run=options['dry_run'])

        if options['dry_run']:
            self.stdout.write(self.style.NOTICE('DRY RUN - nothing will be sent to the publishing API'))

        try:
            if action == 'update-note':
                edition = migrator.update_change_note(edition_id, text)
            elif action == 'make-major':
                edition = migrator.make_major(edition_id, text)
            elif action == 'make-minor':
                edition = migrator.make_minor(edition_id)
            else:
                edition = migrator.revise_version(edition_id, options['new_version'])
        except (NotFoundError, ValidationError) as e:
            raise CommandError(str(e))
        except ExternalServiceError as e:
            raise CommandError(f'Database updated but republish failed: {e}')

        self.stdout.write(self.style.SUCCESS(
            f"Edition {edition.pk}: v{edition.version}, {edition.update_type}, "
            f"change note: {edition.change_note or '(none)'}"
        ))
