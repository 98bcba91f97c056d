# Initial schema for guides and editions

from django.conf import settings
from django.db import migrations, models
import django.db.models.deletion
import django.utils.timezone
import uuid


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Guide',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, help_text='Unique identifier (UUID)', primary_key=True, serialize=False, verbose_name='ID')),
                ('created_at', models.DateTimeField(db_index=True, default=django.utils.timezone.now, editable=False, help_text='Timestamp when record was created', verbose_name='Created At')),
                ('updated_at', models.DateTimeField(auto_now=True, help_text='Timestamp when record was last updated', verbose_name='Updated At')),
                ('content_id', models.UUIDField(blank=True, editable=False, help_text='Stable identifier in the publishing API, assigned on first save', null=True, unique=True, verbose_name='Content ID')),
                ('slug', models.CharField(help_text='Path of the guide, e.g. /service-manual/agile-delivery/writing-user-stories', max_length=255, unique=True, verbose_name='Slug')),
                ('kind', models.CharField(choices=[('guide', 'Guide'), ('guide_community', 'Guide community')], db_index=True, default='guide', max_length=32, verbose_name='Kind')),
            ],
            options={
                'verbose_name': 'Guide',
                'verbose_name_plural': 'Guides',
                'db_table': 'guides',
                'ordering': ['slug'],
            },
        ),
        migrations.CreateModel(
            name='Edition',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, help_text='Unique identifier (UUID)', primary_key=True, serialize=False, verbose_name='ID')),
                ('created_at', models.DateTimeField(db_index=True, default=django.utils.timezone.now, editable=False, help_text='Timestamp when record was created', verbose_name='Created At')),
                ('updated_at', models.DateTimeField(auto_now=True, help_text='Timestamp when record was last updated', verbose_name='Updated At')),
                ('version', models.PositiveIntegerField(default=1, verbose_name='Version')),
                ('state', models.CharField(choices=[('draft', 'Draft'), ('review_requested', 'Review requested'), ('ready', 'Ready'), ('published', 'Published'), ('unpublished', 'Unpublished')], db_index=True, default='draft', max_length=20, verbose_name='State')),
                ('update_type', models.CharField(choices=[('major', 'Major'), ('minor', 'Minor')], default='major', max_length=10, verbose_name='Update type')),
                ('phase', models.CharField(choices=[('discovery', 'Discovery'), ('alpha', 'Alpha'), ('beta', 'Beta'), ('live', 'Live')], default='beta', max_length=20, verbose_name='Phase')),
                ('title', models.CharField(blank=True, max_length=255, verbose_name='Title')),
                ('description', models.TextField(blank=True, verbose_name='Description')),
                ('body', models.TextField(blank=True, help_text='Markdown body of the guide', verbose_name='Body')),
                ('related_discussion_title', models.CharField(blank=True, max_length=255, verbose_name='Related discussion title')),
                ('related_discussion_href', models.URLField(blank=True, max_length=1000, verbose_name='Link to related discussion')),
                ('change_note', models.TextField(blank=True, default='', help_text='Public note describing the change since the last published edition', verbose_name='Change note')),
                ('change_summary', models.TextField(blank=True, default='', help_text='Reason for change, shown in the change history', verbose_name='Change summary')),
                ('author', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='authored_editions', to=settings.AUTH_USER_MODEL, verbose_name='Author')),
                ('content_owner', models.ForeignKey(blank=True, help_text='Community accountable for this edition', limit_choices_to={'kind': 'guide_community'}, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='owned_editions', to='guides.guide', verbose_name='Content owner')),
                ('guide', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='editions', to='guides.guide', verbose_name='Guide')),
            ],
            options={
                'verbose_name': 'Edition',
                'verbose_name_plural': 'Editions',
                'db_table': 'editions',
                'ordering': ['-created_at'],
            },
        ),
        migrations.AddConstraint(
            model_name='edition',
            constraint=models.UniqueConstraint(fields=('guide', 'version'), name='editions_unique_guide_version'),
        ),
        migrations.AddIndex(
            model_name='edition',
            index=models.Index(fields=['guide', 'created_at'], name='editions_guide_created_idx'),
        ),
    ]
