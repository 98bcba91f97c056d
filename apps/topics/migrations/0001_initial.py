# Initial schema for topics, sections and section membership

from django.db import migrations, models
import django.db.models.deletion
import django.utils.timezone
import uuid


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('guides', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='Topic',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, help_text='Unique identifier (UUID)', primary_key=True, serialize=False, verbose_name='ID')),
                ('created_at', models.DateTimeField(db_index=True, default=django.utils.timezone.now, editable=False, help_text='Timestamp when record was created', verbose_name='Created At')),
                ('updated_at', models.DateTimeField(auto_now=True, help_text='Timestamp when record was last updated', verbose_name='Updated At')),
                ('content_id', models.UUIDField(default=uuid.uuid4, editable=False, help_text='Stable identifier in the publishing API', unique=True, verbose_name='Content ID')),
                ('path', models.CharField(help_text='Base path, e.g. /service-manual/agile-delivery', max_length=255, unique=True, verbose_name='Path')),
                ('title', models.CharField(max_length=255, verbose_name='Title')),
                ('description', models.TextField(blank=True, verbose_name='Description')),
            ],
            options={
                'verbose_name': 'Topic',
                'verbose_name_plural': 'Topics',
                'db_table': 'topics',
                'ordering': ['path'],
            },
        ),
        migrations.CreateModel(
            name='TopicSection',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, help_text='Unique identifier (UUID)', primary_key=True, serialize=False, verbose_name='ID')),
                ('created_at', models.DateTimeField(db_index=True, default=django.utils.timezone.now, editable=False, help_text='Timestamp when record was created', verbose_name='Created At')),
                ('updated_at', models.DateTimeField(auto_now=True, help_text='Timestamp when record was last updated', verbose_name='Updated At')),
                ('title', models.CharField(blank=True, max_length=255, verbose_name='Title')),
                ('description', models.TextField(blank=True, verbose_name='Description')),
                ('position', models.PositiveIntegerField(default=0, help_text='Order of the section within its topic', verbose_name='Position')),
                ('topic', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='topic_sections', to='topics.topic', verbose_name='Topic')),
            ],
            options={
                'verbose_name': 'Topic Section',
                'verbose_name_plural': 'Topic Sections',
                'db_table': 'topic_sections',
                'ordering': ['position', 'created_at'],
            },
        ),
        migrations.CreateModel(
            name='TopicSectionGuide',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, help_text='Unique identifier (UUID)', primary_key=True, serialize=False, verbose_name='ID')),
                ('created_at', models.DateTimeField(db_index=True, default=django.utils.timezone.now, editable=False, help_text='Timestamp when record was created', verbose_name='Created At')),
                ('updated_at', models.DateTimeField(auto_now=True, help_text='Timestamp when record was last updated', verbose_name='Updated At')),
                ('position', models.PositiveIntegerField(default=0)),
                ('guide', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='topic_section_guides', to='guides.guide')),
                ('topic_section', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='topic_section_guides', to='topics.topicsection')),
            ],
            options={
                'db_table': 'topic_section_guides',
                'ordering': ['position', 'created_at'],
            },
        ),
        migrations.AddField(
            model_name='topicsection',
            name='guides',
            field=models.ManyToManyField(blank=True, related_name='topic_sections', through='topics.TopicSectionGuide', to='guides.guide'),
        ),
        migrations.AddConstraint(
            model_name='topicsectionguide',
            constraint=models.UniqueConstraint(fields=('guide',), name='topic_section_guides_one_per_guide'),
        ),
    ]
