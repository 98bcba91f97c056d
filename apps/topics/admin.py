"""
Admin interface for topics and their sections.
"""

from django.contrib import admin
from .models import Topic, TopicSection, TopicSectionGuide


class TopicSectionInline(admin.StackedInline):
    model = TopicSection
    extra = 0
    fields = ['title', 'description', 'position']


class TopicSectionGuideInline(admin.TabularInline):
    model = TopicSectionGuide
    extra = 0
    raw_id_fields = ['guide']
    fields = ['guide', 'position']


@admin.register(Topic)
class TopicAdmin(admin.ModelAdmin):
    list_display = ['path', 'title', 'content_id', 'updated_at']
    search_fields = ['path', 'title']
    readonly_fields = ['id', 'content_id', 'created_at', 'updated_at']
    inlines = [TopicSectionInline]


@admin.register(TopicSection)
class TopicSectionAdmin(admin.ModelAdmin):
    list_display = ['title', 'topic', 'position']
    list_filter = ['topic']
    inlines = [TopicSectionGuideInline]
