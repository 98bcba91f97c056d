"""
Admin interface for guides and editions.

Editions are read-only here: edits go through GuideForm and state changes
through the workflow, so the publishing API stays in step.
"""

from django.contrib import admin
from .models import Edition, Guide


class EditionInline(admin.TabularInline):
    model = Edition
    fk_name = 'guide'
    extra = 0
    can_delete = False
    show_change_link = True
    fields = ['version', 'state', 'update_type', 'title', 'author', 'created_at']
    readonly_fields = fields
    ordering = ['-created_at', '-version']

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(Guide)
class GuideAdmin(admin.ModelAdmin):
    """
    Admin interface for Guide model.
    """

    list_display = [
        'slug',
        'title',
        'kind',
        'latest_state',
        'content_id',
        'updated_at',
    ]

    list_filter = ['kind']

    search_fields = ['slug', 'editions__title']

    readonly_fields = ['id', 'content_id', 'created_at', 'updated_at']

    inlines = [EditionInline]

    @admin.display(description='State')
    def latest_state(self, obj):
        latest = obj.latest_edition
        return latest.state if latest else '-'


@admin.register(Edition)
class EditionAdmin(admin.ModelAdmin):
    """
    Admin interface for Edition model.
    """

    list_display = [
        'guide',
        'version',
        'state',
        'update_type',
        'title',
        'author',
        'created_at',
    ]

    list_filter = ['state', 'update_type', 'phase']

    search_fields = ['title', 'guide__slug', 'change_note']

    raw_id_fields = ['guide', 'content_owner', 'author']

    readonly_fields = ['id', 'guide', 'version', 'state', 'created_at', 'updated_at']

    fieldsets = (
        ('Edition', {
            'fields': ('id', 'guide', 'version', 'state', 'update_type', 'phase'),
        }),
        ('Content', {
            'fields': ('title', 'description', 'body', 'related_discussion_title', 'related_discussion_href'),
        }),
        ('Ownership', {
            'fields': ('author', 'content_owner'),
        }),
        ('Change history', {
            'fields': ('change_note', 'change_summary'),
        }),
        ('Timestamps', {
            'fields': ('created_at', 'updated_at'),
            'classes': ('collapse',),
        }),
    )

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
