"""
Guide and edition serializers.

Output serializers are ModelSerializers; GuideWriteSerializer only shapes
the request body, validation of the content itself happens in GuideForm.
"""

from rest_framework import serializers
from .models import Edition, Guide


class EditionSerializer(serializers.ModelSerializer):
    """Full edition, as listed under a guide."""

    author_name = serializers.SerializerMethodField()
    content_owner_slug = serializers.CharField(source='content_owner.slug', read_only=True, default=None)

    class Meta:
        model = Edition
        fields = [
            'id',
            'version',
            'state',
            'update_type',
            'phase',
            'title',
            'description',
            'body',
            'related_discussion_title',
            'related_discussion_href',
            'change_note',
            'change_summary',
            'author',
            'author_name',
            'content_owner',
            'content_owner_slug',
            'created_at',
            'updated_at',
        ]
        read_only_fields = fields

    def get_author_name(self, obj):
        if obj.author is None:
            return None
        return obj.author.get_full_name() or obj.author.get_username()


class GuideListSerializer(serializers.ModelSerializer):
    """Compact serializer for guide lists."""

    title = serializers.CharField(read_only=True)
    state = serializers.SerializerMethodField()
    version = serializers.SerializerMethodField()

    class Meta:
        model = Guide
        fields = [
            'id',
            'content_id',
            'slug',
            'kind',
            'title',
            'state',
            'version',
            'updated_at',
        ]

    def get_state(self, obj):
        latest = obj.latest_edition
        return latest.state if latest else None

    def get_version(self, obj):
        latest = obj.latest_edition
        return latest.version if latest else None


class GuideDetailSerializer(serializers.ModelSerializer):
    """Guide with its latest edition and topic placement."""

    latest_edition = EditionSerializer(read_only=True)
    topic_section_id = serializers.SerializerMethodField()
    topic_id = serializers.SerializerMethodField()
    has_published_edition = serializers.SerializerMethodField()
    can_be_unpublished = serializers.SerializerMethodField()

    class Meta:
        model = Guide
        fields = [
            'id',
            'content_id',
            'slug',
            'kind',
            'latest_edition',
            'topic_section_id',
            'topic_id',
            'has_published_edition',
            'can_be_unpublished',
            'created_at',
            'updated_at',
        ]

    def get_topic_section_id(self, obj):
        section = obj.topic_section
        return section.pk if section else None

    def get_topic_id(self, obj):
        topic = obj.topic
        return topic.pk if topic else None

    def get_has_published_edition(self, obj):
        return obj.has_published_edition()

    def get_can_be_unpublished(self, obj):
        return obj.can_be_unpublished()


class GuideWriteSerializer(serializers.Serializer):
    """
    Request body for creating or editing a guide.

    Every field is optional; omitted fields keep their current values.
    """

    slug = serializers.CharField(required=False, allow_blank=True)
    type = serializers.ChoiceField(choices=Guide.KIND_CHOICES, required=False)
    topic_section_id = serializers.UUIDField(required=False, allow_null=True)

    title = serializers.CharField(required=False, allow_blank=True)
    description = serializers.CharField(required=False, allow_blank=True)
    body = serializers.CharField(required=False, allow_blank=True)
    phase = serializers.CharField(required=False)
    related_discussion_title = serializers.CharField(required=False, allow_blank=True)
    related_discussion_href = serializers.CharField(required=False, allow_blank=True)
    update_type = serializers.CharField(required=False)
    change_note = serializers.CharField(required=False, allow_blank=True)
    change_summary = serializers.CharField(required=False, allow_blank=True)
    content_owner_id = serializers.UUIDField(required=False, allow_null=True)
