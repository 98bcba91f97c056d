"""
Topic serializers.
"""

from rest_framework import serializers
from .models import Topic, TopicSection


class TopicSectionSerializer(serializers.ModelSerializer):
    guide_ids = serializers.SerializerMethodField()

    class Meta:
        model = TopicSection
        fields = ['id', 'title', 'description', 'position', 'guide_ids']

    def get_guide_ids(self, obj):
        return [guide.pk for guide in obj.ordered_guides]


class TopicSerializer(serializers.ModelSerializer):
    sections = TopicSectionSerializer(source='ordered_sections', many=True, read_only=True)

    class Meta:
        model = Topic
        fields = ['id', 'content_id', 'path', 'title', 'description', 'sections', 'updated_at']
