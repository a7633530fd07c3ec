# ============================================
# tracker/serializers/project.py
# ============================================
from rest_framework import serializers
from tracker.models import Project


class ProjectCreateSerializer(serializers.Serializer):
    key = serializers.CharField(max_length=10)
    name = serializers.CharField(max_length=140)
    description = serializers.CharField(required=False, allow_blank=True, max_length=2000)
    lead_id = serializers.IntegerField(min_value=1)
    member_ids = serializers.ListField(
        child=serializers.IntegerField(min_value=1),
        required=False,
        default=list
    )


class ProjectUpdateSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=140, required=False)
    description = serializers.CharField(required=False, allow_blank=True, max_length=2000)
    lead_id = serializers.IntegerField(min_value=1, required=False)


class ProjectMembersSerializer(serializers.Serializer):
    add = serializers.ListField(
        child=serializers.IntegerField(min_value=1),
        required=False,
        default=list
    )
    remove = serializers.ListField(
        child=serializers.IntegerField(min_value=1),
        required=False,
        default=list
    )


class ProjectOutputSerializer(serializers.ModelSerializer):
    lead_id = serializers.IntegerField(read_only=True)
    member_ids = serializers.SerializerMethodField()

    class Meta:
        model = Project
        fields = [
            'id', 'key', 'name', 'description',
            'lead_id', 'member_ids', 'next_issue_seq',
            'created_at', 'updated_at'
        ]

    def get_member_ids(self, obj):
        return sorted(m.pk for m in obj.members.all())
