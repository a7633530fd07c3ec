# ============================================
# tracker/serializers/issue.py
# ============================================
from rest_framework import serializers
from tracker.models import Issue, StatusTransition


class AttachmentSerializer(serializers.Serializer):
    fileId = serializers.CharField(max_length=512)
    filename = serializers.CharField(max_length=255)
    size = serializers.IntegerField(min_value=0)
    contentType = serializers.CharField(required=False, allow_blank=True, default='')


class IssueCreateSerializer(serializers.Serializer):
    title = serializers.CharField(max_length=200)
    description = serializers.CharField(required=False, allow_blank=True)
    type = serializers.ChoiceField(choices=Issue.IssueType.choices, default=Issue.IssueType.BUG)
    priority = serializers.ChoiceField(choices=Issue.Priority.choices, default=Issue.Priority.MEDIUM)
    severity = serializers.ChoiceField(choices=Issue.Severity.choices, default=Issue.Severity.MAJOR)
    assignee_id = serializers.IntegerField(min_value=1, required=False, allow_null=True)
    labels = serializers.ListField(child=serializers.CharField(max_length=50), required=False)
    watchers = serializers.ListField(child=serializers.IntegerField(min_value=1), required=False)
    attachments = AttachmentSerializer(many=True, required=False)


class IssueUpdateSerializer(serializers.Serializer):
    title = serializers.CharField(max_length=200, required=False)
    description = serializers.CharField(required=False, allow_blank=True)
    type = serializers.ChoiceField(choices=Issue.IssueType.choices, required=False)
    priority = serializers.ChoiceField(choices=Issue.Priority.choices, required=False)
    severity = serializers.ChoiceField(choices=Issue.Severity.choices, required=False)
    assignee_id = serializers.IntegerField(min_value=1, required=False, allow_null=True)
    labels = serializers.ListField(child=serializers.CharField(max_length=50), required=False)
    watchers = serializers.ListField(child=serializers.IntegerField(min_value=1), required=False)
    attachments = AttachmentSerializer(many=True, required=False)


class IssueTransitionSerializer(serializers.Serializer):
    to = serializers.ChoiceField(choices=Issue.Status.choices)


class IssueListQuerySerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=Issue.Status.choices, required=False)
    priority = serializers.ChoiceField(choices=Issue.Priority.choices, required=False)
    assignee_id = serializers.IntegerField(min_value=1, required=False)
    q = serializers.CharField(required=False, allow_blank=True)


class StatusTransitionOutputSerializer(serializers.ModelSerializer):
    changed_by_id = serializers.IntegerField(read_only=True)

    class Meta:
        model = StatusTransition
        fields = ['from_status', 'to_status', 'changed_by_id', 'changed_at']


class IssueOutputSerializer(serializers.ModelSerializer):
    project_id = serializers.IntegerField(read_only=True)
    reporter_id = serializers.IntegerField(read_only=True)
    assignee_id = serializers.IntegerField(read_only=True, allow_null=True)
    watchers = serializers.SerializerMethodField()
    status_history = StatusTransitionOutputSerializer(many=True, read_only=True)

    class Meta:
        model = Issue
        fields = [
            'id', 'key', 'project_id', 'title', 'description', 'type',
            'status', 'priority', 'severity', 'reporter_id', 'assignee_id',
            'labels', 'watchers', 'attachments', 'status_history',
            'comment_count', 'closed_at', 'created_at', 'updated_at'
        ]

    def get_watchers(self, obj):
        return sorted(w.pk for w in obj.watchers.all())


class IssueListOutputSerializer(serializers.ModelSerializer):
    """Lighter serializer for list views"""
    reporter_id = serializers.IntegerField(read_only=True)
    assignee_id = serializers.IntegerField(read_only=True, allow_null=True)

    class Meta:
        model = Issue
        fields = [
            'id', 'key', 'title', 'type', 'status', 'priority', 'severity',
            'reporter_id', 'assignee_id', 'labels', 'comment_count', 'created_at'
        ]
