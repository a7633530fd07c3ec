# ============================================
# tracker/serializers/comment.py
# ============================================
from rest_framework import serializers
from tracker.models import Comment


class CommentCreateSerializer(serializers.Serializer):
    body = serializers.CharField(max_length=5000)
    parent_id = serializers.IntegerField(min_value=1, required=False, allow_null=True)


class CommentUpdateSerializer(serializers.Serializer):
    body = serializers.CharField(max_length=5000)


class CommentOutputSerializer(serializers.ModelSerializer):
    issue_id = serializers.IntegerField(read_only=True)
    author_id = serializers.IntegerField(read_only=True)
    parent_id = serializers.IntegerField(read_only=True, allow_null=True)

    class Meta:
        model = Comment
        fields = [
            'id', 'issue_id', 'author_id', 'body', 'parent_id', 'ancestors',
            'depth', 'edited', 'deleted', 'created_at', 'updated_at'
        ]
