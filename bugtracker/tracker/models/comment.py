# ============================================
# tracker/models/comment.py
# ============================================
from django.conf import settings
from django.db import models


class CommentQuerySet(models.QuerySet):

    def visible(self):
        """Every read path goes through here so tombstones never leak into listings"""
        return self.filter(deleted=False)

    def top_level(self, issue_id: int):
        return self.visible().filter(issue_id=issue_id, parent__isnull=True)

    def replies_to(self, parent):
        return self.visible().filter(issue_id=parent.issue_id, parent_id=parent.pk)

    def in_thread_order(self):
        return self.order_by('created_at', 'id')


class Comment(models.Model):
    issue = models.ForeignKey(
        'Issue',
        on_delete=models.CASCADE,
        related_name='comments'
    )
    author = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name='comments'
    )
    body = models.TextField(blank=True, max_length=5000)
    parent = models.ForeignKey(
        'self',
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name='replies'
    )
    # ids from thread root down to the immediate parent
    ancestors = models.JSONField(default=list, blank=True)
    edited = models.BooleanField(default=False)
    deleted = models.BooleanField(default=False, db_index=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = CommentQuerySet.as_manager()

    class Meta:
        db_table = 'comments'
        ordering = ['created_at', 'id']
        indexes = [
            models.Index(fields=['issue', 'parent', 'created_at'], name='comment_issue_parent_idx'),
        ]

    def __str__(self):
        return f"Comment {self.pk} on issue {self.issue_id}"

    @property
    def depth(self) -> int:
        return len(self.ancestors or [])
