# ============================================
# tracker/selectors/comment.py
# ============================================
from typing import List, Optional
from tracker.models import Comment


class CommentSelector:

    @staticmethod
    def get_comment_by_id(comment_id: int) -> Optional[Comment]:
        """Get single comment together with its issue and project"""
        try:
            return Comment.objects.select_related('issue__project').get(id=comment_id)
        except Comment.DoesNotExist:
            return None

    @staticmethod
    def list_top_level(issue_id: int, *, skip: int, limit: int) -> List[Comment]:
        """Thread starters of an issue, oldest first, id as tiebreaker"""
        queryset = Comment.objects.top_level(issue_id).in_thread_order()
        return list(queryset[skip:skip + limit])

    @staticmethod
    def list_replies(parent: Comment, *, skip: int, limit: int) -> List[Comment]:
        """Direct children only, not the whole subtree"""
        queryset = Comment.objects.replies_to(parent).in_thread_order()
        return list(queryset[skip:skip + limit])

    @staticmethod
    def count_visible(issue_id: int) -> int:
        return Comment.objects.visible().filter(issue_id=issue_id).count()
