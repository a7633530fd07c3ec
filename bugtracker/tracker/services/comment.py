# ============================================
# tracker/services/comment.py
# ============================================
import logging
from typing import List, Optional

from django.core.exceptions import ValidationError
from django.db import DatabaseError, transaction
from django.utils import timezone

from tracker import access
from tracker.models import Comment, Issue
from tracker.selectors.comment import CommentSelector
from tracker.selectors.project import ProjectSelector
from tracker.services.issue import IssueService
from tracker.services.project import ProjectService
from tracker.utils.validation import require_text, to_id

logger = logging.getLogger(__name__)

MAX_BODY_LENGTH = 5000


class CommentService:

    @staticmethod
    def _clean_body(body) -> str:
        if body is None:
            raise ValidationError("body is required.")
        body = require_text(body, "body cannot be empty.")
        if len(body) > MAX_BODY_LENGTH:
            raise ValidationError(f"body must be at most {MAX_BODY_LENGTH} characters.")
        return body

    @staticmethod
    def _check_moderation(actor, comment: Comment, message: str) -> None:
        """Project access first, then author/lead/admin"""
        project = comment.issue.project
        ProjectService.check_member_or_admin(actor, project)
        scope = ProjectSelector.get_scope(project)
        access.ensure(access.can_edit_or_moderate_comment(actor, scope, comment), message)

    @staticmethod
    def create_comment(
        *,
        actor,
        issue: Issue,
        body: str,
        parent_id=None
    ) -> Comment:
        """Create a top-level comment or a reply; bumps the issue counter afterwards"""

        ProjectService.check_member_or_admin(actor, issue.project)

        body = CommentService._clean_body(body)

        ancestors: List[int] = []
        parent: Optional[Comment] = None

        if parent_id is not None:
            parent_id = to_id(parent_id, "parentId")
            parent = CommentSelector.get_comment_by_id(parent_id)
            if parent is None:
                raise Comment.DoesNotExist("Parent comment not found.")
            if parent.issue_id != issue.pk:
                raise ValidationError("Parent belongs to a different issue.")
            ancestors = [*(parent.ancestors or []), parent.pk]

        comment = Comment.objects.create(
            issue=issue,
            author=actor,
            body=body,
            parent=parent,
            ancestors=ancestors
        )

        # comment is already written; counter drift is repaired by recount_comments
        try:
            IssueService.adjust_comment_count(issue.pk, 1)
        except DatabaseError:
            logger.exception(
                "[comment] comment_count increment failed issue=%s comment=%s",
                issue.pk, comment.pk
            )

        return comment

    @staticmethod
    def list_comments(*, actor, issue: Issue, skip: int, limit: int) -> List[Comment]:
        ProjectService.check_member_or_admin(actor, issue.project)
        return CommentSelector.list_top_level(issue.pk, skip=skip, limit=limit)

    @staticmethod
    def list_replies(*, actor, parent: Comment, skip: int, limit: int) -> List[Comment]:
        ProjectService.check_member_or_admin(actor, parent.issue.project)
        return CommentSelector.list_replies(parent, skip=skip, limit=limit)

    @staticmethod
    def update_comment(
        *,
        actor,
        comment: Comment,
        body: str
    ) -> Comment:
        """Replace the body and flag the comment as edited"""

        CommentService._check_moderation(actor, comment, "Not allowed to edit this comment.")

        body = CommentService._clean_body(body)

        # tombstones keep an empty body
        updated = Comment.objects.filter(pk=comment.pk, deleted=False).update(
            body=body,
            edited=True,
            updated_at=timezone.now()
        )
        if not updated:
            raise ValidationError("Cannot edit a deleted comment.")

        comment.refresh_from_db()
        return comment

    @staticmethod
    def delete_comment(*, actor, comment: Comment) -> bool:
        """
        Soft delete: the row keeps its place in the thread with an empty body.

        Idempotent. Only the call that flips ``deleted`` decrements the
        issue counter; returns whether this call did so.
        """

        CommentService._check_moderation(actor, comment, "Not allowed to delete this comment.")

        with transaction.atomic():
            flipped = Comment.objects.filter(pk=comment.pk, deleted=False).update(
                deleted=True,
                body='',
                updated_at=timezone.now()
            )
            if flipped:
                IssueService.adjust_comment_count(comment.issue_id, -1)

        comment.refresh_from_db()

        if flipped:
            logger.info(
                "[comment] soft-deleted comment=%s issue=%s by=%s",
                comment.pk, comment.issue_id, actor.pk
            )
        return bool(flipped)
