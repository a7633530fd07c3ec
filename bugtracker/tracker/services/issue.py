# ============================================
# tracker/services/issue.py
# ============================================
import logging
from typing import Dict, Iterable, List, Optional

from django.core.exceptions import ValidationError
from django.db import IntegrityError, transaction
from django.db.models import F, QuerySet
from django.utils import timezone

from tracker.exceptions import Conflict
from tracker.models import Issue, Project, StatusTransition
from tracker.selectors.comment import CommentSelector
from tracker.selectors.issue import IssueSelector
from tracker.selectors.project import ProjectSelector
from tracker.selectors.user import all_users_exist
from tracker.services.project import ProjectService
from tracker.utils.validation import require_text, to_id, unique_ids

logger = logging.getLogger(__name__)

ATTACHMENT_FIELDS = ('fileId', 'filename', 'size', 'contentType')


class IssueService:

    @staticmethod
    def _choice(value, choices, field_name: str) -> str:
        if value not in choices.values:
            raise ValidationError(f"Invalid {field_name}: {value}")
        return value

    @staticmethod
    def _check_assignee(project: Project, assignee_id) -> Optional[int]:
        """Assignee must exist and belong to the project (lead counts)"""
        if assignee_id in (None, ''):
            return None
        assignee_id = to_id(assignee_id, "assigneeId")
        scope = ProjectSelector.get_scope(project)
        if assignee_id != scope.lead_id and assignee_id not in scope.member_ids:
            if not all_users_exist([assignee_id]):
                raise ValidationError("Assignee does not exist.")
            raise ValidationError("Assignee is not a member of this project.")
        return assignee_id

    @staticmethod
    def _check_watchers(watcher_ids: Iterable) -> List[int]:
        watcher_ids = unique_ids(watcher_ids, "watcher id")
        if not all_users_exist(watcher_ids):
            raise ValidationError("One or more watcher ids do not exist.")
        return watcher_ids

    @staticmethod
    def _clean_labels(labels: Iterable) -> List[str]:
        cleaned = []
        for label in labels or []:
            label = str(label).strip()
            if label and label not in cleaned:
                cleaned.append(label)
        return cleaned

    @staticmethod
    def _clean_attachments(attachments: Iterable[Dict]) -> List[Dict]:
        """Metadata only; the files themselves live in external storage"""
        cleaned = []
        for item in attachments or []:
            if not isinstance(item, dict):
                raise ValidationError("Attachment must be an object.")
            file_id = str(item.get('fileId') or '').strip()
            filename = str(item.get('filename') or '').strip()
            size = item.get('size')
            if not file_id or not filename:
                raise ValidationError("Attachment fileId and filename are required.")
            if isinstance(size, bool) or not isinstance(size, int) or size < 0:
                raise ValidationError("Attachment size must be a non-negative integer.")
            cleaned.append({
                'fileId': file_id,
                'filename': filename,
                'size': size,
                'contentType': str(item.get('contentType') or ''),
            })
        return cleaned

    @staticmethod
    def create_issue(
        *,
        actor,
        project: Project,
        title: str,
        description: str = '',
        type: str = Issue.IssueType.BUG,
        priority: str = Issue.Priority.MEDIUM,
        severity: str = Issue.Severity.MAJOR,
        assignee_id=None,
        labels: Optional[Iterable[str]] = None,
        watchers: Optional[Iterable] = None,
        attachments: Optional[Iterable[Dict]] = None,
        key: Optional[str] = None
    ) -> Issue:
        """Create an issue; its key comes from the project's atomic counter unless supplied"""

        ProjectService.check_member_or_admin(actor, project)

        title = require_text(title, "title is required.")
        if len(title) > 200:
            raise ValidationError("title must be at most 200 characters.")

        issue = Issue(
            project_id=project.pk,
            key=(key or '').strip(),
            title=title,
            description=description or '',
            type=IssueService._choice(type, Issue.IssueType, 'type'),
            priority=IssueService._choice(priority, Issue.Priority, 'priority'),
            severity=IssueService._choice(severity, Issue.Severity, 'severity'),
            reporter_id=actor.pk,
            assignee_id=IssueService._check_assignee(project, assignee_id),
            labels=IssueService._clean_labels(labels),
            attachments=IssueService._clean_attachments(attachments),
        )
        watcher_ids = IssueService._check_watchers(watchers)

        try:
            with transaction.atomic():
                issue.save()
                if watcher_ids:
                    issue.watchers.set(watcher_ids)
        except Project.DoesNotExist:
            raise Project.DoesNotExist("Project not found.")
        except IntegrityError:
            raise Conflict("Issue key already exists.")

        logger.info("[issue] created key=%s project=%s by=%s", issue.key, project.key, actor.pk)
        return issue

    @staticmethod
    def get_issue(*, actor, issue: Issue) -> Issue:
        ProjectService.check_member_or_admin(actor, issue.project)
        return issue

    @staticmethod
    def list_issues(*, actor, project: Project, **filters) -> QuerySet:
        """Listing is always scoped to one project and gated on membership"""
        ProjectService.check_member_or_admin(actor, project)

        if filters.get('status'):
            IssueService._choice(filters['status'], Issue.Status, 'status')
        if filters.get('priority'):
            IssueService._choice(filters['priority'], Issue.Priority, 'priority')

        return IssueSelector.get_issues_list(project_id=project.pk, **filters)

    @staticmethod
    def update_issue(
        *,
        actor,
        issue: Issue,
        **data
    ) -> Issue:
        """
        Apply a partial update. Only supplied fields are touched; assignee,
        labels, watchers and attachments are replaced wholesale. Status is
        changed through ``transition_status`` only.
        """

        project = issue.project
        ProjectService.check_member_or_admin(actor, project)

        update_fields = []

        if 'title' in data:
            issue.title = require_text(data['title'], "title cannot be empty.")
            if len(issue.title) > 200:
                raise ValidationError("title must be at most 200 characters.")
            update_fields.append('title')

        if 'description' in data:
            issue.description = data['description'] or ''
            update_fields.append('description')

        for field, choices in (
            ('type', Issue.IssueType),
            ('priority', Issue.Priority),
            ('severity', Issue.Severity),
        ):
            if field in data:
                setattr(issue, field, IssueService._choice(data[field], choices, field))
                update_fields.append(field)

        if 'assignee_id' in data:
            issue.assignee_id = IssueService._check_assignee(project, data['assignee_id'])
            update_fields.append('assignee')

        if 'labels' in data:
            issue.labels = IssueService._clean_labels(data['labels'])
            update_fields.append('labels')

        if 'attachments' in data:
            issue.attachments = IssueService._clean_attachments(data['attachments'])
            update_fields.append('attachments')

        watcher_ids = None
        if 'watchers' in data:
            watcher_ids = IssueService._check_watchers(data['watchers'])

        with transaction.atomic():
            if update_fields:
                issue.save(update_fields=[*update_fields, 'updated_at'])
            if watcher_ids is not None:
                issue.watchers.set(watcher_ids)
                Issue.objects.filter(pk=issue.pk).update(updated_at=timezone.now())

        return issue

    @staticmethod
    def transition_status(*, actor, issue: Issue, to) -> Issue:
        """
        Move the issue to any status and append an audit entry.

        There is no adjacency graph: any state may follow any other. The
        issue row is locked so the recorded ``from`` is the value actually
        replaced.
        """

        ProjectService.check_member_or_admin(actor, issue.project)

        if not to:
            raise ValidationError("to is required.")
        to = IssueService._choice(to, Issue.Status, 'status')

        with transaction.atomic():
            locked = Issue.objects.select_for_update().get(pk=issue.pk)
            from_status = locked.status
            now = timezone.now()

            StatusTransition.objects.create(
                issue=locked,
                from_status=from_status,
                to_status=to,
                changed_by=actor,
                changed_at=now
            )

            if to == Issue.Status.CLOSED:
                closed_at = locked.closed_at if from_status == Issue.Status.CLOSED else now
            else:
                closed_at = None

            Issue.objects.filter(pk=issue.pk).update(
                status=to,
                closed_at=closed_at,
                updated_at=now
            )

        issue.refresh_from_db()

        logger.info(
            "[issue] transition key=%s %s->%s by=%s",
            issue.key, from_status, to, actor.pk
        )
        return issue

    @staticmethod
    def adjust_comment_count(issue_id: int, delta: int) -> int:
        """Atomic counter bump; a decrement never takes the cache below zero"""
        queryset = Issue.objects.filter(pk=issue_id)
        if delta < 0:
            queryset = queryset.filter(comment_count__gte=-delta)
        return queryset.update(comment_count=F('comment_count') + delta)

    @staticmethod
    def recount_comments(issue: Issue) -> int:
        """Rebuild the denormalized counter from the comments themselves"""
        count = CommentSelector.count_visible(issue.pk)
        Issue.objects.filter(pk=issue.pk).update(comment_count=count)
        if issue.comment_count != count:
            logger.info(
                "[issue] recount key=%s %s->%s",
                issue.key, issue.comment_count, count
            )
        issue.comment_count = count
        return count
