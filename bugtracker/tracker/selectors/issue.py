# ============================================
# tracker/selectors/issue.py
# ============================================
from typing import Optional
from django.db.models import QuerySet, Q
from tracker.models import Issue


class IssueSelector:

    @staticmethod
    def get_issue_by_id(issue_id: int) -> Optional[Issue]:
        """Get single issue with its project"""
        try:
            return Issue.objects.select_related(
                'project', 'reporter', 'assignee'
            ).get(id=issue_id)
        except Issue.DoesNotExist:
            return None

    @staticmethod
    def get_issue_by_key(key: str) -> Optional[Issue]:
        try:
            return Issue.objects.select_related('project').get(key=key)
        except Issue.DoesNotExist:
            return None

    @staticmethod
    def get_issues_list(
        project_id: int,
        status: str = None,
        priority: str = None,
        assignee_id: int = None,
        search: str = None
    ) -> QuerySet:
        """Issues of one project, filtered, newest first"""
        queryset = Issue.objects.select_related(
            'reporter', 'assignee'
        ).prefetch_related('watchers').filter(project_id=project_id)

        if status:
            queryset = queryset.filter(status=status)

        if priority:
            queryset = queryset.filter(priority=priority)

        if assignee_id:
            queryset = queryset.filter(assignee_id=assignee_id)

        if search:
            queryset = queryset.filter(
                Q(title__icontains=search) |
                Q(description__icontains=search) |
                Q(key__icontains=search)
            )

        return queryset.order_by('-created_at', '-id')

    @staticmethod
    def get_status_history(issue: Issue) -> QuerySet:
        return issue.status_history.select_related('changed_by').order_by('changed_at', 'id')
