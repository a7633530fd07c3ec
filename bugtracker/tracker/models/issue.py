# ============================================
# tracker/models/issue.py
# ============================================
from django.conf import settings
from django.db import models, transaction

from .project import Project


class Issue(models.Model):
    class IssueType(models.TextChoices):
        BUG = 'bug', 'Bug'
        TASK = 'task', 'Task'
        STORY = 'story', 'Story'

    class Status(models.TextChoices):
        OPEN = 'open', 'Open'
        IN_PROGRESS = 'in_progress', 'In progress'
        BLOCKED = 'blocked', 'Blocked'
        RESOLVED = 'resolved', 'Resolved'
        CLOSED = 'closed', 'Closed'

    class Priority(models.TextChoices):
        LOW = 'low', 'Low'
        MEDIUM = 'medium', 'Medium'
        HIGH = 'high', 'High'
        CRITICAL = 'critical', 'Critical'

    class Severity(models.TextChoices):
        MINOR = 'minor', 'Minor'
        MAJOR = 'major', 'Major'
        CRITICAL = 'critical', 'Critical'

    project = models.ForeignKey(
        'Project',
        on_delete=models.CASCADE,
        related_name='issues'
    )
    key = models.CharField(max_length=24, unique=True)
    title = models.CharField(max_length=200)
    description = models.TextField(blank=True, default='')
    type = models.CharField(
        max_length=10,
        choices=IssueType.choices,
        default=IssueType.BUG,
        db_index=True
    )
    status = models.CharField(
        max_length=16,
        choices=Status.choices,
        default=Status.OPEN,
        db_index=True
    )
    priority = models.CharField(
        max_length=10,
        choices=Priority.choices,
        default=Priority.MEDIUM,
        db_index=True
    )
    severity = models.CharField(
        max_length=10,
        choices=Severity.choices,
        default=Severity.MAJOR
    )
    reporter = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name='reported_issues'
    )
    assignee = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='assigned_issues'
    )
    labels = models.JSONField(default=list, blank=True)
    watchers = models.ManyToManyField(
        settings.AUTH_USER_MODEL,
        related_name='watched_issues',
        blank=True
    )
    # [{"fileId": ..., "filename": ..., "size": ..., "contentType": ...}]
    attachments = models.JSONField(default=list, blank=True)
    comment_count = models.IntegerField(default=0)
    closed_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'issues'
        ordering = ['-created_at', '-id']
        indexes = [
            models.Index(fields=['project', 'status', 'priority'], name='issue_proj_status_prio_idx'),
            models.Index(fields=['assignee', 'status'], name='issue_assignee_status_idx'),
        ]

    def __str__(self):
        return f"{self.key} - {self.title}"

    def save(self, *args, **kwargs):
        """
        Assign the human key on first save.

        A key supplied up front (bulk import) is kept as is. Otherwise the
        project's counter is bumped and the issue row is written in the same
        transaction, so a failed insert does not burn a sequence number.
        """
        if self.key:
            return super().save(*args, **kwargs)

        try:
            with transaction.atomic():
                self.key = Project.objects.allocate_issue_key(self.project_id)
                super().save(*args, **kwargs)
        except Exception:
            self.key = ''
            raise
