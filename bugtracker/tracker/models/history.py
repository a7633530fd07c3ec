# ============================================
# tracker/models/history.py
# ============================================
from django.conf import settings
from django.db import models
from django.utils import timezone

from .issue import Issue


class StatusTransition(models.Model):
    """Append-only audit entry for an issue status change"""

    issue = models.ForeignKey(
        'Issue',
        on_delete=models.CASCADE,
        related_name='status_history'
    )
    from_status = models.CharField(max_length=16, choices=Issue.Status.choices)
    to_status = models.CharField(max_length=16, choices=Issue.Status.choices)
    changed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name='status_transitions'
    )
    changed_at = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = 'issue_status_history'
        ordering = ['changed_at', 'id']
        indexes = [
            models.Index(fields=['issue', 'changed_at'], name='status_hist_issue_at_idx'),
        ]

    def __str__(self):
        return f"{self.issue_id}: {self.from_status} -> {self.to_status}"

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ValueError("Status history entries are immutable")
        super().save(*args, **kwargs)
