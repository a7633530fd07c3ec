# ============================================
# tracker/models/project.py
# ============================================
from django.conf import settings
from django.core.validators import MinLengthValidator, RegexValidator
from django.db import models, transaction
from django.db.models import F


PROJECT_KEY_PATTERN = r'^[A-Z0-9]{2,10}$'


class ProjectQuerySet(models.QuerySet):

    def accessible_to(self, user):
        """Projects the user leads or belongs to"""
        return self.filter(
            models.Q(lead_id=user.pk) | models.Q(members__id=user.pk)
        ).distinct()

    def allocate_issue_key(self, project_id: int) -> str:
        """
        Bump the project's issue counter and return a key built from the
        value it held before the bump.

        The UPDATE takes the row lock and the read happens in the same
        transaction, so no two callers can observe the same value.
        """
        with transaction.atomic():
            updated = self.filter(pk=project_id).update(
                next_issue_seq=F('next_issue_seq') + 1
            )
            if not updated:
                raise self.model.DoesNotExist("Project not found for issue key generation")

            row = self.filter(pk=project_id).values('key', 'next_issue_seq').get()

        return f"{row['key']}-{row['next_issue_seq'] - 1}"


class Project(models.Model):
    key = models.CharField(
        max_length=10,
        unique=True,
        validators=[RegexValidator(PROJECT_KEY_PATTERN, 'Key must be 2-10 chars (A-Z, 0-9).')]
    )
    name = models.CharField(max_length=140, validators=[MinLengthValidator(3)])
    description = models.TextField(blank=True, default='', max_length=2000)
    lead = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name='led_projects'
    )
    members = models.ManyToManyField(
        settings.AUTH_USER_MODEL,
        related_name='projects',
        blank=True
    )
    next_issue_seq = models.PositiveIntegerField(default=1)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = ProjectQuerySet.as_manager()

    class Meta:
        db_table = 'projects'
        ordering = ['-created_at', '-id']

    def __str__(self):
        return f"{self.key} - {self.name}"
