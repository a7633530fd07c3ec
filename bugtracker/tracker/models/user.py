# ============================================
# tracker/models/user.py
# ============================================
from django.contrib.auth.models import AbstractUser
from django.db import models


class Role(models.TextChoices):
    ADMIN = 'admin', 'Admin'
    MANAGER = 'manager', 'Manager'
    DEVELOPER = 'developer', 'Developer'


class User(AbstractUser):
    """Account with a single global role; registration and login live outside this app."""

    role = models.CharField(
        max_length=16,
        choices=Role.choices,
        default=Role.DEVELOPER,
        db_index=True
    )

    class Meta:
        db_table = 'users'

    def __str__(self):
        return f"{self.username} ({self.role})"

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN
