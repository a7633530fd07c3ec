# ============================================
# tracker/services/project.py
# ============================================
import logging
import re
from typing import Iterable, List, Optional

from django.core.exceptions import ValidationError
from django.db import IntegrityError, transaction
from django.db.models import QuerySet
from django.utils import timezone

from tracker import access
from tracker.exceptions import Conflict
from tracker.models import Project, Role
from tracker.models.project import PROJECT_KEY_PATTERN
from tracker.selectors.project import ProjectSelector
from tracker.selectors.user import all_users_exist
from tracker.utils.validation import require_text, to_id, unique_ids

logger = logging.getLogger(__name__)


class ProjectService:

    @staticmethod
    def _check_lead_or_admin(actor, project: Project) -> None:
        scope = ProjectSelector.get_scope(project)
        access.ensure(
            access.is_project_lead_or_admin(actor, scope),
            "Lead or admin role required."
        )

    @staticmethod
    def check_member_or_admin(actor, project: Project) -> None:
        """Gate shared by every read or write scoped to one project"""
        scope = ProjectSelector.get_scope(project)
        access.ensure(
            access.is_project_member_or_admin(actor, scope),
            "Project access denied."
        )

    @staticmethod
    def create_project(
        *,
        actor,
        key: str,
        name: str,
        lead_id,
        description: str = '',
        member_ids: Optional[Iterable] = None
    ) -> Project:
        """Create a new project; the lead is always folded into the members"""

        access.ensure(
            access.has_global_role(actor, [Role.ADMIN, Role.MANAGER]),
            "Insufficient permissions."
        )

        if not (key or '').strip() or not (name or '').strip() or lead_id in (None, ''):
            raise ValidationError("key, name, and lead_id are required.")

        key = key.strip().upper()
        if not re.match(PROJECT_KEY_PATTERN, key):
            raise ValidationError("key must be 2-10 chars (A-Z, 0-9).")

        lead_id = to_id(lead_id, "lead_id")
        user_ids = unique_ids([lead_id, *(member_ids or [])], "user id in members")

        if not all_users_exist(user_ids):
            raise ValidationError("One or more member ids do not exist.")

        if Project.objects.filter(key=key).exists():
            raise Conflict("Project key already exists.")

        project = Project(
            key=key,
            name=name.strip(),
            description=(description or '').strip(),
            lead_id=lead_id,
            next_issue_seq=1
        )
        project.full_clean(validate_unique=False)

        try:
            with transaction.atomic():
                project.save()
                project.members.set(user_ids)
        except IntegrityError:
            raise Conflict("Project key already exists.")

        logger.info(
            "[project] created key=%s lead=%s members=%s by=%s",
            project.key, lead_id, len(user_ids), actor.pk
        )
        return project

    @staticmethod
    def list_projects(*, actor) -> QuerySet:
        return ProjectSelector.get_projects_list(actor)

    @staticmethod
    def get_project(*, actor, project: Project) -> Project:
        ProjectService.check_member_or_admin(actor, project)
        return project

    @staticmethod
    def update_project(
        *,
        actor,
        project: Project,
        **data
    ) -> Project:
        """Update name/description/lead; a new lead lands in members in the same transaction"""

        ProjectService._check_lead_or_admin(actor, project)

        update_fields = []

        if 'name' in data:
            project.name = require_text(data['name'], "name cannot be empty.")
            update_fields.append('name')

        if 'description' in data:
            project.description = str(data['description'] or '').strip()
            update_fields.append('description')

        new_lead_id = None
        if 'lead_id' in data:
            new_lead_id = to_id(data['lead_id'], "lead_id")
            if not all_users_exist([new_lead_id]):
                raise ValidationError("Lead user does not exist.")
            project.lead_id = new_lead_id
            update_fields.append('lead')

        if not update_fields:
            return project

        project.full_clean(exclude=['key'], validate_unique=False)

        with transaction.atomic():
            project.save(update_fields=[*update_fields, 'updated_at'])
            if new_lead_id is not None:
                project.members.add(new_lead_id)

        logger.info(
            "[project] updated key=%s fields=%s by=%s",
            project.key, ",".join(update_fields), actor.pk
        )
        return project

    @staticmethod
    def update_members(
        *,
        actor,
        project: Project,
        add: Optional[Iterable] = None,
        remove: Optional[Iterable] = None
    ) -> Project:
        """Add and remove members in one atomic step; the lead can never be removed"""

        ProjectService._check_lead_or_admin(actor, project)

        add_ids: List[int] = unique_ids(add)
        remove_ids: List[int] = unique_ids(remove)

        overlap = set(add_ids) & set(remove_ids)
        if overlap:
            raise ValidationError(
                f"User ids cannot be both added and removed: {sorted(overlap)}"
            )

        if not all_users_exist([*add_ids, *remove_ids]):
            raise ValidationError("One or more user ids do not exist.")

        if project.lead_id in remove_ids:
            raise ValidationError("Cannot remove the project lead from members.")

        with transaction.atomic():
            if add_ids:
                project.members.add(*add_ids)
            if remove_ids:
                project.members.remove(*remove_ids)
            # lead stays a member even if an earlier write left it out
            project.members.add(project.lead_id)
            Project.objects.filter(pk=project.pk).update(updated_at=timezone.now())

        project.refresh_from_db()

        logger.info(
            "[project] members key=%s added=%s removed=%s by=%s",
            project.key, add_ids, remove_ids, actor.pk
        )
        return project

    @staticmethod
    def delete_project(*, actor, project: Project) -> None:
        """Hard delete; issues, comments and status history go with it"""

        access.ensure(
            access.has_global_role(actor, [Role.ADMIN]),
            "Insufficient permissions."
        )

        issue_count = project.issues.count()
        key = project.key
        project.delete()

        logger.info("[project] deleted key=%s issues=%s by=%s", key, issue_count, actor.pk)
