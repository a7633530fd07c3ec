# ============================================
# tracker/selectors/project.py
# ============================================
from typing import Optional
from django.db.models import QuerySet
from tracker.access import ProjectScope
from tracker.models import Project, Role


class ProjectSelector:

    @staticmethod
    def get_project_by_id(project_id: int) -> Optional[Project]:
        """Get single project by ID"""
        try:
            return Project.objects.select_related('lead').get(id=project_id)
        except Project.DoesNotExist:
            return None

    @staticmethod
    def get_project_by_key(key: str) -> Optional[Project]:
        """Get project by key"""
        try:
            return Project.objects.get(key=key)
        except Project.DoesNotExist:
            return None

    @staticmethod
    def get_scope(project: Project) -> ProjectScope:
        """Fresh access snapshot, read from the current rows"""
        return ProjectScope(
            project_id=project.pk,
            lead_id=project.lead_id,
            member_ids=frozenset(project.members.values_list('id', flat=True)),
        )

    @staticmethod
    def get_projects_list(user) -> QuerySet:
        """Admins see every project; everyone else sees projects they lead or belong to"""
        queryset = Project.objects.select_related('lead').prefetch_related('members')

        if user.role != Role.ADMIN:
            queryset = queryset.accessible_to(user)

        return queryset.order_by('-created_at', '-id')
