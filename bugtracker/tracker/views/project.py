# ============================================
# tracker/views/project.py
# ============================================
from drf_spectacular.utils import extend_schema
from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework import status

from tracker.serializers.project import (
    ProjectCreateSerializer,
    ProjectUpdateSerializer,
    ProjectMembersSerializer,
    ProjectOutputSerializer
)
from tracker.selectors.project import ProjectSelector
from tracker.services.project import ProjectService
from tracker.utils.pagination import DefaultPagination
from tracker.views.utils import PAGE_PARAMS, caller, path_int, std_errors


def _project_not_found():
    return Response(
        {'detail': 'Project not found.'},
        status=status.HTTP_404_NOT_FOUND
    )


class ProjectListCreateAPIView(APIView):
    """
    GET: List projects visible to the current user (admins see all)
    POST: Create a new project (admin/manager)

    Request body (POST):
    - key: string (required, 2-10 chars A-Z/0-9, unique)
    - name: string (required)
    - description: string (optional)
    - lead_id: int (required)
    - member_ids: list of int (optional)
    """

    @extend_schema(
        tags=["Projects"],
        summary="List projects for the current user",
        parameters=PAGE_PARAMS,
        responses={200: ProjectOutputSerializer(many=True), **std_errors(401, 403)},
    )
    def get(self, request):
        user = caller(request)

        projects = ProjectService.list_projects(actor=user)

        paginator = DefaultPagination()
        page = paginator.paginate_queryset(projects, request, view=self)

        serializer = ProjectOutputSerializer(page, many=True)
        return paginator.get_paginated_response(serializer.data)

    @extend_schema(
        tags=["Projects"],
        summary="Create a project",
        request=ProjectCreateSerializer,
        responses={201: ProjectOutputSerializer, **std_errors(400, 401, 403, 409)},
    )
    def post(self, request):
        user = caller(request)

        serializer = ProjectCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        project = ProjectService.create_project(
            actor=user,
            **serializer.validated_data
        )

        output_serializer = ProjectOutputSerializer(project)
        return Response(output_serializer.data, status=status.HTTP_201_CREATED)


class ProjectDetailAPIView(APIView):
    """
    GET: Retrieve project details (member/lead/admin)
    PATCH: Update name, description or lead (lead/admin)
    DELETE: Delete project (admin)
    """

    @extend_schema(
        tags=["Projects"],
        summary="Get a project",
        parameters=[path_int("project_id", "Project ID")],
        responses={200: ProjectOutputSerializer, **std_errors(401, 403, 404)},
    )
    def get(self, request, project_id):
        user = caller(request)
        project = ProjectSelector.get_project_by_id(project_id)

        if not project:
            return _project_not_found()

        ProjectService.get_project(actor=user, project=project)

        serializer = ProjectOutputSerializer(project)
        return Response(serializer.data)

    @extend_schema(
        tags=["Projects"],
        summary="Update project fields",
        description="Changing the lead also adds the new lead to the members.",
        parameters=[path_int("project_id", "Project ID")],
        request=ProjectUpdateSerializer,
        responses={200: ProjectOutputSerializer, **std_errors(400, 401, 403, 404)},
    )
    def patch(self, request, project_id):
        user = caller(request)
        project = ProjectSelector.get_project_by_id(project_id)

        if not project:
            return _project_not_found()

        serializer = ProjectUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        updated_project = ProjectService.update_project(
            actor=user,
            project=project,
            **serializer.validated_data
        )

        output_serializer = ProjectOutputSerializer(updated_project)
        return Response(output_serializer.data)

    @extend_schema(
        tags=["Projects"],
        summary="Delete a project and everything in it",
        parameters=[path_int("project_id", "Project ID")],
        responses={204: None, **std_errors(401, 403, 404)},
    )
    def delete(self, request, project_id):
        user = caller(request)
        project = ProjectSelector.get_project_by_id(project_id)

        if not project:
            return _project_not_found()

        ProjectService.delete_project(actor=user, project=project)

        return Response(status=status.HTTP_204_NO_CONTENT)


class ProjectMembersAPIView(APIView):
    """
    POST: Add and/or remove members (lead/admin)

    Request body:
    - add: list of int (optional)
    - remove: list of int (optional, may not contain the lead)
    """

    @extend_schema(
        tags=["Projects"],
        summary="Add/remove project members",
        parameters=[path_int("project_id", "Project ID")],
        request=ProjectMembersSerializer,
        responses={200: ProjectOutputSerializer, **std_errors(400, 401, 403, 404)},
    )
    def post(self, request, project_id):
        user = caller(request)
        project = ProjectSelector.get_project_by_id(project_id)

        if not project:
            return _project_not_found()

        serializer = ProjectMembersSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        updated_project = ProjectService.update_members(
            actor=user,
            project=project,
            **serializer.validated_data
        )

        output_serializer = ProjectOutputSerializer(updated_project)
        return Response(output_serializer.data)
