# ============================================
# tracker/views/issue.py
# ============================================
from drf_spectacular.utils import extend_schema
from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework import status

from tracker.serializers.issue import (
    IssueCreateSerializer,
    IssueUpdateSerializer,
    IssueTransitionSerializer,
    IssueListQuerySerializer,
    IssueOutputSerializer,
    IssueListOutputSerializer
)
from tracker.selectors.issue import IssueSelector
from tracker.selectors.project import ProjectSelector
from tracker.services.issue import IssueService
from tracker.utils.pagination import IssuePagination
from tracker.views.utils import PAGE_PARAMS, caller, path_int, q_int, q_str, std_errors


def _not_found(what: str):
    return Response(
        {'detail': f'{what} not found.'},
        status=status.HTTP_404_NOT_FOUND
    )


class ProjectIssueListCreateAPIView(APIView):
    """
    GET: List issues of a project with filters
    POST: Create an issue in the project

    Query params (GET):
    - status, priority, assignee_id, q (substring over title/description/key)
    - page, page_size

    Request body (POST):
    - title: string (required)
    - description, type, priority, severity: optional
    - assignee_id: int (optional, must be a project member)
    - labels: list of string, watchers: list of int, attachments: list of metadata
    """

    @extend_schema(
        tags=["Issues"],
        summary="List issues within a project (filterable)",
        parameters=[
            path_int("project_id", "Project ID"),
            q_str("status", "Filter by status"),
            q_str("priority", "Filter by priority"),
            q_int("assignee_id", "Filter by assignee"),
            q_str("q", "Free-text filter"),
            *PAGE_PARAMS,
        ],
        responses={200: IssueListOutputSerializer(many=True), **std_errors(400, 401, 403, 404)},
    )
    def get(self, request, project_id):
        user = caller(request)
        project = ProjectSelector.get_project_by_id(project_id)

        if not project:
            return _not_found('Project')

        query = IssueListQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        filters = dict(query.validated_data)
        if 'q' in filters:
            filters['search'] = filters.pop('q')

        issues = IssueService.list_issues(actor=user, project=project, **filters)

        paginator = IssuePagination()
        page = paginator.paginate_queryset(issues, request, view=self)

        serializer = IssueListOutputSerializer(page, many=True)
        return paginator.get_paginated_response(serializer.data)

    @extend_schema(
        tags=["Issues"],
        summary="Create an issue within a project",
        parameters=[path_int("project_id", "Project ID")],
        request=IssueCreateSerializer,
        responses={201: IssueOutputSerializer, **std_errors(400, 401, 403, 404)},
    )
    def post(self, request, project_id):
        user = caller(request)
        project = ProjectSelector.get_project_by_id(project_id)

        if not project:
            return _not_found('Project')

        serializer = IssueCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        issue = IssueService.create_issue(
            actor=user,
            project=project,
            **serializer.validated_data
        )

        output_serializer = IssueOutputSerializer(issue)
        return Response(output_serializer.data, status=status.HTTP_201_CREATED)


class IssueDetailAPIView(APIView):
    """
    GET: Retrieve issue details
    PATCH: Partial update (status is changed through /transition/)
    """

    @extend_schema(
        tags=["Issues"],
        summary="Get an issue by id",
        parameters=[path_int("issue_id", "Issue ID")],
        responses={200: IssueOutputSerializer, **std_errors(401, 403, 404)},
    )
    def get(self, request, issue_id):
        user = caller(request)
        issue = IssueSelector.get_issue_by_id(issue_id)

        if not issue:
            return _not_found('Issue')

        IssueService.get_issue(actor=user, issue=issue)

        serializer = IssueOutputSerializer(issue)
        return Response(serializer.data)

    @extend_schema(
        tags=["Issues"],
        summary="Update issue fields",
        parameters=[path_int("issue_id", "Issue ID")],
        request=IssueUpdateSerializer,
        responses={200: IssueOutputSerializer, **std_errors(400, 401, 403, 404)},
    )
    def patch(self, request, issue_id):
        user = caller(request)
        issue = IssueSelector.get_issue_by_id(issue_id)

        if not issue:
            return _not_found('Issue')

        serializer = IssueUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        updated_issue = IssueService.update_issue(
            actor=user,
            issue=issue,
            **serializer.validated_data
        )

        output_serializer = IssueOutputSerializer(updated_issue)
        return Response(output_serializer.data)


class IssueTransitionAPIView(APIView):
    """
    POST: Move the issue to another status and append an audit entry

    Request body:
    - to: string (required)
    """

    @extend_schema(
        tags=["Issues"],
        summary="Transition issue status and append audit trail",
        parameters=[path_int("issue_id", "Issue ID")],
        request=IssueTransitionSerializer,
        responses={200: IssueOutputSerializer, **std_errors(400, 401, 403, 404)},
    )
    def post(self, request, issue_id):
        user = caller(request)
        issue = IssueSelector.get_issue_by_id(issue_id)

        if not issue:
            return _not_found('Issue')

        serializer = IssueTransitionSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        updated_issue = IssueService.transition_status(
            actor=user,
            issue=issue,
            **serializer.validated_data
        )

        output_serializer = IssueOutputSerializer(updated_issue)
        return Response(output_serializer.data)
