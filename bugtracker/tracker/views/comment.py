# ============================================
# tracker/views/comment.py
# ============================================
from drf_spectacular.utils import extend_schema, inline_serializer
from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework import serializers, status

from tracker.serializers.comment import (
    CommentCreateSerializer,
    CommentUpdateSerializer,
    CommentOutputSerializer
)
from tracker.selectors.comment import CommentSelector
from tracker.selectors.issue import IssueSelector
from tracker.services.comment import CommentService
from tracker.utils.pagination import comment_page, reply_page
from tracker.views.utils import SKIP_LIMIT_PARAMS, caller, path_int, std_errors


def _not_found(what: str):
    return Response(
        {'detail': f'{what} not found.'},
        status=status.HTTP_404_NOT_FOUND
    )


def _page_schema(name: str, items_field: str):
    return inline_serializer(
        name=name,
        fields={
            items_field: CommentOutputSerializer(many=True),
            'page': inline_serializer(
                name=f"{name}Window",
                fields={'skip': serializers.IntegerField(), 'limit': serializers.IntegerField()},
            ),
        },
    )


class CommentListCreateAPIView(APIView):
    """
    GET: List top-level comments of an issue (skip/limit, oldest first)
    POST: Create a comment or a reply

    Request body (POST):
    - body: string (required)
    - parent_id: int (optional, must belong to the same issue)
    """

    @extend_schema(
        tags=["Comments"],
        summary="List top-level comments for an issue",
        parameters=[path_int("issue_id", "Issue ID"), *SKIP_LIMIT_PARAMS],
        responses={200: _page_schema("CommentPage", "comments"), **std_errors(400, 401, 403, 404)},
    )
    def get(self, request, issue_id):
        user = caller(request)
        issue = IssueSelector.get_issue_by_id(issue_id)

        if not issue:
            return _not_found('Issue')

        skip, limit = comment_page(request.query_params)
        comments = CommentService.list_comments(actor=user, issue=issue, skip=skip, limit=limit)

        serializer = CommentOutputSerializer(comments, many=True)
        return Response({
            'comments': serializer.data,
            'page': {'skip': skip, 'limit': limit},
        })

    @extend_schema(
        tags=["Comments"],
        summary="Create a comment on an issue",
        parameters=[path_int("issue_id", "Issue ID")],
        request=CommentCreateSerializer,
        responses={201: CommentOutputSerializer, **std_errors(400, 401, 403, 404)},
    )
    def post(self, request, issue_id):
        user = caller(request)
        issue = IssueSelector.get_issue_by_id(issue_id)

        if not issue:
            return _not_found('Issue')

        serializer = CommentCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        comment = CommentService.create_comment(
            actor=user,
            issue=issue,
            **serializer.validated_data
        )

        output_serializer = CommentOutputSerializer(comment)
        return Response(output_serializer.data, status=status.HTTP_201_CREATED)


class CommentRepliesAPIView(APIView):
    """
    GET: Direct replies of a comment (skip/limit, oldest first)
    """

    @extend_schema(
        tags=["Comments"],
        summary="List direct replies under a comment",
        parameters=[path_int("comment_id", "Comment ID"), *SKIP_LIMIT_PARAMS],
        responses={200: _page_schema("ReplyPage", "replies"), **std_errors(400, 401, 403, 404)},
    )
    def get(self, request, comment_id):
        user = caller(request)
        parent = CommentSelector.get_comment_by_id(comment_id)

        if not parent:
            return _not_found('Comment')

        skip, limit = reply_page(request.query_params)
        replies = CommentService.list_replies(actor=user, parent=parent, skip=skip, limit=limit)

        serializer = CommentOutputSerializer(replies, many=True)
        return Response({
            'replies': serializer.data,
            'page': {'skip': skip, 'limit': limit},
        })


class CommentDetailAPIView(APIView):
    """
    PATCH: Edit comment body (author/lead/admin)
    DELETE: Soft-delete comment (author/lead/admin, idempotent)
    """

    @extend_schema(
        tags=["Comments"],
        summary="Edit a comment",
        parameters=[path_int("comment_id", "Comment ID")],
        request=CommentUpdateSerializer,
        responses={200: CommentOutputSerializer, **std_errors(400, 401, 403, 404)},
    )
    def patch(self, request, comment_id):
        user = caller(request)
        comment = CommentSelector.get_comment_by_id(comment_id)

        if not comment:
            return _not_found('Comment')

        serializer = CommentUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        updated_comment = CommentService.update_comment(
            actor=user,
            comment=comment,
            **serializer.validated_data
        )

        output_serializer = CommentOutputSerializer(updated_comment)
        return Response(output_serializer.data)

    @extend_schema(
        tags=["Comments"],
        summary="Soft-delete a comment",
        parameters=[path_int("comment_id", "Comment ID")],
        responses={204: None, **std_errors(401, 403, 404)},
    )
    def delete(self, request, comment_id):
        user = caller(request)
        comment = CommentSelector.get_comment_by_id(comment_id)

        if not comment:
            return _not_found('Comment')

        CommentService.delete_comment(actor=user, comment=comment)

        return Response(status=status.HTTP_204_NO_CONTENT)
