# ============================================
# tracker/urls.py
# ============================================
from django.urls import path
from tracker.views.project import (
    ProjectListCreateAPIView,
    ProjectDetailAPIView,
    ProjectMembersAPIView
)
from tracker.views.issue import (
    ProjectIssueListCreateAPIView,
    IssueDetailAPIView,
    IssueTransitionAPIView
)
from tracker.views.comment import (
    CommentListCreateAPIView,
    CommentRepliesAPIView,
    CommentDetailAPIView
)

app_name = 'tracker'

urlpatterns = [
    # Projects
    path('projects/', ProjectListCreateAPIView.as_view(), name='project-list-create'),
    path('projects/<int:project_id>/', ProjectDetailAPIView.as_view(), name='project-detail'),
    path('projects/<int:project_id>/members/', ProjectMembersAPIView.as_view(), name='project-members'),

    # Issues
    path('projects/<int:project_id>/issues/', ProjectIssueListCreateAPIView.as_view(), name='issue-list-create'),
    path('issues/<int:issue_id>/', IssueDetailAPIView.as_view(), name='issue-detail'),
    path('issues/<int:issue_id>/transition/', IssueTransitionAPIView.as_view(), name='issue-transition'),

    # Comments
    path('issues/<int:issue_id>/comments/', CommentListCreateAPIView.as_view(), name='comment-list-create'),
    path('comments/<int:comment_id>/', CommentDetailAPIView.as_view(), name='comment-detail'),
    path('comments/<int:comment_id>/replies/', CommentRepliesAPIView.as_view(), name='comment-replies'),
]
