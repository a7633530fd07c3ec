# ============================================
# tracker/models/__init__.py
# ============================================
from .user import User, Role
from .project import Project
from .issue import Issue
from .history import StatusTransition
from .comment import Comment

__all__ = [
    'User',
    'Role',
    'Project',
    'Issue',
    'StatusTransition',
    'Comment',
]
