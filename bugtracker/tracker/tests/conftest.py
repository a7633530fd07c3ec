import pytest
from rest_framework.test import APIClient
from tracker.models import Role, User
from tracker.services.issue import IssueService
from tracker.services.project import ProjectService


def _make_user(username, role=Role.DEVELOPER, **extra):
    return User.objects.create_user(username=username, password="pass", role=role, **extra)


@pytest.fixture
def admin(db):
    return _make_user("admin", Role.ADMIN)

@pytest.fixture
def manager(db):
    return _make_user("manager", Role.MANAGER)

@pytest.fixture
def lead(db):
    return _make_user("lead")

@pytest.fixture
def member(db):
    return _make_user("member")

@pytest.fixture
def other_member(db):
    return _make_user("member2")

@pytest.fixture
def outsider(db):
    return _make_user("outsider")

@pytest.fixture
def project(manager, lead, member, other_member):
    # "BT" led by `lead`, with two plain members
    return ProjectService.create_project(
        actor=manager,
        key="BT",
        name="Bug Tracker",
        lead_id=lead.id,
        member_ids=[member.id, other_member.id],
    )

@pytest.fixture
def issue(project, member):
    return IssueService.create_issue(actor=member, project=project, title="Login button unresponsive")

@pytest.fixture
def api():
    def _client(user=None):
        client = APIClient()
        if user is not None:
            client.force_authenticate(user=user)
        return client
    return _client
