import threading

import pytest
from django.core.exceptions import PermissionDenied, ValidationError
from django.db import OperationalError, connection

from tracker.models import Issue, Project, StatusTransition
from tracker.selectors.issue import IssueSelector
from tracker.services.issue import IssueService


@pytest.mark.django_db
def test_keys_are_sequential_per_project(project, member, manager, lead):
    first = IssueService.create_issue(actor=member, project=project, title="First")
    second = IssueService.create_issue(actor=lead, project=project, title="Second")

    assert first.key == "BT-1"
    assert second.key == "BT-2"
    project.refresh_from_db()
    assert project.next_issue_seq == 3
    assert IssueSelector.get_issue_by_key("BT-2") == second
    assert IssueSelector.get_issue_by_key("BT-3") is None


@pytest.mark.django_db
def test_keys_stay_unique_with_stale_project_instance(project, member):
    stale = Project.objects.get(pk=project.pk)
    keys = [IssueService.create_issue(actor=member, project=stale, title=f"Issue {i}").key for i in range(5)]

    assert keys == ["BT-1", "BT-2", "BT-3", "BT-4", "BT-5"]
    assert stale.next_issue_seq == 1


@pytest.mark.django_db
def test_preset_key_does_not_touch_counter(project, member):
    imported = IssueService.create_issue(actor=member, project=project, title="Imported", key="BT-900")
    assert imported.key == "BT-900"

    project.refresh_from_db()
    assert project.next_issue_seq == 1
    assert IssueService.create_issue(actor=member, project=project, title="Next").key == "BT-1"


@pytest.mark.django_db
def test_key_generation_for_missing_project(member):
    issue = Issue(project_id=99999, title="Orphan", reporter=member)
    with pytest.raises(Project.DoesNotExist):
        issue.save()
    assert issue.key == ""
    assert not Issue.objects.exists()


@pytest.mark.django_db
def test_create_issue_denied_for_outsider(project, outsider):
    with pytest.raises(PermissionDenied):
        IssueService.create_issue(actor=outsider, project=project, title="Sneaky")

    project.refresh_from_db()
    assert project.next_issue_seq == 1


@pytest.mark.django_db
def test_create_issue_defaults_and_cleaning(project, member, lead, other_member):
    issue = IssueService.create_issue(
        actor=member,
        project=project,
        title="  Crash on save  ",
        assignee_id=lead.id,
        labels=["ui", " ui ", "", "backend"],
        watchers=[other_member.id, other_member.id],
        attachments=[{"fileId": "f-1", "filename": "trace.log", "size": 120}],
    )

    assert issue.title == "Crash on save"
    assert issue.type == Issue.IssueType.BUG
    assert issue.status == Issue.Status.OPEN
    assert issue.priority == Issue.Priority.MEDIUM
    assert issue.severity == Issue.Severity.MAJOR
    assert issue.reporter_id == member.id
    assert issue.assignee_id == lead.id
    assert issue.labels == ["ui", "backend"]
    assert list(issue.watchers.values_list("id", flat=True)) == [other_member.id]
    assert issue.attachments == [
        {"fileId": "f-1", "filename": "trace.log", "size": 120, "contentType": ""}
    ]
    assert issue.comment_count == 0


@pytest.mark.django_db
def test_assignee_must_belong_to_project(project, member, outsider):
    with pytest.raises(ValidationError):
        IssueService.create_issue(actor=member, project=project, title="X", assignee_id=outsider.id)
    with pytest.raises(ValidationError):
        IssueService.create_issue(actor=member, project=project, title="X", assignee_id=99999)


@pytest.mark.django_db
@pytest.mark.parametrize("field,value", [("type", "epic"), ("priority", "urgent"), ("severity", "fatal")])
def test_create_issue_rejects_unknown_enum(project, member, field, value):
    with pytest.raises(ValidationError):
        IssueService.create_issue(actor=member, project=project, title="X", **{field: value})


@pytest.mark.django_db
def test_create_issue_rejects_bad_attachment(project, member):
    with pytest.raises(ValidationError):
        IssueService.create_issue(
            actor=member, project=project, title="X", attachments=[{"fileId": "f", "filename": "a", "size": -1}]
        )


@pytest.mark.django_db
def test_partial_update_touches_only_supplied_fields(issue, member, other_member):
    updated = IssueService.update_issue(actor=member, issue=issue, priority="high", watchers=[other_member.id])

    updated.refresh_from_db()
    assert updated.priority == Issue.Priority.HIGH
    assert updated.title == "Login button unresponsive"
    assert updated.status == Issue.Status.OPEN
    assert list(updated.watchers.values_list("id", flat=True)) == [other_member.id]


@pytest.mark.django_db
def test_update_issue_denied_for_outsider(issue, outsider):
    with pytest.raises(PermissionDenied):
        IssueService.update_issue(actor=outsider, issue=issue, title="Hijacked")

    issue.refresh_from_db()
    assert issue.title == "Login button unresponsive"


@pytest.mark.django_db
def test_update_issue_can_clear_assignee(issue, member, lead):
    IssueService.update_issue(actor=member, issue=issue, assignee_id=lead.id)
    IssueService.update_issue(actor=member, issue=issue, assignee_id=None)

    issue.refresh_from_db()
    assert issue.assignee_id is None


@pytest.mark.django_db
def test_transitions_append_history_and_track_closed_at(issue, member, lead):
    IssueService.transition_status(actor=member, issue=issue, to="in_progress")
    IssueService.transition_status(actor=lead, issue=issue, to="closed")
    closed_at = issue.closed_at
    assert closed_at is not None

    # same-state move is still recorded and keeps the original close time
    IssueService.transition_status(actor=lead, issue=issue, to="closed")
    assert issue.closed_at == closed_at

    IssueService.transition_status(actor=member, issue=issue, to="open")
    assert issue.status == Issue.Status.OPEN
    assert issue.closed_at is None

    history = list(IssueSelector.get_status_history(issue))
    assert [(h.from_status, h.to_status) for h in history] == [
        ("open", "in_progress"),
        ("in_progress", "closed"),
        ("closed", "closed"),
        ("closed", "open"),
    ]
    assert [h.changed_by_id for h in history] == [member.id, lead.id, lead.id, member.id]


@pytest.mark.django_db
def test_transition_rejects_unknown_status(issue, member):
    with pytest.raises(ValidationError):
        IssueService.transition_status(actor=member, issue=issue, to="done")
    assert not StatusTransition.objects.exists()


@pytest.mark.django_db
def test_status_history_is_append_only(issue, member):
    IssueService.transition_status(actor=member, issue=issue, to="blocked")
    entry = StatusTransition.objects.get()

    entry.to_status = "resolved"
    with pytest.raises(ValueError):
        entry.save()


@pytest.mark.django_db
def test_list_issues_filters(project, member, lead):
    a = IssueService.create_issue(actor=member, project=project, title="Payment fails", priority="high")
    b = IssueService.create_issue(actor=member, project=project, title="Typo on footer", assignee_id=lead.id)
    IssueService.transition_status(actor=member, issue=b, to="resolved")

    def keys(**filters):
        return [i.key for i in IssueService.list_issues(actor=member, project=project, **filters)]

    assert keys() == [b.key, a.key]
    assert keys(priority="high") == [a.key]
    assert keys(status="resolved") == [b.key]
    assert keys(assignee_id=lead.id) == [b.key]
    assert keys(search="payment") == [a.key]
    assert keys(search="bt-2") == [b.key]


@pytest.mark.django_db
def test_list_issues_denied_for_outsider(project, outsider):
    with pytest.raises(PermissionDenied):
        IssueService.list_issues(actor=outsider, project=project)


@pytest.mark.django_db
def test_comment_count_decrement_never_goes_negative(issue):
    assert IssueService.adjust_comment_count(issue.pk, -1) == 0
    issue.refresh_from_db()
    assert issue.comment_count == 0

    IssueService.adjust_comment_count(issue.pk, 1)
    issue.refresh_from_db()
    assert issue.comment_count == 1


@pytest.mark.django_db
@pytest.mark.parametrize("offset", [0.9, 0.5])
def test_fractional_assignee_id_is_rejected(project, member, lead, offset):
    with pytest.raises(ValidationError):
        IssueService.create_issue(actor=member, project=project, title="X", assignee_id=lead.id + offset)
    assert not Issue.objects.exists()


@pytest.mark.django_db
def test_whole_float_assignee_id_is_accepted(project, member, lead):
    issue = IssueService.create_issue(actor=member, project=project, title="X", assignee_id=float(lead.id))
    assert issue.assignee_id == lead.id


@pytest.mark.django_db(transaction=True)
def test_concurrent_creates_get_distinct_keys(project, member):
    attempts = 8
    barrier = threading.Barrier(attempts)
    lock = threading.Lock()
    keys, failures = [], []

    def create(n):
        try:
            barrier.wait()
            issue = IssueService.create_issue(actor=member, project=project, title=f"Race {n}")
            with lock:
                keys.append(issue.key)
        except OperationalError as exc:
            # sqlite test db rejects writers that hit a table lock
            with lock:
                failures.append(exc)
        finally:
            connection.close()

    threads = [threading.Thread(target=create, args=(n,)) for n in range(attempts)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert keys
    assert len(keys) + len(failures) == attempts
    numbers = sorted(int(key.split("-")[1]) for key in keys)
    assert numbers == list(range(1, len(keys) + 1))

    project.refresh_from_db()
    assert project.next_issue_seq == len(keys) + 1
    assert Issue.objects.filter(project=project).count() == len(keys)
