import pytest
from django.core.exceptions import PermissionDenied, ValidationError
from django.utils import timezone

from tracker.models import Comment
from tracker.selectors.comment import CommentSelector
from tracker.services.comment import CommentService
from tracker.services.issue import IssueService
from tracker.services.project import ProjectService


def comment_count(issue):
    issue.refresh_from_db()
    return issue.comment_count


@pytest.mark.django_db
def test_reply_chain_records_ancestors(issue, member, lead):
    a = CommentService.create_comment(actor=member, issue=issue, body="Seeing this on Firefox too")
    b = CommentService.create_comment(actor=lead, issue=issue, body="Which version?", parent_id=a.id)
    c = CommentService.create_comment(actor=member, issue=issue, body="128", parent_id=b.id)

    assert a.ancestors == [] and a.depth == 0
    assert b.ancestors == [a.id]
    assert c.ancestors == [a.id, b.id]
    assert c.depth == 2
    assert c.parent_id == b.id


@pytest.mark.django_db
def test_parent_must_be_on_same_issue(project, issue, member):
    other_issue = IssueService.create_issue(actor=member, project=project, title="Other")
    foreign = CommentService.create_comment(actor=member, issue=other_issue, body="elsewhere")

    with pytest.raises(ValidationError):
        CommentService.create_comment(actor=member, issue=issue, body="reply", parent_id=foreign.id)
    with pytest.raises(Comment.DoesNotExist):
        CommentService.create_comment(actor=member, issue=issue, body="reply", parent_id=99999)

    assert comment_count(issue) == 0


@pytest.mark.django_db
@pytest.mark.parametrize("body", [None, "", "   ", "x" * 5001])
def test_comment_body_validation(issue, member, body):
    with pytest.raises(ValidationError):
        CommentService.create_comment(actor=member, issue=issue, body=body)


@pytest.mark.django_db
def test_outsider_cannot_comment(issue, outsider):
    with pytest.raises(PermissionDenied):
        CommentService.create_comment(actor=outsider, issue=issue, body="hi")
    assert not Comment.objects.exists()


@pytest.mark.django_db
def test_counter_matches_visible_comments(issue, member, lead):
    first = CommentService.create_comment(actor=member, issue=issue, body="one")
    CommentService.create_comment(actor=member, issue=issue, body="two", parent_id=first.id)
    CommentService.create_comment(actor=lead, issue=issue, body="three")
    assert comment_count(issue) == 3

    assert CommentService.delete_comment(actor=member, comment=first) is True
    assert CommentService.delete_comment(actor=member, comment=first) is False

    assert comment_count(issue) == 2
    assert CommentSelector.count_visible(issue.pk) == 2


@pytest.mark.django_db
def test_soft_delete_keeps_row_but_hides_it(issue, member, lead):
    parent = CommentService.create_comment(actor=member, issue=issue, body="parent")
    reply = CommentService.create_comment(actor=lead, issue=issue, body="reply", parent_id=parent.id)

    CommentService.delete_comment(actor=member, comment=parent)

    parent.refresh_from_db()
    assert parent.deleted is True
    assert parent.body == ""
    assert CommentService.list_comments(actor=member, issue=issue, skip=0, limit=20) == []
    # replies survive their deleted parent
    assert CommentService.list_replies(actor=member, parent=parent, skip=0, limit=50) == [reply]


@pytest.mark.django_db
def test_edit_marks_comment_edited(issue, member):
    comment = CommentService.create_comment(actor=member, issue=issue, body="typo")
    updated = CommentService.update_comment(actor=member, comment=comment, body="  fixed  ")

    updated.refresh_from_db()
    assert updated.body == "fixed"
    assert updated.edited is True


@pytest.mark.django_db
def test_moderation_rules(issue, member, other_member, lead, admin):
    comment = CommentService.create_comment(actor=member, issue=issue, body="original")

    with pytest.raises(PermissionDenied):
        CommentService.update_comment(actor=other_member, comment=comment, body="hijack")
    with pytest.raises(PermissionDenied):
        CommentService.delete_comment(actor=other_member, comment=comment)

    CommentService.update_comment(actor=lead, comment=comment, body="moderated by lead")
    CommentService.update_comment(actor=admin, comment=comment, body="moderated by admin")

    comment.refresh_from_db()
    assert comment.body == "moderated by admin"
    assert comment.deleted is False


@pytest.mark.django_db
def test_author_loses_edit_rights_when_removed_from_project(project, issue, member, lead):
    comment = CommentService.create_comment(actor=member, issue=issue, body="mine")
    ProjectService.update_members(actor=lead, project=project, remove=[member.id])

    with pytest.raises(PermissionDenied):
        CommentService.update_comment(actor=member, comment=comment, body="still mine?")


@pytest.mark.django_db
def test_listing_order_breaks_ties_by_id(issue, member):
    created = [CommentService.create_comment(actor=member, issue=issue, body=f"c{i}") for i in range(4)]
    same_instant = timezone.now()
    Comment.objects.filter(issue=issue).update(created_at=same_instant)

    listed = CommentService.list_comments(actor=member, issue=issue, skip=0, limit=20)
    assert [c.id for c in listed] == [c.id for c in created]


@pytest.mark.django_db
def test_skip_limit_pages_are_stable(issue, member):
    created = [CommentService.create_comment(actor=member, issue=issue, body=f"c{i}") for i in range(5)]

    page1 = CommentService.list_comments(actor=member, issue=issue, skip=0, limit=2)
    page2 = CommentService.list_comments(actor=member, issue=issue, skip=2, limit=2)
    page3 = CommentService.list_comments(actor=member, issue=issue, skip=4, limit=2)

    assert [c.id for c in page1 + page2 + page3] == [c.id for c in created]


@pytest.mark.django_db
def test_replies_are_direct_children_only(issue, member):
    root = CommentService.create_comment(actor=member, issue=issue, body="root")
    child = CommentService.create_comment(actor=member, issue=issue, body="child", parent_id=root.id)
    CommentService.create_comment(actor=member, issue=issue, body="grandchild", parent_id=child.id)

    assert CommentService.list_replies(actor=member, parent=root, skip=0, limit=50) == [child]
    assert CommentService.list_comments(actor=member, issue=issue, skip=0, limit=20) == [root]


@pytest.mark.django_db
def test_recount_repairs_drift(issue, member):
    CommentService.create_comment(actor=member, issue=issue, body="one")
    IssueService.adjust_comment_count(issue.pk, 5)
    issue.refresh_from_db()

    assert IssueService.recount_comments(issue) == 1
    assert comment_count(issue) == 1


@pytest.mark.django_db
def test_deleted_comment_cannot_be_edited(issue, member):
    comment = CommentService.create_comment(actor=member, issue=issue, body="gone soon")
    CommentService.delete_comment(actor=member, comment=comment)

    with pytest.raises(ValidationError):
        CommentService.update_comment(actor=member, comment=comment, body="resurrected")

    comment.refresh_from_db()
    assert comment.deleted is True
    assert comment.body == ""
    assert comment.edited is False
