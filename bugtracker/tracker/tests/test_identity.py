import pytest
from tracker.exceptions import IdentityDenied
from tracker.selectors.user import all_users_exist, count_existing_users, resolve_caller


@pytest.mark.django_db
def test_resolve_caller_returns_fresh_row(member):
    user = resolve_caller(member.id)
    assert user.pk == member.pk

    # role changes are visible on the very next resolution
    member.role = "manager"
    member.save(update_fields=["role"])
    assert resolve_caller(str(member.id)).role == "manager"


@pytest.mark.django_db
@pytest.mark.parametrize("bad_id", [None, True, "abc", 0, -3, ""])
def test_resolve_caller_rejects_malformed_ids(bad_id):
    with pytest.raises(IdentityDenied):
        resolve_caller(bad_id)


@pytest.mark.django_db
def test_resolve_caller_rejects_unknown_and_inactive(member):
    with pytest.raises(IdentityDenied):
        resolve_caller(member.id + 1000)

    member.is_active = False
    member.save(update_fields=["is_active"])
    with pytest.raises(IdentityDenied):
        resolve_caller(member.id)


@pytest.mark.django_db
def test_batched_existence_check(member, lead):
    assert count_existing_users([member.id, lead.id, member.id]) == 2
    assert all_users_exist([member.id, lead.id])
    assert not all_users_exist([member.id, 99999])
    assert count_existing_users([]) == 0
