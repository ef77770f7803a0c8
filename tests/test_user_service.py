import pytest
from werkzeug.security import check_password_hash

from pos_terminal.errors import AuthenticationError, UserNotFoundError, ValidationError
from pos_terminal.models import Role
from pos_terminal.seed_data import DEMO_PASSWORD


@pytest.fixture
def users(container):
    return container.user_service


def test_demo_users_authenticate(users):
    for username, role in (('admin', Role.ADMIN), ('cashier1', Role.CASHIER), ('manager1', Role.MANAGER)):
        assert users.authenticate(username, DEMO_PASSWORD).role == role


@pytest.mark.parametrize('username, password', [
    ('admin', 'wrong'),
    ('nobody', DEMO_PASSWORD),
    ('', ''),
])
def test_authenticate_rejects(users, username, password):
    with pytest.raises(AuthenticationError):
        users.authenticate(username, password)


def test_password_is_hashed(users):
    user = users.create_user('cashier2', 'c2@pos.com', 'cashier', 'secret1')

    assert user.password_hash != 'secret1'
    assert check_password_hash(user.password_hash, 'secret1')
    assert 'password_hash' not in user.to_dict()


@pytest.mark.parametrize('username, email, role, password', [
    ('', 'a@b.c', 'cashier', 'secret1'),
    ('new', 'a@b.c', 'owner', 'secret1'),
    ('new', 'a@b.c', 'cashier', '123'),
    ('admin', 'a@b.c', 'cashier', 'secret1'),
    (42, 'a@b.c', 'cashier', 'secret1'),
    ('new', 42, 'cashier', 'secret1'),
])
def test_create_user_validation(users, username, email, role, password):
    with pytest.raises(ValidationError):
        users.create_user(username, email, role, password)
    assert len(users.get_users()) == 3


def test_update_user(users):
    cashier = users.get_user_by_username('cashier1')

    updated = users.update_user(cashier.id, email='new@pos.com', role='manager')

    assert updated.email == 'new@pos.com'
    assert updated.role == Role.MANAGER
    assert updated.username == 'cashier1'


def test_update_user_invalid_role_changes_nothing(users):
    cashier = users.get_user_by_username('cashier1')

    with pytest.raises(ValidationError):
        users.update_user(cashier.id, username='renamed', role='owner')

    assert users.get_user(cashier.id).username == 'cashier1'


def test_update_user_taken_username(users):
    cashier = users.get_user_by_username('cashier1')
    with pytest.raises(ValidationError):
        users.update_user(cashier.id, username='admin')


@pytest.mark.parametrize('changes', [{'email': 123}, {'username': 7}])
def test_update_user_rejects_non_text_fields(users, changes):
    cashier = users.get_user_by_username('cashier1')

    with pytest.raises(ValidationError):
        users.update_user(cashier.id, role='manager', **changes)

    unchanged = users.get_user(cashier.id)
    assert (unchanged.username, unchanged.role) == ('cashier1', Role.CASHIER)


def test_delete_user(users):
    manager = users.get_user_by_username('manager1')
    users.delete_user(manager.id)

    with pytest.raises(UserNotFoundError):
        users.delete_user(manager.id)


def test_change_password(users):
    cashier = users.get_user_by_username('cashier1')

    with pytest.raises(ValidationError):
        users.change_password(cashier.id, 'newpass1', 'newpass2')
    with pytest.raises(ValidationError):
        users.change_password(cashier.id, 'short', 'short')

    users.change_password(cashier.id, 'newpass1', 'newpass1')
    assert users.authenticate('cashier1', 'newpass1').id == cashier.id


def test_roles_are_flat(users):
    assert users.check_permission('admin', [Role.ADMIN, Role.MANAGER])
    assert users.check_permission(Role.CASHIER, ['admin', 'cashier'])
    assert not users.check_permission('admin', [Role.CASHIER])
    assert not users.check_permission('manager', [Role.ADMIN])
    assert not users.check_permission(None, [Role.ADMIN])
    assert not users.check_permission('owner', [Role.ADMIN])
