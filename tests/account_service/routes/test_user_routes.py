import pytest

from account_service.models.user import User, UserRole


@pytest.fixture
def admin(make_user):
    return make_user(email='admin@x.com', name='Admin', role=UserRole.ADMIN)


def test_register_without_identifier_returns_issues(client) -> None:
    response = client.post('/users/register', json={'name': 'Nobody', 'password': 'secret1'})

    assert response.status_code == 400
    assert [issue['path'] for issue in response.json()['issues']] == ['email', 'phone']


def test_register_rejects_malformed_email(client) -> None:
    response = client.post('/users/register', json={'email': 'not-an-email', 'password': 'secret1'})

    assert response.status_code == 400
    assert response.json()['issues'][0]['path'] == 'email'


def test_me_returns_profile(client, make_user, auth_headers) -> None:
    user = make_user(name='Alice')

    response = client.get('/users/me', headers=auth_headers(user))

    assert response.status_code == 200
    data = response.json()['data']
    assert data['name'] == 'Alice'
    assert 'password' not in data


def test_update_me_replaces_avatar_and_cleans_up_old_file(client, db, make_user, auth_headers, monkeypatch) -> None:
    deleted = []
    monkeypatch.setattr('account_service.storage.files.delete_file', deleted.append)
    user = make_user(avatar='avatars/old.png')

    response = client.patch('/users/me', json={'avatar': 'avatars/new.png', 'name': 'Al'}, headers=auth_headers(user))

    assert response.status_code == 200
    assert response.json()['data']['avatar'] == 'avatars/new.png'
    assert response.json()['data']['name'] == 'Al'
    assert deleted == ['avatars/old.png']


def test_list_users_requires_admin(client, make_user, auth_headers) -> None:
    user = make_user(role=UserRole.USER)

    response = client.get('/users', headers=auth_headers(user))

    assert response.status_code == 403


def test_list_users_returns_pagination_meta(client, make_user, admin, auth_headers) -> None:
    for index in range(4):
        make_user(email=f'user{index}@x.com', name=f'User {index}')

    response = client.get('/users', params={'page': 2, 'limit': 2, 'omit': 'phone,avatar'}, headers=auth_headers(admin))

    body = response.json()
    assert response.status_code == 200
    assert body['meta'] == {'pagination': {'page': 2, 'limit': 2, 'total': 5, 'totalPages': 3}}
    assert len(body['data']) == 2
    assert all('phone' not in user and 'password' not in user for user in body['data'])


def test_list_users_search_and_role_filter(client, make_user, admin, auth_headers) -> None:
    make_user(email='bob@x.com', name='Bob Builder', role=UserRole.USER)
    make_user(email='bobby@x.com', name='Bobby', role=UserRole.UNVERIFIED)

    response = client.get('/users', params={'search': 'bob', 'role': 'user'}, headers=auth_headers(admin))

    assert [user['email'] for user in response.json()['data']] == ['bob@x.com']


def test_list_users_rejects_unknown_omit_field(client, admin, auth_headers) -> None:
    response = client.get('/users', params={'omit': 'password'}, headers=auth_headers(admin))

    assert response.status_code == 400


def test_count_users_by_role(client, make_user, admin, auth_headers) -> None:
    make_user(email='u1@x.com', role=UserRole.USER)
    make_user(email='u2@x.com', role=UserRole.UNVERIFIED)

    response = client.get('/users/count', headers=auth_headers(admin))

    assert response.json()['data'] == {'admin': 1, 'user': 1, 'unverified': 1}


def test_get_user_by_id(client, make_user, admin, auth_headers) -> None:
    user = make_user(email='u1@x.com')

    found = client.get(f'/users/{user.id}', headers=auth_headers(admin))
    missing = client.get('/users/9999', headers=auth_headers(admin))

    assert found.json()['data']['email'] == 'u1@x.com'
    assert missing.status_code == 404
    assert missing.json() == {'statusCode': 404, 'message': "User doesn't exist"}


def test_delete_user(client, db, make_user, admin, auth_headers, monkeypatch) -> None:
    deleted_files = []
    monkeypatch.setattr('account_service.storage.files.delete_file', deleted_files.append)
    user_id = make_user(email='u1@x.com', avatar='avatars/u1.png').id

    response = client.delete(f'/users/{user_id}', headers=auth_headers(admin))
    again = client.delete(f'/users/{user_id}', headers=auth_headers(admin))

    assert response.status_code == 200
    assert db.get(User, user_id) is None
    assert deleted_files == ['avatars/u1.png']
    assert again.status_code == 404
