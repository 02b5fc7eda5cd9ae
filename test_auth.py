# test_auth.py

from datetime import datetime, timedelta
from flask_jwt_extended import decode_token
from conftest import auth_header, register, login, ADMIN_EMAIL, USER_PASSWORD
from database import db
from demiland.auth import accounts
from demiland.models import User, UserSession, UserFavorite, Product
from demiland.utils import check_hashed_password


def test_register_returns_user_and_token(app, client):
    response = register(client, email='a@x.com', password='secret1', first_name='A', last_name='X')
    assert response.status_code == 201
    data = response.get_json()['data']
    assert data['user']['email'] == 'a@x.com'
    assert data['user']['role'] == 'user'
    assert data['user']['email_verified'] is True
    assert 'password_hash' not in data['user']

    with app.app_context():
        claims = decode_token(data['token'])
        assert claims['role'] == 'user'
        assert claims['userId'] == data['user']['id']
        stored = db.session.get(User, data['user']['id'])
        assert stored.password_hash != 'secret1'
        assert check_hashed_password(stored.password_hash, 'secret1')


def test_register_rejects_duplicate_email(client):
    register(client, email='dup@x.com')
    response = register(client, email='dup@x.com')
    assert response.status_code == 400
    assert response.get_json()['message'] == 'User already exists with this email'


def test_register_requires_all_fields(client):
    response = client.post('/api/auth/register', json={'email': 'a@x.com', 'password': 'secret1'})
    assert response.status_code == 400
    body = response.get_json()
    assert body['success'] is False
    assert body['message'] == 'All fields are required'


def test_login_returns_token(client, customer):
    response = login(client, 'a@x.com', USER_PASSWORD)
    assert response.status_code == 200
    data = response.get_json()['data']
    assert data['token']
    assert 'password_hash' not in data['user']
    assert data['user']['last_login'] is not None


def test_login_failures_are_indistinguishable(client, customer):
    wrong_password = login(client, 'a@x.com', 'not-the-password')
    unknown_email = login(client, 'nobody@x.com', USER_PASSWORD)
    assert wrong_password.status_code == unknown_email.status_code == 401
    assert wrong_password.get_json() == unknown_email.get_json()
    assert wrong_password.get_json()['message'] == 'Invalid email or password'


def test_inactive_account_cannot_login(app, client, admin, make_user):
    user_id, _ = make_user('sleepy@x.com')
    _, admin_token = admin
    client.put(f'/api/auth/users/{user_id}', json={'is_active': False}, headers=auth_header(admin_token))

    response = login(client, 'sleepy@x.com', USER_PASSWORD)
    assert response.status_code == 401
    assert response.get_json()['message'] == 'Invalid email or password'


def test_login_requires_email_and_password(client):
    response = client.post('/api/auth/login', json={'email': 'a@x.com'})
    assert response.status_code == 400
    assert response.get_json()['message'] == 'Email and password are required'


def test_bearer_routes_require_token(client):
    for method, path in [
        ('get', '/api/auth/profile'),
        ('put', '/api/auth/profile'),
        ('put', '/api/auth/change-password'),
        ('get', '/api/auth/verify'),
        ('post', '/api/auth/logout'),
        ('get', '/api/users/favorites'),
        ('post', '/api/products'),
    ]:
        response = getattr(client, method)(path, json={})
        assert response.status_code == 401, path
        assert response.get_json()['message'] == 'Access token required'


def test_garbage_token_is_rejected(client):
    response = client.get('/api/auth/profile', headers=auth_header('not.a.token'))
    assert response.status_code == 401
    assert response.get_json()['message'] == 'Invalid or expired token'


def test_verify_echoes_principal(client, customer):
    user_id, token = customer
    response = client.get('/api/auth/verify', headers=auth_header(token))
    assert response.status_code == 200
    assert response.get_json()['data'] == {'userId': user_id, 'email': 'a@x.com', 'role': 'user'}


def test_profile_round_trip(client, customer):
    _, token = customer
    response = client.put(
        '/api/auth/profile',
        json={'firstName': 'Amara', 'phone': '555-0100', 'role': 'admin'},
        headers=auth_header(token),
    )
    assert response.status_code == 200
    data = response.get_json()['data']
    assert data['first_name'] == 'Amara'
    assert data['phone'] == '555-0100'
    assert data['role'] == 'user'

    profile = client.get('/api/auth/profile', headers=auth_header(token)).get_json()['data']
    assert profile['first_name'] == 'Amara'
    assert profile['last_name'] == 'X'


def test_profile_update_rejects_empty_payload(client, customer):
    _, token = customer
    response = client.put('/api/auth/profile', json={}, headers=auth_header(token))
    assert response.status_code == 400
    assert response.get_json()['message'] == 'No fields to update'


def test_change_password_with_wrong_current_keeps_hash(app, client, customer):
    user_id, token = customer
    with app.app_context():
        before = db.session.get(User, user_id).password_hash

    response = client.put(
        '/api/auth/change-password',
        json={'currentPassword': 'wrong', 'newPassword': 'brand-new'},
        headers=auth_header(token),
    )
    assert response.status_code == 400
    assert response.get_json()['message'] == 'Current password is incorrect'
    with app.app_context():
        assert db.session.get(User, user_id).password_hash == before
    assert login(client, 'a@x.com', USER_PASSWORD).status_code == 200


def test_change_password(client, customer):
    _, token = customer
    response = client.put(
        '/api/auth/change-password',
        json={'currentPassword': USER_PASSWORD, 'newPassword': 'brand-new'},
        headers=auth_header(token),
    )
    assert response.status_code == 200
    assert login(client, 'a@x.com', USER_PASSWORD).status_code == 401
    assert login(client, 'a@x.com', 'brand-new').status_code == 200


def test_logout_ends_session(client, customer):
    _, token = customer
    assert client.post('/api/auth/logout', headers=auth_header(token)).status_code == 200
    response = client.get('/api/auth/profile', headers=auth_header(token))
    assert response.status_code == 401
    assert response.get_json()['message'] == 'Invalid or expired token'


def test_expired_session_rejects_token(app, client, customer):
    user_id, token = customer
    with app.app_context():
        UserSession.query.filter_by(user_id=user_id).update({'expires_at': datetime.utcnow() - timedelta(minutes=1)})
        db.session.commit()
    assert client.get('/api/auth/profile', headers=auth_header(token)).status_code == 401


def test_deactivated_user_token_stops_working(client, customer, admin):
    user_id, token = customer
    _, admin_token = admin
    client.put(f'/api/auth/users/{user_id}', json={'is_active': False}, headers=auth_header(admin_token))
    assert client.get('/api/auth/profile', headers=auth_header(token)).status_code == 401


def test_clean_expired_sessions(app, customer):
    user_id, _ = customer
    with app.app_context():
        db.session.add(UserSession(
            user_id=user_id,
            session_token='stale-jti',
            expires_at=datetime.utcnow() - timedelta(days=1),
        ))
        db.session.commit()
        assert accounts.clean_expired_sessions() == 1
        assert UserSession.query.filter_by(session_token='stale-jti').first() is None
        assert UserSession.query.filter_by(user_id=user_id).count() == 1


# Admin account management

def test_admin_routes_reject_non_admins(client, customer):
    user_id, token = customer
    for method, path in [
        ('post', '/api/auth/admin/users'),
        ('get', '/api/auth/users'),
        ('put', f'/api/auth/users/{user_id}'),
        ('delete', f'/api/auth/users/{user_id}'),
        ('get', '/api/users'),
        ('put', f'/api/users/{user_id}/role'),
        ('post', '/api/products'),
        ('put', '/api/products/some-id'),
        ('delete', '/api/products/some-id'),
        ('get', '/api/analytics/events'),
    ]:
        response = getattr(client, method)(path, json={}, headers=auth_header(token))
        assert response.status_code == 403, path
        assert response.get_json()['message'] == 'Insufficient permissions'


def test_admin_creates_user(client, admin):
    _, admin_token = admin
    response = client.post('/api/auth/admin/users', json={
        'email': 'staff@x.com',
        'password': 'staffpass',
        'first_name': 'Staff',
        'last_name': 'Member',
        'role': 'admin',
    }, headers=auth_header(admin_token))
    assert response.status_code == 201
    data = response.get_json()['data']
    assert data['role'] == 'admin'
    assert 'password_hash' not in data
    assert login(client, 'staff@x.com', 'staffpass').status_code == 200


def test_admin_create_user_validation(client, admin):
    _, admin_token = admin
    missing = client.post('/api/auth/admin/users', json={'email': 'x@x.com'}, headers=auth_header(admin_token))
    assert missing.status_code == 400

    bad_role = client.post('/api/auth/admin/users', json={
        'email': 'x@x.com', 'password': 'p', 'first_name': 'X', 'last_name': 'Y', 'role': 'owner',
    }, headers=auth_header(admin_token))
    assert bad_role.status_code == 400
    assert bad_role.get_json()['message'] == 'Invalid role specified'

    duplicate = client.post('/api/auth/admin/users', json={
        'email': ADMIN_EMAIL, 'password': 'p', 'first_name': 'X', 'last_name': 'Y',
    }, headers=auth_header(admin_token))
    assert duplicate.status_code == 400
    assert duplicate.get_json()['message'] == 'User already exists with this email'


def test_admin_lists_users(client, admin, customer):
    _, admin_token = admin
    response = client.get('/api/auth/users', headers=auth_header(admin_token))
    assert response.status_code == 200
    users = response.get_json()['data']
    assert {u['email'] for u in users} == {ADMIN_EMAIL, 'a@x.com'}
    for user in users:
        assert 'password_hash' not in user
        assert user['status'] == 'active'
        assert user['name']


def test_admin_update_user(client, admin, customer):
    user_id, _ = customer
    _, admin_token = admin

    empty = client.put(f'/api/auth/users/{user_id}', json={'unknown': 1}, headers=auth_header(admin_token))
    assert empty.status_code == 400
    assert empty.get_json()['message'] == 'No valid fields to update'

    taken = client.put(f'/api/auth/users/{user_id}', json={'email': ADMIN_EMAIL}, headers=auth_header(admin_token))
    assert taken.status_code == 400

    response = client.put(
        f'/api/auth/users/{user_id}',
        json={'first_name': 'Renamed', 'password': 'reset-pass'},
        headers=auth_header(admin_token),
    )
    assert response.status_code == 200
    assert response.get_json()['data']['first_name'] == 'Renamed'
    assert login(client, 'a@x.com', 'reset-pass').status_code == 200

    missing = client.put('/api/auth/users/no-such-user', json={'first_name': 'X'}, headers=auth_header(admin_token))
    assert missing.status_code == 404


def test_admin_cannot_delete_self(app, client, admin):
    admin_id, admin_token = admin
    response = client.delete(f'/api/auth/users/{admin_id}', headers=auth_header(admin_token))
    assert response.status_code == 400
    assert response.get_json()['message'] == 'Cannot delete your own account'
    with app.app_context():
        assert db.session.get(User, admin_id) is not None


def test_admin_delete_user_cascades(app, client, admin, customer, make_product):
    user_id, token = customer
    _, admin_token = admin
    product_id = make_product()
    client.post(f'/api/users/favorites/{product_id}', headers=auth_header(token))
    with app.app_context():
        db.session.get(Product, product_id).created_by = user_id
        db.session.commit()

    response = client.delete(f'/api/auth/users/{user_id}', headers=auth_header(admin_token))
    assert response.status_code == 200

    with app.app_context():
        assert db.session.get(User, user_id) is None
        assert UserFavorite.query.filter_by(user_id=user_id).count() == 0
        assert UserSession.query.filter_by(user_id=user_id).count() == 0
        assert db.session.get(Product, product_id).created_by is None

    assert client.get('/api/auth/profile', headers=auth_header(token)).status_code == 401
    missing = client.delete(f'/api/auth/users/{user_id}', headers=auth_header(admin_token))
    assert missing.status_code == 404


def test_admin_password_reset_ends_sessions(client, admin, customer):
    user_id, token = customer
    _, admin_token = admin
    client.put(f'/api/auth/users/{user_id}', json={'password': 'reset-pass'}, headers=auth_header(admin_token))
    assert client.get('/api/auth/profile', headers=auth_header(token)).status_code == 401


def test_demotion_through_admin_update_applies_immediately(client, admin, make_user):
    _, admin_token = admin
    staff_id, staff_token = make_user('staff@x.com', role='admin')
    client.put(f'/api/auth/users/{staff_id}', json={'role': 'user'}, headers=auth_header(admin_token))
    assert client.get('/api/auth/users', headers=auth_header(staff_token)).status_code == 403


def test_unknown_email_still_checks_a_password_hash(client, customer, monkeypatch):
    checked = []
    original = accounts.check_hashed_password

    def recording_check(hashed, password):
        checked.append(hashed)
        return original(hashed, password)

    monkeypatch.setattr(accounts, 'check_hashed_password', recording_check)
    response = login(client, 'nobody@x.com', USER_PASSWORD)
    assert response.status_code == 401
    assert len(checked) == 1
    assert checked[0]
