# conftest.py

import pytest
from config import TestingConfig
from demiland import create_app
from demiland.auth import accounts
from demiland.products import catalog

ADMIN_EMAIL = 'admin@demiland.com'
ADMIN_PASSWORD = 'admin-secret'
USER_PASSWORD = 'secret1'


@pytest.fixture
def app():
    app = create_app(TestingConfig)
    yield app


@pytest.fixture
def client(app):
    return app.test_client()


def auth_header(token):
    return {'Authorization': f'Bearer {token}'}


def register(client, email='a@x.com', password=USER_PASSWORD, first_name='A', last_name='X'):
    return client.post('/api/auth/register', json={
        'email': email,
        'password': password,
        'firstName': first_name,
        'lastName': last_name,
    })


def login(client, email, password):
    return client.post('/api/auth/login', json={'email': email, 'password': password})


@pytest.fixture
def make_user(app, client):
    """Creates an account directly and returns (user_id, token) for it."""
    def _make_user(email, password=USER_PASSWORD, role='user', first_name='Test', last_name='User'):
        with app.app_context():
            user = accounts.create_user(email, password, first_name, last_name, role=role)
            user_id = user.id
        response = login(client, email, password)
        return user_id, response.get_json()['data']['token']
    return _make_user


@pytest.fixture
def admin(make_user):
    return make_user(ADMIN_EMAIL, ADMIN_PASSWORD, role='admin', first_name='Ada', last_name='Admin')


@pytest.fixture
def customer(client):
    response = register(client)
    data = response.get_json()['data']
    return data['user']['id'], data['token']


@pytest.fixture
def make_product(app):
    def _make_product(**fields):
        payload = {'name': 'Lash Kit', 'category': 'Eyes', 'price': 24.99}
        payload.update(fields)
        with app.app_context():
            return catalog.create_product(payload).id
    return _make_product
