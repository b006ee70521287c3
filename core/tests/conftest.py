import pytest
from django.core.cache import cache
from rest_framework.test import APIClient

from core.services import accounts, push, resources


@pytest.fixture(autouse=True)
def _isolate(monkeypatch):
    # throttling counters live in the cache
    cache.clear()
    push.registry.clear()
    monkeypatch.setattr(push, '_keys', None)
    yield
    push.registry.clear()


@pytest.fixture
def events(monkeypatch):
    """Notifications handed to the detached dispatcher, captured instead of sent."""
    sent = []
    monkeypatch.setattr(push, 'dispatch_detached', sent.append)
    return sent


@pytest.fixture
def make_account(db):
    def _make(email='teacher@school.test', role='teacher', confirmed=True, password='P@ssw0rd1', **extra):
        return resources.create_record('users', {
            'email': email,
            'password': password,
            'role': role,
            'email_confirmed': confirmed,
            'status': 'active' if confirmed else 'pending',
            **extra,
        })
    return _make


@pytest.fixture
def client_for():
    def _client(account):
        client = APIClient()
        client.credentials(HTTP_AUTHORIZATION=f'Bearer {accounts.issue_token(account)}')
        return client
    return _client


@pytest.fixture
def admin(make_account):
    return make_account(email='admin@school.test', role='admin')


@pytest.fixture
def api(admin, client_for, events):
    """Client authenticated as a confirmed admin; notifications captured."""
    return client_for(admin)
