import pytest
from django.urls import reverse
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import AccessToken

from core.services.registry import get_collection

pytestmark = pytest.mark.django_db


def login(client, email, password):
    return client.post(reverse('login_view'), {'email': email, 'password': password}, format='json')


def test_register_creates_pending_account_without_password_hash():
    client = APIClient()
    r = client.post(reverse('register_view'), {
        'email': 'New.Teacher@School.test', 'password': 'P@ssw0rd1', 'first_name': 'New',
    }, format='json')
    assert r.status_code == 201
    user = r.data['user']
    assert user['email'] == 'new.teacher@school.test'
    assert user['role'] == 'teacher'
    assert user['email_confirmed'] is False
    assert user['status'] == 'pending'
    assert 'password_hash' not in user and 'password' not in user
    claims = AccessToken(r.data['token'])
    assert claims['user_id'] == user['id']
    assert claims['email_confirmed'] is False


def test_admin_role_cannot_be_self_assigned():
    r = APIClient().post(reverse('register_view'), {
        'email': 'sneaky@school.test', 'password': 'P@ssw0rd1', 'role': 'admin',
    }, format='json')
    assert r.status_code == 400
    assert get_collection('users').find({'email': 'sneaky@school.test'}) == []


def test_non_admin_cannot_promote_themselves(make_account, client_for):
    teacher = make_account(email='climber@school.test')
    client = client_for(teacher)
    r = client.put(f"/api/users/{teacher['id']}", {'role': 'admin'}, format='json')
    assert r.status_code == 403
    assert get_collection('users').find_by_id(teacher['id'])['role'] == 'teacher'
    r = client.post('/api/users', {
        'email': 'second@school.test', 'role': 'admin', 'email_confirmed': True,
    }, format='json')
    assert r.status_code == 403
    assert get_collection('users').find({'email': 'second@school.test'}) == []
    # fields outside the account flags stay editable
    r = client.put(f"/api/users/{teacher['id']}", {'first_name': 'Ann'}, format='json')
    assert r.status_code == 200


def test_admin_confirms_accounts_through_users_route(api, make_account):
    pending = make_account(email='new@school.test', confirmed=False)
    r = api.put(f"/api/users/{pending['id']}", {'email_confirmed': True}, format='json')
    assert r.status_code == 200
    assert r.data['status'] == 'active'


def test_duplicate_email_is_rejected(make_account):
    make_account(email='dup@school.test')
    r = APIClient().post(reverse('register_view'), {'email': 'DUP@school.test', 'password': 'x'}, format='json')
    assert r.status_code == 400


def test_unconfirmed_account_is_gated_regardless_of_password(make_account):
    make_account(email='wait@school.test', confirmed=False)
    client = APIClient()
    for password in ('P@ssw0rd1', 'wrong'):
        r = login(client, 'wait@school.test', password)
        assert r.status_code == 403
        assert r.data['error']['message'] == 'awaiting confirmation'


def test_unconfirmed_admin_is_not_gated(make_account):
    make_account(email='boss@school.test', role='admin', confirmed=False)
    r = login(APIClient(), 'boss@school.test', 'P@ssw0rd1')
    assert r.status_code == 200


def test_login_returns_token_and_audits_attempts(make_account):
    account = make_account(email='t1@school.test')
    client = APIClient()
    assert login(client, 't1@school.test', 'nope').status_code == 400
    assert login(client, 'ghost@school.test', 'nope').status_code == 400
    r = login(client, 'T1@school.test', 'P@ssw0rd1')
    assert r.status_code == 200
    assert r.data['user']['id'] == account['id']
    assert 'password_hash' not in r.data['user']

    results = sorted(e['detail']['result'] for e in get_collection('audit_logs').find({'action': 'login'}))
    assert results == ['fail', 'fail', 'ok']

    client.credentials(HTTP_AUTHORIZATION=f"Bearer {r.data['token']}")
    me = client.get(reverse('me_view'))
    assert me.status_code == 200
    assert me.data['email'] == 't1@school.test'
    assert 'password_hash' not in me.data


def test_role_in_login_body_is_ignored(make_account):
    make_account(email='t2@school.test')
    r = APIClient().post(reverse('login_view'), {
        'email': 't2@school.test', 'password': 'P@ssw0rd1', 'role': 'admin',
    }, format='json')
    assert r.status_code == 200
    assert AccessToken(r.data['token'])['role'] == 'teacher'


def test_api_requires_bearer_token():
    client = APIClient()
    assert client.get('/api/students').status_code == 401
    client.credentials(HTTP_AUTHORIZATION='Bearer not-a-token')
    r = client.get('/api/students')
    assert r.status_code == 401
    assert r.data['ok'] is False


def test_unconfirmed_token_cannot_reach_collections(make_account, client_for):
    pending = make_account(email='p@school.test', confirmed=False)
    client = client_for(pending)
    r = client.get('/api/students')
    assert r.status_code == 403
    assert r.data['error']['message'] == 'awaiting confirmation'
    # but can still see who they are
    assert client.get(reverse('me_view')).status_code == 200


def test_confirmed_teacher_can_use_collections(make_account, client_for):
    teacher = make_account(email='ok@school.test')
    assert client_for(teacher).get('/api/students').status_code == 200


def test_public_routes_need_no_token():
    client = APIClient()
    assert client.get(reverse('health')).data == {'ok': True}
    assert client.get('/healthz').status_code == 200


def test_login_is_throttled(make_account):
    make_account(email='t3@school.test')
    client = APIClient()
    statuses = [login(client, 't3@school.test', 'wrong').status_code for _ in range(11)]
    assert statuses[:10] == [400] * 10
    assert statuses[10] == 429
