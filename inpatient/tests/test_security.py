import pytest
from django.urls import reverse
from rest_framework.authtoken.models import Token
from rest_framework.test import APIClient

from inpatient.models import AuditLog

pytestmark = pytest.mark.django_db


def login(client, email, password):
    return client.post(reverse('login'), {'email': email, 'password': password}, format='json')


def test_login_returns_session_token_and_jwt(admin_user):
    client = APIClient()
    r = login(client, 'ADMIN1@hospital.local', 'P@ssw0rd1')
    assert r.status_code == 200
    assert r.data['ok'] is True
    assert r.data['token'] and r.data['jwt_access'] and r.data['jwt_refresh']
    assert r.data['user']['role'] == 'admin'
    # session cookie alone is enough for the browser UI
    me = client.get(reverse('me'))
    assert me.status_code == 200
    assert me.data['user']['email'] == 'admin1@hospital.local'
    assert AuditLog.objects.filter(action='login', user=admin_user, details__result='ok').exists()


def test_failed_login_is_generic_and_audited(admin_user):
    client = APIClient()
    for email in ('admin1@hospital.local', 'nobody@hospital.local'):
        r = login(client, email, 'wrong-password')
        assert r.status_code == 401
        assert r.data['error']['message'] == 'Invalid email or password'
    failures = AuditLog.objects.filter(action='login', user__isnull=True)
    assert failures.count() == 2


def test_login_records_client_metadata(admin_user):
    client = APIClient(HTTP_USER_AGENT='Mozilla/5.0 (Windows NT 10.0; Win64; x64) Chrome/120.0.0.0 Safari/537.36')
    login(client, 'admin1@hospital.local', 'P@ssw0rd1')
    entry = AuditLog.objects.get(action='login')
    assert entry.ip == '127.0.0.1'
    assert 'Chrome/120' in entry.user_agent


def test_token_and_jwt_authenticate(admin_user):
    r = login(APIClient(), 'admin1@hospital.local', 'P@ssw0rd1')

    token_client = APIClient()
    token_client.credentials(HTTP_AUTHORIZATION=f"Token {r.data['token']}")
    assert token_client.get(reverse('patients')).status_code == 200

    jwt_client = APIClient()
    jwt_client.credentials(HTTP_AUTHORIZATION=f"Bearer {r.data['jwt_access']}")
    assert jwt_client.get(reverse('patients')).status_code == 200


def test_refresh_issues_new_access_token(admin_user):
    r = login(APIClient(), 'admin1@hospital.local', 'P@ssw0rd1')
    resp = APIClient().post(reverse('token-refresh'), {'refresh': r.data['jwt_refresh']}, format='json')
    assert resp.status_code == 200
    assert resp.data['jwt_access']


def test_logout_revokes_token(admin_user):
    r = login(APIClient(), 'admin1@hospital.local', 'P@ssw0rd1')
    client = APIClient()
    client.credentials(HTTP_AUTHORIZATION=f"Token {r.data['token']}")
    out = client.post(reverse('logout'), {'refresh': r.data['jwt_refresh']}, format='json')
    assert out.status_code == 200
    assert not Token.objects.filter(user=admin_user).exists()
    assert client.get(reverse('me')).status_code == 401
    assert AuditLog.objects.filter(action='logout', user=admin_user).exists()


def test_anonymous_requests_are_rejected(db):
    client = APIClient()
    for name in ('patients', 'wards', 'teams', 'doctors', 'treatments', 'dashboard', 'audit-logs'):
        r = client.get(reverse(name))
        assert r.status_code == 401, name
        assert r.data['ok'] is False


def test_admin_cannot_manage_structure(admin_client, teams):
    assert admin_client.post(reverse('wards'), {'name': 'W', 'genderType': 'male', 'capacity': 3},
                             format='json').status_code == 403
    assert admin_client.post(reverse('teams'), {'code': 'X', 'name': 'X'}, format='json').status_code == 403
    assert admin_client.post(reverse('doctors'), {'name': 'Dr. X', 'grade': 'junior1'},
                             format='json').status_code == 403
    assert admin_client.post(reverse('team-consultant', args=[teams['card'].id]), {'doctorId': 1},
                             format='json').status_code == 403
    assert admin_client.get(reverse('audit-logs')).status_code == 403
    # reading is fine
    assert admin_client.get(reverse('wards')).status_code == 200
    assert admin_client.get(reverse('teams')).status_code == 200


def test_superadmin_reads_audit_log(super_client, superadmin_user, wards):
    super_client.post(reverse('wards'), {'name': 'Side Room 2', 'genderType': 'mixed', 'capacity': 1},
                      format='json')
    r = super_client.get(reverse('audit-logs'), {'action': 'create_ward'})
    assert r.status_code == 200
    row = r.data['data'][0]
    assert row['entityType'] == 'ward'
    assert row['userEmail'] == 'super1@hospital.local'
    assert row['userRole'] == 'superadmin'
    assert r.data['pagination']['total'] == 1


def test_free_text_is_sanitised(super_client):
    r = super_client.post(reverse('wards'), {'name': '<script>x</script>East', 'genderType': 'male',
                                             'capacity': 4}, format='json')
    assert r.status_code == 201
    assert '<' not in r.data['data']['name']


def test_healthz_is_public(db):
    r = APIClient().get('/healthz')
    assert r.status_code == 200
    assert r.json() == {'ok': True, 'db': True}
