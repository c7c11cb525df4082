import pytest
from django.core.cache import cache
from rest_framework.test import APIClient

from inpatient.models import Doctor, Team, TeamConsultant, User, Ward


@pytest.fixture(autouse=True)
def _clear_cache():
    # throttle counters and the dashboard live in the cache
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def admin_user(db):
    return User.objects.create_user(
        username='admin1', email='admin1@hospital.local', password='P@ssw0rd1', role=User.ROLE_ADMIN,
    )


@pytest.fixture
def superadmin_user(db):
    return User.objects.create_user(
        username='super1', email='super1@hospital.local', password='P@ssw0rd1', role=User.ROLE_SUPERADMIN,
    )


@pytest.fixture
def admin_client(admin_user):
    client = APIClient()
    client.force_authenticate(user=admin_user)
    return client


@pytest.fixture
def super_client(superadmin_user):
    client = APIClient()
    client.force_authenticate(user=superadmin_user)
    return client


@pytest.fixture
def wards(db):
    return {
        'male': Ward.objects.create(name='Male Ward A', gender_type='male', capacity=3),
        'female': Ward.objects.create(name='Female Ward A', gender_type='female', capacity=3),
        'mixed': Ward.objects.create(name='Mixed Ward', gender_type='mixed', capacity=2),
        'tiny': Ward.objects.create(name='Side Room', gender_type='mixed', capacity=1),
    }


@pytest.fixture
def teams(db):
    card = Team.objects.create(code='CARD', name='Cardiology')
    neur = Team.objects.create(code='NEUR', name='Neurology')
    return {'card': card, 'neur': neur}


@pytest.fixture
def doctors(teams):
    johnson = Doctor.objects.create(name='Dr. Sarah Johnson', grade='consultant', team=teams['card'])
    TeamConsultant.objects.create(team=teams['card'], doctor=johnson)
    return {
        'card_consultant': johnson,
        'card_junior': Doctor.objects.create(name='Dr. Michael Chen', grade='junior1', team=teams['card']),
        'neur_junior': Doctor.objects.create(name='Dr. Lisa Brown', grade='junior1', team=teams['neur']),
        'floating': Doctor.objects.create(name='Dr. Free Agent', grade='junior2', team=None),
    }
