import pytest
from django.contrib.admin.sites import site
from django.test import RequestFactory
from django.utils import timezone

from inpatient.models import Patient, User

pytestmark = pytest.mark.django_db


@pytest.fixture
def admin_request():
    request = RequestFactory().get('/admin/inpatient/patient/')
    request.user = User.objects.create_superuser(
        username='root', email='root@hospital.local', password='P@ssw0rd1',
    )
    return request


def test_patient_placement_is_read_only_in_admin(admin_request, wards, teams):
    patient = Patient.objects.create(name='John Smith', gender='male', ward=wards['male'], team=teams['card'])
    model_admin = site._registry[Patient]
    readonly = model_admin.get_readonly_fields(admin_request, patient)
    assert {'ward', 'team', 'discharged_at'} <= set(readonly)
    assert model_admin.has_change_permission(admin_request, patient)


def test_discharged_patient_cannot_be_edited_in_admin(admin_request, wards, teams):
    patient = Patient.objects.create(
        name='John Smith', gender='male', ward=wards['male'], team=teams['card'], discharged_at=timezone.now(),
    )
    model_admin = site._registry[Patient]
    assert not model_admin.has_change_permission(admin_request, patient)


def test_patients_are_admitted_through_the_api_only(admin_request):
    assert not site._registry[Patient].has_add_permission(admin_request)
