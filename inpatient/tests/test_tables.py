import pytest
from datetime import timedelta
from django.urls import reverse
from django.utils import timezone

from inpatient.models import Patient, TreatmentRecord

pytestmark = pytest.mark.django_db


@pytest.fixture
def ward_full_of_patients(wards, teams):
    ward = wards['male']
    ward.capacity = 20
    ward.save()
    now = timezone.now()
    for i in range(12):
        Patient.objects.create(
            name=f'Patient {i:02d}', gender='male', ward=ward,
            team=teams['card'] if i % 2 else teams['neur'],
            admission_date=now - timedelta(days=i),
        )
    return ward


def test_default_page(admin_client, ward_full_of_patients):
    r = admin_client.get(reverse('patients'))
    assert r.status_code == 200
    assert r.data['pagination'] == {'total': 12, 'page': 1, 'pageSize': 10, 'pages': 2}
    # newest admission first by default
    assert r.data['data'][0]['name'] == 'Patient 00'


def test_second_page_sorted_by_name(admin_client, ward_full_of_patients):
    r = admin_client.get(reverse('patients'), {'page': 2, 'pageSize': 5, 'sortBy': 'name', 'sortOrder': 'asc'})
    assert [p['name'] for p in r.data['data']] == [f'Patient {i:02d}' for i in range(5, 10)]
    assert r.data['pagination']['pages'] == 3


def test_filters(admin_client, ward_full_of_patients, teams):
    r = admin_client.get(reverse('patients'), {'filter': 'patient 1'})
    assert {p['name'] for p in r.data['data']} == {'Patient 10', 'Patient 11'}

    r = admin_client.get(reverse('patients'), {'team': teams['card'].id})
    assert r.data['pagination']['total'] == 6

    start = (timezone.now() - timedelta(days=2)).date().isoformat()
    r = admin_client.get(reverse('patients'), {'startDate': start})
    assert r.data['pagination']['total'] == 3


def test_discharged_patients_hidden_by_default(admin_client, ward_full_of_patients):
    Patient.objects.filter(name='Patient 00').update(discharged_at=timezone.now())
    assert admin_client.get(reverse('patients')).data['pagination']['total'] == 11
    r = admin_client.get(reverse('patients'), {'status': 'discharged'})
    assert [p['name'] for p in r.data['data']] == ['Patient 00']
    assert admin_client.get(reverse('patients'), {'status': 'all'}).data['pagination']['total'] == 12


def test_bad_table_params(admin_client, wards):
    r = admin_client.get(reverse('patients'), {'pageSize': 1000})
    assert r.status_code == 400
    assert r.data['error']['code'] == 'validation_error'
    r = admin_client.get(reverse('patients'), {'startDate': '2024-05-10', 'endDate': '2024-05-01'})
    assert r.status_code == 400


def test_ward_table_reports_occupancy(admin_client, ward_full_of_patients):
    r = admin_client.get(reverse('wards'), {'genderType': 'male'})
    row = r.data['data'][0]
    assert row['currentOccupancy'] == 12
    assert row['available'] == 8
    r = admin_client.get(reverse('wards'), {'sortBy': 'currentOccupancy', 'sortOrder': 'desc'})
    assert r.data['data'][0]['name'] == 'Male Ward A'


def test_team_table(admin_client, ward_full_of_patients, doctors):
    r = admin_client.get(reverse('teams'), {'hasConsultant': 'true'})
    assert [t['code'] for t in r.data['data']] == ['CARD']
    card = r.data['data'][0]
    assert card['doctorCount'] == 2
    assert card['activePatientCount'] == 6
    r = admin_client.get(reverse('teams'), {'hasConsultant': 'false'})
    assert [t['code'] for t in r.data['data']] == ['NEUR']


def test_doctor_table(admin_client, doctors, teams):
    r = admin_client.get(reverse('doctors'), {'teamId': 'unassigned'})
    assert [d['name'] for d in r.data['data']] == ['Dr. Free Agent']
    r = admin_client.get(reverse('doctors'), {'teamId': str(teams['card'].id), 'sortBy': 'name', 'sortOrder': 'asc'})
    assert [d['name'] for d in r.data['data']] == ['Dr. Michael Chen', 'Dr. Sarah Johnson']
    r = admin_client.get(reverse('doctors'), {'grade': 'consultant'})
    assert r.data['pagination']['total'] == 1
    r = admin_client.get(reverse('doctors'), {'teamId': 'somewhere'})
    assert r.status_code == 400


def test_treatment_table(admin_client, ward_full_of_patients, doctors):
    patient = Patient.objects.get(name='Patient 01')
    TreatmentRecord.objects.create(patient=patient, doctor=doctors['card_junior'], description='ECG')
    r = admin_client.get(reverse('treatments'), {'filter': 'chen'})
    row = r.data['data'][0]
    assert row['patientName'] == 'Patient 01'
    assert row['wardName'] == 'Male Ward A'
    assert row['teamName'] == 'Cardiology'
    assert admin_client.get(reverse('treatments'), {'filter': 'nobody'}).data['pagination']['total'] == 0
