"""
Placement and lifecycle rules exercised directly through the services.
"""
import pytest
from rest_framework.exceptions import NotFound

from inpatient.exceptions import Conflict, RuleViolation
from inpatient.models import AuditLog, Doctor, Patient, TeamConsultant
from inpatient.services import patients, teams as team_svc, treatments

pytestmark = pytest.mark.django_db


def admit(user, ward, team, name='John Smith', gender='male'):
    return patients.admit_patient(user, name=name, gender=gender, ward_id=ward.id, team_id=team.id)


def test_admit_writes_audit_entry(admin_user, wards, teams):
    p = admit(admin_user, wards['male'], teams['card'])
    assert p.ward == wards['male'] and p.discharged_at is None
    entry = AuditLog.objects.get(action='admit_patient')
    assert entry.entity_type == 'patient' and entry.entity_id == p.id
    assert entry.user == admin_user
    assert entry.details['wardName'] == 'Male Ward A'


def test_gender_must_match_ward(admin_user, wards, teams):
    with pytest.raises(RuleViolation) as exc:
        admit(admin_user, wards['female'], teams['card'], gender='male')
    assert str(exc.value.detail) == 'This ward only accepts female patients'
    assert not Patient.objects.exists()


def test_mixed_ward_accepts_both(admin_user, wards, teams):
    admit(admin_user, wards['mixed'], teams['card'], name='A', gender='male')
    admit(admin_user, wards['mixed'], teams['card'], name='B', gender='female')
    assert wards['mixed'].occupancy() == 2


def test_full_ward_rejects_admission(admin_user, wards, teams):
    admit(admin_user, wards['tiny'], teams['card'], name='First')
    with pytest.raises(Conflict) as exc:
        admit(admin_user, wards['tiny'], teams['card'], name='Second')
    assert str(exc.value.detail) == 'Ward is at full capacity (1)'
    assert Patient.objects.count() == 1


def test_discharged_patients_free_their_bed(admin_user, wards, teams):
    first = admit(admin_user, wards['tiny'], teams['card'], name='First')
    patients.discharge_patient(admin_user, patient_id=first.id)
    second = admit(admin_user, wards['tiny'], teams['card'], name='Second')
    assert second.ward == wards['tiny']


def test_unknown_ward_and_team(admin_user, wards, teams):
    with pytest.raises(RuleViolation, match='Selected ward does not exist'):
        patients.admit_patient(admin_user, name='X', gender='male', ward_id=9999, team_id=teams['card'].id)
    with pytest.raises(RuleViolation, match='Selected team does not exist'):
        patients.admit_patient(admin_user, name='X', gender='male', ward_id=wards['male'].id, team_id=9999)


def test_transfer_checks_target_ward(admin_user, wards, teams):
    p = admit(admin_user, wards['male'], teams['card'])
    with pytest.raises(RuleViolation, match='only accepts female'):
        patients.transfer_patient(admin_user, patient_id=p.id, new_ward_id=wards['female'].id)
    admit(admin_user, wards['tiny'], teams['card'], name='Occupant')
    with pytest.raises(Conflict, match='full capacity'):
        patients.transfer_patient(admin_user, patient_id=p.id, new_ward_id=wards['tiny'].id)

    patients.transfer_patient(admin_user, patient_id=p.id, new_ward_id=wards['mixed'].id)
    p.refresh_from_db()
    assert p.ward == wards['mixed']
    entry = AuditLog.objects.get(action='transfer_patient')
    assert entry.details['fromWardId'] == wards['male'].id
    assert entry.details['toWardId'] == wards['mixed'].id


def test_transfer_to_same_ward_is_refused(admin_user, wards, teams):
    p = admit(admin_user, wards['male'], teams['card'])
    with pytest.raises(RuleViolation):
        patients.transfer_patient(admin_user, patient_id=p.id, new_ward_id=wards['male'].id)


def test_discharged_patient_is_frozen(admin_user, wards, teams, doctors):
    p = admit(admin_user, wards['male'], teams['card'])
    patients.discharge_patient(admin_user, patient_id=p.id)

    with pytest.raises(Conflict, match='Patient is already discharged'):
        patients.discharge_patient(admin_user, patient_id=p.id)
    with pytest.raises(Conflict, match='Cannot transfer a discharged patient'):
        patients.transfer_patient(admin_user, patient_id=p.id, new_ward_id=wards['mixed'].id)
    with pytest.raises(Conflict, match='Cannot record treatment for discharged patient'):
        treatments.record_treatment(
            admin_user, patient_id=p.id, doctor_id=doctors['card_junior'].id, description='Check-up',
        )
    assert AuditLog.objects.filter(action='discharge_patient').count() == 1


def test_missing_patient(admin_user, wards):
    with pytest.raises(NotFound):
        patients.discharge_patient(admin_user, patient_id=424242)
    with pytest.raises(NotFound):
        patients.transfer_patient(admin_user, patient_id=424242, new_ward_id=wards['male'].id)


def test_treatment_requires_same_team(admin_user, wards, teams, doctors):
    p = admit(admin_user, wards['male'], teams['card'])
    for doctor in (doctors['neur_junior'], doctors['floating']):
        with pytest.raises(RuleViolation, match='Doctor and patient must be in the same team'):
            treatments.record_treatment(admin_user, patient_id=p.id, doctor_id=doctor.id, description='ECG')

    record = treatments.record_treatment(
        admin_user, patient_id=p.id, doctor_id=doctors['card_junior'].id, description='ECG', notes='normal',
    )
    assert record.notes == 'normal'
    entry = AuditLog.objects.get(action='record_treatment')
    assert entry.details['doctorName'] == 'Dr. Michael Chen'
    assert entry.details['patientName'] == 'John Smith'


def test_patient_summary(admin_user, wards, teams, doctors):
    p = admit(admin_user, wards['male'], teams['card'])
    treatments.record_treatment(admin_user, patient_id=p.id, doctor_id=doctors['card_junior'].id, description='ECG')
    treatments.record_treatment(admin_user, patient_id=p.id, doctor_id=doctors['card_junior'].id, description='Echo')
    summary = treatments.patient_summary(p.id)
    assert summary['teamCode'] == 'CARD'
    assert summary['consultantName'] == 'Dr. Sarah Johnson'
    assert [d['name'] for d in summary['doctors']] == ['Dr. Michael Chen']

    patients.discharge_patient(admin_user, patient_id=p.id)
    with pytest.raises(Conflict):
        treatments.patient_summary(p.id)


def test_doctors_for_patient_lists_team_only(admin_user, wards, teams, doctors):
    p = admit(admin_user, wards['male'], teams['card'])
    names = {d['name'] for d in treatments.doctors_for_patient(p.id)}
    assert names == {'Dr. Sarah Johnson', 'Dr. Michael Chen'}


def test_consultant_needs_team(superadmin_user, teams):
    with pytest.raises(RuleViolation, match='Consultants must be assigned to a team'):
        team_svc.create_doctor(superadmin_user, name='Dr. No Team', grade='consultant')


def test_one_consultant_per_team(superadmin_user, teams, doctors):
    with pytest.raises(Conflict, match='Team already has a consultant'):
        team_svc.create_doctor(superadmin_user, name='Dr. Second', grade='consultant', team_id=teams['card'].id)
    assert not Doctor.objects.filter(name='Dr. Second').exists()

    doctor = team_svc.create_doctor(superadmin_user, name='Dr. Robert Wilson', grade='consultant',
                                    team_id=teams['neur'].id)
    assert TeamConsultant.objects.get(team=teams['neur']).doctor == doctor
    actions = set(AuditLog.objects.values_list('action', flat=True))
    assert {'create_doctor', 'assign_consultant'} <= actions


def test_assign_consultant(superadmin_user, teams, doctors):
    junior = doctors['neur_junior']
    with pytest.raises(RuleViolation, match='Only consultant-grade'):
        team_svc.assign_consultant(superadmin_user, team_id=teams['neur'].id, doctor_id=junior.id)

    free = Doctor.objects.create(name='Dr. Floating Consultant', grade='consultant')
    team_svc.assign_consultant(superadmin_user, team_id=teams['neur'].id, doctor_id=free.id)
    free.refresh_from_db()
    assert free.team == teams['neur']
    with pytest.raises(Conflict):
        team_svc.assign_consultant(superadmin_user, team_id=teams['neur'].id, doctor_id=free.id)


def test_team_code_is_unique(superadmin_user, teams):
    with pytest.raises(Conflict):
        team_svc.create_team(superadmin_user, code='card', name='Cardiology again')


def test_create_team_with_consultant(superadmin_user, teams):
    consultant = Doctor.objects.create(name='Dr. James Miller', grade='consultant')
    team = team_svc.create_team(superadmin_user, code='ORTH', name='Orthopedics', consultant_id=consultant.id)
    assert TeamConsultant.objects.get(team=team).doctor == consultant
    details = team_svc.team_details(team.id)
    assert details['team']['consultantName'] == 'Dr. James Miller'
    assert [d['name'] for d in details['doctors']] == ['Dr. James Miller']


def test_create_team_refuses_consultant_from_another_team(superadmin_user, teams):
    consultant = Doctor.objects.create(name='Dr. Robert Wilson', grade='consultant', team=teams['neur'])
    with pytest.raises(RuleViolation, match='Doctor belongs to a different team'):
        team_svc.create_team(superadmin_user, code='NEW', name='New Team', consultant_id=consultant.id)
    consultant.refresh_from_db()
    assert consultant.team == teams['neur']
    assert not TeamConsultant.objects.filter(doctor=consultant).exists()
    assert not AuditLog.objects.filter(action__in=['create_team', 'assign_consultant']).exists()


def test_assign_consultant_refuses_doctor_from_another_team(superadmin_user, teams):
    consultant = Doctor.objects.create(name='Dr. Robert Wilson', grade='consultant', team=teams['neur'])
    with pytest.raises(RuleViolation, match='Doctor belongs to a different team'):
        team_svc.assign_consultant(superadmin_user, team_id=teams['card'].id, doctor_id=consultant.id)
    consultant.refresh_from_db()
    assert consultant.team == teams['neur']
    assert not TeamConsultant.objects.exists()


def test_consultant_already_leading_is_reported(superadmin_user, teams, doctors):
    with pytest.raises(Conflict, match='Dr. Sarah Johnson already leads a team'):
        team_svc.assign_consultant(superadmin_user, team_id=teams['card'].id,
                                   doctor_id=doctors['card_consultant'].id)


def test_dashboard_cache_dropped_only_after_commit(admin_user, wards, teams, django_capture_on_commit_callbacks):
    from inpatient.services.dashboard import dashboard_stats

    assert dashboard_stats()['totalPatients'] == 0
    with django_capture_on_commit_callbacks(execute=False) as callbacks:
        admit(admin_user, wards['male'], teams['card'])
    # nothing has committed yet, so the cached figures stand
    assert dashboard_stats()['totalPatients'] == 0
    for callback in callbacks:
        callback()
    assert dashboard_stats()['totalPatients'] == 1
