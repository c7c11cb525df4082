"""
Patient lifecycle: admission, transfer between wards and discharge.

The capacity rule is checked while the target ward row is locked with
``select_for_update`` so concurrent admissions into the same ward are
serialised by the database.  A patient with ``discharged_at`` set is
never modified again.
"""
from __future__ import annotations

import logging
from datetime import date
from typing import Optional

from django.db import transaction
from django.db.models import Q
from django.utils import timezone
from rest_framework.exceptions import NotFound

from inpatient.exceptions import Conflict, RuleViolation
from inpatient.models import Patient, Team, Ward
from inpatient.realtime.broadcast import broadcast_refresh
from inpatient.services.audit import log_action
from inpatient.services.tables import iso, order_queryset, paginate

logger = logging.getLogger(__name__)

PATIENT_SORTS = {
    'name': 'name',
    'admissionDate': 'admission_date',
    'dob': 'dob',
    'dischargedAt': 'discharged_at',
}


def _lock_ward(ward_id: int) -> Ward:
    ward = Ward.objects.select_for_update().filter(id=ward_id).first()
    if ward is None:
        raise RuleViolation('Selected ward does not exist')
    return ward


def check_placement(ward: Ward, gender: str, exclude_patient_id: Optional[int] = None) -> None:
    """Raise unless ``ward`` can take one more patient of ``gender``."""
    if not ward.accepts(gender):
        raise RuleViolation(f'This ward only accepts {ward.gender_type} patients')
    if ward.occupancy(exclude_patient_id=exclude_patient_id) >= ward.capacity:
        raise Conflict(f'Ward is at full capacity ({ward.capacity})')


def _get_patient(patient_id: int, *, lock: bool = False) -> Patient:
    qs = Patient.objects.select_for_update() if lock else Patient.objects.all()
    patient = qs.filter(id=patient_id).first()
    if patient is None:
        raise NotFound('Patient not found')
    return patient


@transaction.atomic
def admit_patient(actor, *, name: str, gender: str, ward_id: int, team_id: int,
                  dob: Optional[date] = None, request=None) -> Patient:
    ward = _lock_ward(ward_id)
    check_placement(ward, gender)
    team = Team.objects.filter(id=team_id).first()
    if team is None:
        raise RuleViolation('Selected team does not exist')

    patient = Patient.objects.create(name=name, dob=dob, gender=gender, ward=ward, team=team)
    log_action(
        user=actor, action='admit_patient', entity_type='patient', entity_id=patient.id,
        details={
            'patientName': patient.name,
            'gender': patient.gender,
            'wardId': ward.id,
            'wardName': ward.name,
            'teamId': team.id,
            'teamCode': team.code,
        },
        request=request,
    )
    broadcast_refresh('patients', 'wards', 'teams')
    logger.info('patient %s admitted to ward %s', patient.id, ward.id)
    return patient


@transaction.atomic
def transfer_patient(actor, *, patient_id: int, new_ward_id: int, request=None) -> Patient:
    patient = _get_patient(patient_id, lock=True)
    if patient.is_discharged:
        raise Conflict('Cannot transfer a discharged patient')
    if patient.ward_id == new_ward_id:
        raise RuleViolation('Patient is already in this ward')
    ward = _lock_ward(new_ward_id)
    check_placement(ward, patient.gender, exclude_patient_id=patient.id)

    old_ward = patient.ward
    patient.ward = ward
    patient.save(update_fields=['ward'])
    log_action(
        user=actor, action='transfer_patient', entity_type='patient', entity_id=patient.id,
        details={
            'patientName': patient.name,
            'fromWardId': old_ward.id if old_ward else None,
            'fromWardName': old_ward.name if old_ward else None,
            'toWardId': ward.id,
            'toWardName': ward.name,
        },
        request=request,
    )
    broadcast_refresh('patients', 'wards')
    logger.info('patient %s moved to ward %s', patient.id, ward.id)
    return patient


@transaction.atomic
def discharge_patient(actor, *, patient_id: int, request=None) -> Patient:
    patient = _get_patient(patient_id, lock=True)
    if patient.is_discharged:
        raise Conflict('Patient is already discharged')
    patient.discharged_at = timezone.now()
    patient.save(update_fields=['discharged_at'])
    log_action(
        user=actor, action='discharge_patient', entity_type='patient', entity_id=patient.id,
        details={
            'patientName': patient.name,
            'wardId': patient.ward_id,
            'teamId': patient.team_id,
            'dischargedAt': iso(patient.discharged_at),
        },
        request=request,
    )
    broadcast_refresh('patients', 'wards', 'teams')
    logger.info('patient %s discharged', patient.id)
    return patient


def patient_row(p: Patient) -> dict:
    return {
        'id': p.id,
        'name': p.name,
        'dob': iso(p.dob),
        'gender': p.gender,
        'wardId': p.ward_id,
        'wardName': p.ward.name if p.ward else None,
        'teamId': p.team_id,
        'teamName': p.team.name if p.team else None,
        'teamCode': p.team.code if p.team else None,
        'admissionDate': iso(p.admission_date),
        'dischargedAt': iso(p.discharged_at),
    }


def paginate_patients(params: dict) -> dict:
    qs = Patient.objects.select_related('ward', 'team')
    status = params.get('status', 'current')
    if status == 'current':
        qs = qs.filter(discharged_at__isnull=True)
    elif status == 'discharged':
        qs = qs.filter(discharged_at__isnull=False)
    term = params.get('filter')
    if term:
        qs = qs.filter(Q(name__icontains=term))
    if params.get('ward'):
        qs = qs.filter(ward_id=params['ward'])
    if params.get('team'):
        qs = qs.filter(team_id=params['team'])
    if params.get('startDate'):
        qs = qs.filter(admission_date__date__gte=params['startDate'])
    if params.get('endDate'):
        qs = qs.filter(admission_date__date__lte=params['endDate'])
    qs = order_queryset(qs, PATIENT_SORTS, params.get('sortBy'), params['sortOrder'], default='admissionDate')
    return paginate(qs, params['page'], params['pageSize'], patient_row)


def patient_detail(patient_id: int) -> dict:
    patient = Patient.objects.select_related('ward', 'team').filter(id=patient_id).first()
    if patient is None:
        raise NotFound('Patient not found')
    treatments = (
        patient.treatments.select_related('doctor__team')
        .order_by('-treatment_date', '-id')
    )
    payload = patient_row(patient)
    payload['treatments'] = [
        {
            'id': t.id,
            'doctorId': t.doctor_id,
            'doctorName': t.doctor.name,
            'doctorGrade': t.doctor.grade,
            'teamName': t.doctor.team.name if t.doctor.team else None,
            'description': t.description,
            'notes': t.notes,
            'treatmentDate': iso(t.treatment_date),
            'createdAt': iso(t.created_at),
        }
        for t in treatments
    ]
    return payload
