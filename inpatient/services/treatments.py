from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

from django.db import transaction
from django.db.models import Q
from django.utils import timezone
from rest_framework.exceptions import NotFound

from inpatient.exceptions import Conflict, RuleViolation
from inpatient.models import Doctor, Patient, TreatmentRecord
from inpatient.realtime.broadcast import broadcast_refresh
from inpatient.services.audit import log_action
from inpatient.services.tables import iso, order_queryset, paginate
from inpatient.services.teams import consultant_for, doctor_row

logger = logging.getLogger(__name__)

TREATMENT_SORTS = {
    'treatmentDate': 'treatment_date',
    'createdAt': 'created_at',
    'patientName': 'patient__name',
    'doctorName': 'doctor__name',
}


@transaction.atomic
def record_treatment(actor, *, patient_id: int, doctor_id: int, description: str,
                     notes: Optional[str] = None, treatment_date: Optional[datetime] = None,
                     request=None) -> TreatmentRecord:
    patient = Patient.objects.select_for_update().filter(id=patient_id).first()
    if patient is None:
        raise NotFound('Patient not found')
    if patient.is_discharged:
        raise Conflict('Cannot record treatment for discharged patient')
    doctor = Doctor.objects.filter(id=doctor_id).first()
    if doctor is None or doctor.team_id is None or doctor.team_id != patient.team_id:
        raise RuleViolation('Doctor and patient must be in the same team')

    record = TreatmentRecord.objects.create(
        patient=patient,
        doctor=doctor,
        description=description,
        notes=notes,
        treatment_date=treatment_date or timezone.now(),
    )
    log_action(
        user=actor, action='record_treatment', entity_type='treatment', entity_id=record.id,
        details={
            'patientId': patient.id,
            'patientName': patient.name,
            'doctorId': doctor.id,
            'doctorName': doctor.name,
            'description': description,
            'notes': notes,
        },
        request=request,
    )
    broadcast_refresh('treatments', 'patients')
    logger.info('treatment %s recorded for patient %s by doctor %s', record.id, patient.id, doctor.id)
    return record


def patient_summary(patient_id: int) -> dict:
    """Team code, consultant and the doctors who have treated the patient."""
    patient = Patient.objects.select_related('team').filter(id=patient_id).first()
    if patient is None:
        raise NotFound('Patient not found')
    if patient.is_discharged:
        raise Conflict('Patient is discharged')
    if patient.team is None:
        raise RuleViolation('Patient not assigned to a team')
    consultant = consultant_for(patient.team)
    treating = (
        Doctor.objects.filter(treatments__patient=patient)
        .distinct()
        .order_by('name')
    )
    return {
        'patientId': patient.id,
        'teamCode': patient.team.code,
        'consultantName': consultant.name if consultant else None,
        'doctors': [{'id': d.id, 'name': d.name, 'grade': d.grade} for d in treating],
    }


def doctors_for_patient(patient_id: int) -> list[dict]:
    patient = Patient.objects.filter(id=patient_id).first()
    if patient is None:
        raise NotFound('Patient not found')
    if patient.team_id is None:
        return []
    qs = Doctor.objects.filter(team_id=patient.team_id).select_related('team').order_by('grade', 'name')
    return [doctor_row(d) for d in qs]


def treatment_row(t: TreatmentRecord) -> dict:
    p = t.patient
    return {
        'id': t.id,
        'patientId': p.id,
        'patientName': p.name,
        'doctorId': t.doctor_id,
        'doctorName': t.doctor.name,
        'doctorGrade': t.doctor.grade,
        'teamName': p.team.name if p.team else None,
        'wardName': p.ward.name if p.ward else None,
        'description': t.description,
        'notes': t.notes,
        'treatmentDate': iso(t.treatment_date),
        'createdAt': iso(t.created_at),
    }


def paginate_treatments(params: dict) -> dict:
    qs = TreatmentRecord.objects.select_related('patient__team', 'patient__ward', 'doctor')
    term = params.get('filter')
    if term:
        qs = qs.filter(Q(patient__name__icontains=term) | Q(doctor__name__icontains=term))
    qs = order_queryset(qs, TREATMENT_SORTS, params.get('sortBy'), params['sortOrder'], default='treatmentDate')
    return paginate(qs, params['page'], params['pageSize'], treatment_row)
