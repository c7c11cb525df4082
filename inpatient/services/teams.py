"""
Teams, doctors and the one-consultant-per-team rule.

A consultant is recorded twice: the doctor's ``grade`` and a
:class:`~inpatient.models.TeamConsultant` row.  Every path that creates
that row locks the team first, so two requests naming the same team
cannot both pass the "team already has a consultant" check.
"""
from __future__ import annotations

import logging
from typing import Optional

from django.db import transaction
from django.db.models import Count, Exists, OuterRef, Q
from rest_framework.exceptions import NotFound

from inpatient.exceptions import Conflict, RuleViolation
from inpatient.models import Doctor, Patient, Team, TeamConsultant
from inpatient.realtime.broadcast import broadcast_refresh
from inpatient.services.audit import log_action
from inpatient.services.tables import iso, order_queryset, paginate

logger = logging.getLogger(__name__)

TEAM_SORTS = {
    'name': 'name',
    'code': 'code',
    'doctorCount': 'doctor_count',
    'activePatientCount': 'active_patient_count',
    'createdAt': 'created_at',
}

DOCTOR_SORTS = {
    'name': 'name',
    'grade': 'grade',
    'teamName': 'team__name',
    'teamCode': 'team__code',
}


def _lock_team(team_id: int) -> Team:
    team = Team.objects.select_for_update().filter(id=team_id).first()
    if team is None:
        raise RuleViolation('Selected team does not exist')
    return team


def _link_consultant(actor, team: Team, doctor: Doctor, request=None) -> TeamConsultant:
    """Caller must hold the lock on ``team``."""
    if TeamConsultant.objects.filter(team=team).exists():
        raise Conflict('Team already has a consultant')
    link = TeamConsultant.objects.create(team=team, doctor=doctor)
    log_action(
        user=actor, action='assign_consultant', entity_type='team', entity_id=team.id,
        details={'teamCode': team.code, 'doctorId': doctor.id, 'doctorName': doctor.name},
        request=request,
    )
    return link


@transaction.atomic
def create_team(actor, *, code: str, name: str, consultant_id: Optional[int] = None, request=None) -> Team:
    if Team.objects.filter(code__iexact=code).exists():
        raise Conflict(f'Team code {code} already exists')
    team = Team.objects.create(code=code.upper(), name=name)
    log_action(
        user=actor, action='create_team', entity_type='team', entity_id=team.id,
        details={'code': team.code, 'name': team.name}, request=request,
    )
    if consultant_id:
        team = _lock_team(team.id)
        doctor = Doctor.objects.select_for_update().filter(id=consultant_id).first()
        if doctor is None:
            raise RuleViolation('Selected consultant does not exist')
        if not doctor.is_consultant:
            raise RuleViolation('Selected doctor is not a consultant')
        if TeamConsultant.objects.filter(doctor=doctor).exists():
            raise Conflict(f'{doctor.name} already leads a team')
        if doctor.team_id is not None:
            raise RuleViolation('Doctor belongs to a different team')
        doctor.team = team
        doctor.save(update_fields=['team'])
        _link_consultant(actor, team, doctor, request=request)
    broadcast_refresh('teams', 'doctors')
    logger.info('team %s created: %s', team.id, team.code)
    return team


@transaction.atomic
def create_doctor(actor, *, name: str, grade: str, team_id: Optional[int] = None, request=None) -> Doctor:
    team = None
    if grade == Doctor.GRADE_CONSULTANT:
        if not team_id:
            raise RuleViolation('Consultants must be assigned to a team')
        team = _lock_team(team_id)
    elif team_id:
        team = Team.objects.filter(id=team_id).first()
        if team is None:
            raise RuleViolation('Selected team does not exist')

    doctor = Doctor.objects.create(name=name, grade=grade, team=team)
    log_action(
        user=actor, action='create_doctor', entity_type='doctor', entity_id=doctor.id,
        details={'name': doctor.name, 'grade': doctor.grade, 'teamId': team.id if team else None},
        request=request,
    )
    if doctor.is_consultant:
        _link_consultant(actor, team, doctor, request=request)
    broadcast_refresh('doctors', 'teams')
    logger.info('doctor %s created (%s)', doctor.id, doctor.grade)
    return doctor


@transaction.atomic
def assign_consultant(actor, *, team_id: int, doctor_id: int, request=None) -> TeamConsultant:
    team = Team.objects.select_for_update().filter(id=team_id).first()
    if team is None:
        raise NotFound('Team not found')
    doctor = Doctor.objects.select_for_update().filter(id=doctor_id).first()
    if doctor is None:
        raise RuleViolation('Selected doctor does not exist')
    if not doctor.is_consultant:
        raise RuleViolation('Only consultant-grade doctors can lead a team')
    if doctor.team_id is not None and doctor.team_id != team.id:
        raise RuleViolation('Doctor belongs to a different team')
    if TeamConsultant.objects.filter(doctor=doctor).exists():
        raise Conflict(f'{doctor.name} already leads a team')
    if doctor.team_id is None:
        doctor.team = team
        doctor.save(update_fields=['team'])
    link = _link_consultant(actor, team, doctor, request=request)
    broadcast_refresh('teams', 'doctors')
    return link


def consultant_for(team: Team) -> Optional[Doctor]:
    link = TeamConsultant.objects.select_related('doctor').filter(team=team).first()
    return link.doctor if link else None


def _team_table():
    return Team.objects.annotate(
        doctor_count=Count('doctors', distinct=True),
        active_patient_count=Count(
            'patients', filter=Q(patients__discharged_at__isnull=True), distinct=True,
        ),
        has_consultant=Exists(TeamConsultant.objects.filter(team=OuterRef('pk'))),
    ).select_related('consultant_link__doctor')


def team_row(t: Team) -> dict:
    link = getattr(t, 'consultant_link', None) if t.has_consultant else None
    return {
        'id': t.id,
        'code': t.code,
        'name': t.name,
        'doctorCount': t.doctor_count,
        'activePatientCount': t.active_patient_count,
        'consultantId': link.doctor_id if link else None,
        'consultantName': link.doctor.name if link else None,
        'createdAt': iso(t.created_at),
    }


def list_teams() -> list[dict]:
    return [{'id': t.id, 'code': t.code, 'name': t.name} for t in Team.objects.order_by('code')]


def paginate_teams(params: dict) -> dict:
    qs = _team_table()
    term = params.get('filter')
    if term:
        qs = qs.filter(Q(name__icontains=term) | Q(code__icontains=term))
    if params.get('hasConsultant') == 'true':
        qs = qs.filter(has_consultant=True)
    elif params.get('hasConsultant') == 'false':
        qs = qs.filter(has_consultant=False)
    qs = order_queryset(qs, TEAM_SORTS, params.get('sortBy'), params['sortOrder'], default='createdAt')
    return paginate(qs, params['page'], params['pageSize'], team_row)


def team_details(team_id: int) -> dict:
    team = _team_table().filter(id=team_id).first()
    if team is None:
        raise NotFound('Team not found')
    doctors = team.doctors.order_by('grade', 'name')
    patients = (
        Patient.objects.filter(team=team, discharged_at__isnull=True)
        .select_related('ward')
        .order_by('admission_date', 'id')
    )
    return {
        'team': team_row(team),
        'doctors': [{'id': d.id, 'name': d.name, 'grade': d.grade} for d in doctors],
        'patients': [
            {
                'id': p.id,
                'name': p.name,
                'dob': iso(p.dob),
                'gender': p.gender,
                'wardName': p.ward.name if p.ward else None,
                'admissionDate': iso(p.admission_date),
            }
            for p in patients
        ],
    }


def doctor_row(d: Doctor) -> dict:
    return {
        'id': d.id,
        'name': d.name,
        'grade': d.grade,
        'teamId': d.team_id,
        'teamName': d.team.name if d.team else None,
        'teamCode': d.team.code if d.team else None,
    }


def paginate_doctors(params: dict) -> dict:
    qs = Doctor.objects.select_related('team')
    term = params.get('filter')
    if term:
        qs = qs.filter(Q(name__icontains=term) | Q(grade__icontains=term))
    if params.get('grade', 'all') != 'all':
        qs = qs.filter(grade=params['grade'])
    team_filter = params.get('teamId', 'all')
    if team_filter == 'assigned':
        qs = qs.filter(team__isnull=False)
    elif team_filter == 'unassigned':
        qs = qs.filter(team__isnull=True)
    elif team_filter != 'all':
        qs = qs.filter(team_id=int(team_filter))
    qs = order_queryset(qs, DOCTOR_SORTS, params.get('sortBy'), params['sortOrder'], default='name')
    return paginate(qs, params['page'], params['pageSize'], doctor_row)


def list_consultants() -> list[dict]:
    qs = Doctor.objects.filter(grade=Doctor.GRADE_CONSULTANT).select_related('team').order_by('name')
    return [doctor_row(d) for d in qs]
