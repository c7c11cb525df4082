from __future__ import annotations

import logging

from django.db import transaction
from rest_framework.exceptions import NotFound

from inpatient.models import Ward
from inpatient.realtime.broadcast import broadcast_refresh
from inpatient.services.audit import log_action
from inpatient.services.tables import iso, order_queryset, paginate

logger = logging.getLogger(__name__)

WARD_SORTS = {
    'name': 'name',
    'capacity': 'capacity',
    'genderType': 'gender_type',
    'currentOccupancy': 'current_occupancy',
    'createdAt': 'created_at',
}


def ward_row(w: Ward) -> dict:
    occupancy = getattr(w, 'current_occupancy', None)
    if occupancy is None:
        occupancy = w.occupancy()
    return {
        'id': w.id,
        'name': w.name,
        'genderType': w.gender_type,
        'capacity': w.capacity,
        'currentOccupancy': occupancy,
        'available': max(w.capacity - occupancy, 0),
        'createdAt': iso(w.created_at),
    }


@transaction.atomic
def create_ward(actor, *, name: str, gender_type: str, capacity: int, request=None) -> Ward:
    ward = Ward.objects.create(name=name, gender_type=gender_type, capacity=capacity)
    log_action(
        user=actor, action='create_ward', entity_type='ward', entity_id=ward.id,
        details={'name': ward.name, 'genderType': ward.gender_type, 'capacity': ward.capacity},
        request=request,
    )
    broadcast_refresh('wards')
    logger.info('ward %s created: %s', ward.id, ward.name)
    return ward


def list_wards() -> list[dict]:
    return [ward_row(w) for w in Ward.objects.with_occupancy().order_by('name', 'id')]


def paginate_wards(params: dict) -> dict:
    qs = Ward.objects.with_occupancy()
    if params.get('filter'):
        qs = qs.filter(name__icontains=params['filter'])
    if params.get('genderType', 'all') != 'all':
        qs = qs.filter(gender_type=params['genderType'])
    qs = order_queryset(qs, WARD_SORTS, params.get('sortBy'), params['sortOrder'], default='createdAt')
    return paginate(qs, params['page'], params['pageSize'], ward_row)


def ward_detail(ward_id: int) -> dict:
    ward = Ward.objects.with_occupancy().filter(id=ward_id).first()
    if ward is None:
        raise NotFound('Ward not found')
    patients = (
        ward.patients.filter(discharged_at__isnull=True)
        .select_related('team')
        .order_by('admission_date', 'id')
    )
    payload = ward_row(ward)
    payload['patients'] = [
        {
            'id': p.id,
            'name': p.name,
            'gender': p.gender,
            'dob': iso(p.dob),
            'teamCode': p.team.code if p.team else None,
            'admissionDate': iso(p.admission_date),
        }
        for p in patients
    ]
    return payload

