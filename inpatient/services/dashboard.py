from __future__ import annotations

from datetime import timedelta

from django.conf import settings
from django.core.cache import cache
from django.db.models import Count
from django.utils import timezone

from inpatient.models import Doctor, Patient, Team, TreatmentRecord, Ward
from inpatient.services.tables import iso

CACHE_KEY = 'inpatient:dashboard'


def invalidate_dashboard() -> None:
    cache.delete(CACHE_KEY)


def _compute_stats() -> dict:
    since = timezone.now() - timedelta(days=settings.RECENT_WINDOW_DAYS)
    current = Patient.objects.filter(discharged_at__isnull=True)
    wards = list(Ward.objects.with_occupancy().order_by('name', 'id'))
    gender_stats = (
        current.values('gender')
        .annotate(count=Count('id'))
        .order_by('gender')
    )
    return {
        'totalPatients': current.count(),
        'totalWards': len(wards),
        'totalTeams': Team.objects.count(),
        'totalDoctors': Doctor.objects.count(),
        'recentPatients': Patient.objects.filter(admission_date__gte=since).count(),
        'recentTreatments': TreatmentRecord.objects.filter(created_at__gte=since).count(),
        'fullWards': sum(1 for w in wards if w.current_occupancy >= w.capacity),
        'wardOccupancy': [
            {
                'wardId': w.id,
                'wardName': w.name,
                'capacity': w.capacity,
                'patientCount': w.current_occupancy,
            }
            for w in wards
        ],
        'genderStats': [{'gender': g['gender'], 'count': g['count']} for g in gender_stats],
    }


def dashboard_stats() -> dict:
    cached = cache.get(CACHE_KEY)
    if cached is not None:
        return cached
    payload = _compute_stats()
    cache.set(CACHE_KEY, payload, settings.DASHBOARD_CACHE_SECONDS)
    return payload


def recent_activity(limit: int = 5) -> dict:
    admissions = (
        Patient.objects.filter(discharged_at__isnull=True)
        .select_related('ward')
        .order_by('-admission_date', '-id')[:limit]
    )
    treatments = (
        TreatmentRecord.objects.select_related('patient', 'doctor')
        .order_by('-created_at', '-id')[:limit]
    )
    return {
        'recentAdmissions': [
            {
                'id': p.id,
                'name': p.name,
                'wardName': p.ward.name if p.ward else None,
                'admissionDate': iso(p.admission_date),
            }
            for p in admissions
        ],
        'recentTreatments': [
            {
                'id': t.id,
                'patientName': t.patient.name,
                'doctorName': t.doctor.name,
                'createdAt': iso(t.created_at),
            }
            for t in treatments
        ],
    }
