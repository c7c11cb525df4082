"""
Dashboard endpoint.

Headline counts, ward occupancy and the latest admissions and
treatments.  The statistics block is cached briefly and dropped whenever
a patient, ward, team or treatment changes.
"""
from __future__ import annotations

from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from ..permissions import IsStaffRole
from ..services.dashboard import dashboard_stats, recent_activity


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsStaffRole])
def dashboard(request):
    return Response({
        'ok': True,
        'stats': dashboard_stats(),
        'recentActivity': recent_activity(),
    })
