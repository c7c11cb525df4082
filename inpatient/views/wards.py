"""
Ward endpoints.

Any administrator may browse wards and see how many beds are free;
only super administrators create new wards.
"""
from __future__ import annotations

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from ..permissions import IsStaffRole, ReadOnlyOrSuperAdmin
from ..serializers.records import WardCreateSerializer
from ..serializers.tables import WardTableQuerySerializer
from ..services import wards as svc
from .tables import table_response


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, ReadOnlyOrSuperAdmin])
def wards(request):
    """GET: paginated ward table.  POST: create a ward."""
    if request.method == 'GET':
        return table_response(request, WardTableQuerySerializer, svc.paginate_wards)

    s = WardCreateSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    vd = s.validated_data
    ward = svc.create_ward(
        request.user,
        name=vd['name'],
        gender_type=vd['genderType'],
        capacity=vd['capacity'],
        request=request,
    )
    return Response({'ok': True, 'data': svc.ward_row(ward)}, status=status.HTTP_201_CREATED)


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsStaffRole])
def all_wards(request):
    """Every ward with its occupancy, for select widgets."""
    return Response({'ok': True, 'data': svc.list_wards()})


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsStaffRole])
def ward_detail(request, ward_id: int):
    return Response({'ok': True, 'data': svc.ward_detail(ward_id)})
