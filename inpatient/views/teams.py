"""
Team and doctor endpoints.

Reading is open to all administrators.  Creating teams and doctors and
naming a team's consultant is reserved for super administrators.
"""
from __future__ import annotations

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from ..models import Doctor
from ..permissions import IsStaffRole, IsSuperAdmin, ReadOnlyOrSuperAdmin
from ..serializers.records import AssignConsultantSerializer, DoctorCreateSerializer, TeamCreateSerializer
from ..serializers.tables import DoctorTableQuerySerializer, TeamTableQuerySerializer
from ..services import teams as svc
from .tables import table_response


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, ReadOnlyOrSuperAdmin])
def teams(request):
    if request.method == 'GET':
        return table_response(request, TeamTableQuerySerializer, svc.paginate_teams)

    s = TeamCreateSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    vd = s.validated_data
    team = svc.create_team(
        request.user,
        code=vd['code'],
        name=vd['name'],
        consultant_id=vd.get('consultantId'),
        request=request,
    )
    return Response({'ok': True, 'data': svc.team_details(team.id)['team']}, status=status.HTTP_201_CREATED)


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsStaffRole])
def all_teams(request):
    return Response({'ok': True, 'data': svc.list_teams()})


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsStaffRole])
def team_detail(request, team_id: int):
    """The team with its doctors and currently admitted patients."""
    return Response({'ok': True, 'data': svc.team_details(team_id)})


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsSuperAdmin])
def team_consultant(request, team_id: int):
    s = AssignConsultantSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    svc.assign_consultant(request.user, team_id=team_id, doctor_id=s.validated_data['doctorId'], request=request)
    return Response({'ok': True, 'data': svc.team_details(team_id)['team']})


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, ReadOnlyOrSuperAdmin])
def doctors(request):
    if request.method == 'GET':
        return table_response(request, DoctorTableQuerySerializer, svc.paginate_doctors)

    s = DoctorCreateSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    vd = s.validated_data
    doctor = svc.create_doctor(
        request.user,
        name=vd['name'],
        grade=vd['grade'],
        team_id=vd.get('teamId'),
        request=request,
    )
    doctor = Doctor.objects.select_related('team').get(id=doctor.id)
    return Response({'ok': True, 'data': svc.doctor_row(doctor)}, status=status.HTTP_201_CREATED)


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsStaffRole])
def consultants(request):
    return Response({'ok': True, 'data': svc.list_consultants()})
