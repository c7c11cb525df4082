"""
Patient endpoints: the patient table, admission, transfer, discharge
and the per-patient detail views used by the treatment dialog.

Every administrator may run the patient workflow.  Placement rules
(gender policy, capacity, discharged state) live in
:mod:`inpatient.services.patients` and surface here as 400/409 errors.
"""
from __future__ import annotations

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from ..permissions import IsStaffRole
from ..serializers.records import AdmitPatientSerializer, TransferPatientSerializer
from ..serializers.tables import PatientTableQuerySerializer
from ..services import patients as svc
from ..services import treatments
from .tables import table_response


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsStaffRole])
def patients(request):
    """GET: paginated patient table.  POST: admit a patient."""
    if request.method == 'GET':
        return table_response(request, PatientTableQuerySerializer, svc.paginate_patients)

    s = AdmitPatientSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    vd = s.validated_data
    patient = svc.admit_patient(
        request.user,
        name=vd['name'],
        dob=vd.get('dob'),
        gender=vd['gender'],
        ward_id=vd['wardId'],
        team_id=vd['teamId'],
        request=request,
    )
    return Response(
        {'ok': True, 'message': 'Patient admitted successfully', 'data': svc.patient_detail(patient.id)},
        status=status.HTTP_201_CREATED,
    )


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsStaffRole])
def patient_detail(request, patient_id: int):
    return Response({'ok': True, 'data': svc.patient_detail(patient_id)})


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsStaffRole])
def patient_transfer(request, patient_id: int):
    s = TransferPatientSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    svc.transfer_patient(request.user, patient_id=patient_id, new_ward_id=s.validated_data['newWardId'], request=request)
    return Response({'ok': True, 'message': 'Patient transferred', 'data': svc.patient_detail(patient_id)})


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsStaffRole])
def patient_discharge(request, patient_id: int):
    svc.discharge_patient(request.user, patient_id=patient_id, request=request)
    return Response({'ok': True, 'message': 'Patient discharged', 'data': svc.patient_detail(patient_id)})


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsStaffRole])
def patient_summary(request, patient_id: int):
    """Team code, consultant and treating doctors of a current patient."""
    return Response({'ok': True, 'data': treatments.patient_summary(patient_id)})


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsStaffRole])
def patient_doctors(request, patient_id: int):
    return Response({'ok': True, 'data': treatments.doctors_for_patient(patient_id)})
