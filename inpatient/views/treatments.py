from __future__ import annotations

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from ..models import TreatmentRecord
from ..permissions import IsStaffRole
from ..serializers.records import RecordTreatmentSerializer
from ..serializers.tables import TableQuerySerializer
from ..services import treatments as svc
from .tables import table_response


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsStaffRole])
def treatments(request):
    if request.method == 'GET':
        return table_response(request, TableQuerySerializer, svc.paginate_treatments)

    s = RecordTreatmentSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    vd = s.validated_data
    record = svc.record_treatment(
        request.user,
        patient_id=vd['patientId'],
        doctor_id=vd['doctorId'],
        description=vd['description'],
        notes=vd.get('notes'),
        treatment_date=vd.get('treatmentDate'),
        request=request,
    )
    record = TreatmentRecord.objects.select_related('patient__team', 'patient__ward', 'doctor').get(id=record.id)
    return Response(
        {'ok': True, 'message': 'Treatment recorded successfully', 'data': svc.treatment_row(record)},
        status=status.HTTP_201_CREATED,
    )
