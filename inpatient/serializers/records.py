import html

import bleach
from rest_framework import serializers

from inpatient.models import Doctor, Patient, Ward


def clean_text(v) -> str:
    """Drop markup but keep plain characters such as < and & as typed."""
    return html.unescape(bleach.clean((v or '').strip(), tags=set(), strip=True))


class WardCreateSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=255)
    genderType = serializers.ChoiceField(choices=[c for c, _ in Ward.GENDER_CHOICES])
    capacity = serializers.IntegerField(min_value=1, max_value=1000)

    def validate_name(self, v):
        v = clean_text(v)
        if not v:
            raise serializers.ValidationError('Name is required')
        return v


class TeamCreateSerializer(serializers.Serializer):
    code = serializers.CharField(max_length=20)
    name = serializers.CharField(max_length=255)
    consultantId = serializers.IntegerField(required=False, allow_null=True, min_value=1)

    def validate_code(self, v):
        v = clean_text(v).upper()
        if not v:
            raise serializers.ValidationError('Code is required')
        return v

    def validate_name(self, v):
        v = clean_text(v)
        if not v:
            raise serializers.ValidationError('Name is required')
        return v


class DoctorCreateSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=255)
    grade = serializers.ChoiceField(choices=[c for c, _ in Doctor.GRADE_CHOICES])
    teamId = serializers.IntegerField(required=False, allow_null=True, min_value=1)

    def to_internal_value(self, data):
        # Select widgets post an empty string or 'null' for "no team"
        if hasattr(data, 'get') and data.get('teamId') in ('', 'null', 'none'):
            data = data.copy()
            data['teamId'] = None
        return super().to_internal_value(data)

    def validate_name(self, v):
        v = clean_text(v)
        if not v:
            raise serializers.ValidationError('Name is required')
        return v


class AssignConsultantSerializer(serializers.Serializer):
    doctorId = serializers.IntegerField(min_value=1)


class AdmitPatientSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=255, error_messages={'required': 'Patient name is required', 'blank': 'Patient name is required'})
    dob = serializers.DateField(required=False, allow_null=True)
    gender = serializers.ChoiceField(
        choices=[c for c, _ in Patient.GENDER_CHOICES],
        error_messages={'required': 'Gender is required'},
    )
    wardId = serializers.IntegerField(min_value=1, error_messages={'required': 'Ward selection is required', 'invalid': 'Invalid ward ID'})
    teamId = serializers.IntegerField(min_value=1, error_messages={'required': 'Team selection is required', 'invalid': 'Invalid team ID'})

    def to_internal_value(self, data):
        if hasattr(data, 'get') and data.get('dob') == '':
            data = data.copy()
            data['dob'] = None
        return super().to_internal_value(data)

    def validate_name(self, v):
        v = clean_text(v)
        if not v:
            raise serializers.ValidationError('Patient name is required')
        return v


class TransferPatientSerializer(serializers.Serializer):
    newWardId = serializers.IntegerField(min_value=1, error_messages={'required': 'New ward is required', 'invalid': 'Invalid ward ID'})


class RecordTreatmentSerializer(serializers.Serializer):
    patientId = serializers.IntegerField(min_value=1, error_messages={'required': 'Patient and doctor are required'})
    doctorId = serializers.IntegerField(min_value=1, error_messages={'required': 'Patient and doctor are required'})
    description = serializers.CharField(max_length=4000, error_messages={'required': 'Treatment description is required', 'blank': 'Treatment description is required'})
    notes = serializers.CharField(required=False, allow_blank=True, allow_null=True, max_length=4000)
    treatmentNotes = serializers.CharField(required=False, allow_blank=True, allow_null=True, max_length=4000)
    treatmentDate = serializers.DateTimeField(required=False, allow_null=True)

    def validate_description(self, v):
        v = clean_text(v)
        if not v:
            raise serializers.ValidationError('Treatment description is required')
        return v

    def validate(self, attrs):
        # The treatment dialog posts ``treatmentNotes``; API clients use ``notes``
        notes = attrs.pop('treatmentNotes', None) or attrs.get('notes')
        attrs['notes'] = clean_text(notes) or None
        return attrs
