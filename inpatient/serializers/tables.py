"""
Query parameters shared by every server-side table.

Each list endpoint accepts ``page``, ``pageSize``, ``sortBy``,
``sortOrder`` and ``filter`` and adds its own column filters on top.
"""
from django.conf import settings
from rest_framework import serializers


class TableQuerySerializer(serializers.Serializer):
    page = serializers.IntegerField(required=False, min_value=1, default=1)
    pageSize = serializers.IntegerField(required=False, min_value=1)
    sortBy = serializers.CharField(required=False, allow_blank=True, default='')
    sortOrder = serializers.ChoiceField(choices=['asc', 'desc'], required=False, default='desc')
    filter = serializers.CharField(required=False, allow_blank=True, default='', max_length=100)

    def validate_pageSize(self, v):
        if v > settings.TABLE_MAX_PAGE_SIZE:
            raise serializers.ValidationError(f'pageSize cannot exceed {settings.TABLE_MAX_PAGE_SIZE}')
        return v

    def validate_filter(self, v):
        return (v or '').strip()

    def validate(self, attrs):
        if not attrs.get('pageSize'):
            attrs['pageSize'] = settings.TABLE_DEFAULT_PAGE_SIZE
        return attrs


class PatientTableQuerySerializer(TableQuerySerializer):
    ward = serializers.IntegerField(required=False, min_value=1)
    team = serializers.IntegerField(required=False, min_value=1)
    startDate = serializers.DateField(required=False)
    endDate = serializers.DateField(required=False)
    status = serializers.ChoiceField(choices=['current', 'discharged', 'all'], required=False, default='current')

    def validate(self, attrs):
        attrs = super().validate(attrs)
        start, end = attrs.get('startDate'), attrs.get('endDate')
        if start and end and start > end:
            raise serializers.ValidationError({'endDate': 'endDate must not be before startDate'})
        return attrs


class WardTableQuerySerializer(TableQuerySerializer):
    genderType = serializers.ChoiceField(choices=['all', 'male', 'female', 'mixed'], required=False, default='all')


class TeamTableQuerySerializer(TableQuerySerializer):
    hasConsultant = serializers.ChoiceField(choices=['true', 'false', ''], required=False, default='')


class DoctorTableQuerySerializer(TableQuerySerializer):
    grade = serializers.ChoiceField(choices=['all', 'consultant', 'junior1', 'junior2'], required=False, default='all')
    teamId = serializers.CharField(required=False, allow_blank=True, default='all')

    def validate_teamId(self, v):
        v = (v or 'all').strip()
        if v in ('all', 'assigned', 'unassigned'):
            return v
        if not v.isdigit():
            raise serializers.ValidationError("teamId must be a team id, 'all', 'assigned' or 'unassigned'")
        return v


class AuditLogTableQuerySerializer(TableQuerySerializer):
    action = serializers.CharField(required=False, allow_blank=True, default='')
    entityType = serializers.CharField(required=False, allow_blank=True, default='')
