"""
Read-only access to the audit trail for super administrators.
"""
from __future__ import annotations

from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated

from ..permissions import IsSuperAdmin
from ..serializers.tables import AuditLogTableQuerySerializer
from ..services.audit import paginate_audit_logs
from .tables import table_response


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsSuperAdmin])
def audit_logs(request):
    return table_response(request, AuditLogTableQuerySerializer, paginate_audit_logs)
