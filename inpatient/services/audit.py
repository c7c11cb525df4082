from typing import Optional, Any, Dict
import logging

from django.contrib.auth import get_user_model
from django.db.models import Q

from inpatient.models import AuditLog
from inpatient.services.tables import iso, order_queryset, paginate
from inpatient.services.useragent import parse_user_agent

User = get_user_model()
logger = logging.getLogger(__name__)

AUDIT_SORTS = {
    'timestamp': 'timestamp',
    'action': 'action',
    'entityType': 'entity_type',
}


def client_ip(request) -> Optional[str]:
    forwarded = request.META.get('HTTP_X_FORWARDED_FOR', '')
    if forwarded:
        return forwarded.split(',')[0].strip() or None
    return request.META.get('REMOTE_ADDR') or None


def log_action(*, user, action: str, entity_type: str, entity_id: Optional[int] = None,
               details: Optional[Dict[str, Any]] = None, request=None) -> AuditLog:
    entry = AuditLog.objects.create(
        user=user if isinstance(user, User) and user.pk else None,
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        details=details or {},
        ip=client_ip(request) if request is not None else None,
        user_agent=(request.META.get('HTTP_USER_AGENT', '')[:512] if request is not None else ''),
    )
    logger.info('audit %s %s#%s by user=%s', action, entity_type, entity_id, entry.user_id)
    return entry


def audit_row(entry: AuditLog) -> dict:
    user = entry.user
    return {
        'id': entry.id,
        'action': entry.action,
        'entityType': entry.entity_type,
        'entityId': entry.entity_id,
        'details': entry.details,
        'ip': entry.ip,
        'client': parse_user_agent(entry.user_agent),
        'timestamp': iso(entry.timestamp),
        'userId': entry.user_id,
        'userName': user.display_name() if user else None,
        'userEmail': user.email if user else None,
        'userRole': user.role if user else None,
    }


def paginate_audit_logs(params: dict) -> dict:
    qs = AuditLog.objects.select_related('user')
    if params.get('action'):
        qs = qs.filter(action=params['action'])
    if params.get('entityType'):
        qs = qs.filter(entity_type=params['entityType'])
    term = params.get('filter')
    if term:
        qs = qs.filter(
            Q(user__email__icontains=term)
            | Q(user__first_name__icontains=term)
            | Q(user__last_name__icontains=term)
        )
    qs = order_queryset(qs, AUDIT_SORTS, params.get('sortBy'), params['sortOrder'], default='timestamp')
    return paginate(qs, params['page'], params['pageSize'], audit_row)
