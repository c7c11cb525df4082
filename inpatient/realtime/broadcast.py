import logging

from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer
from django.db import transaction
from django.utils import timezone

from inpatient.services.dashboard import invalidate_dashboard

logger = logging.getLogger(__name__)

GROUP = "updates"


def _send(keys):
    invalidate_dashboard()
    channel_layer = get_channel_layer()
    if channel_layer is None:
        return
    async_to_sync(channel_layer.group_send)(GROUP, {
        "type": "broadcast.refresh",
        "ts": timezone.now().isoformat(),
        "keys": sorted(keys),
    })
    logger.debug('refresh broadcast for %s', ', '.join(sorted(keys)))


def broadcast_refresh(*keys: str) -> None:
    """Once the transaction commits, drop the cached dashboard and tell
    open tables to re-fetch."""
    transaction.on_commit(lambda: _send(set(keys)))
