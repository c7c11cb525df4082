import json

from channels.generic.websocket import AsyncWebsocketConsumer
from django.contrib.auth.models import AnonymousUser

from inpatient.permissions import STAFF_ROLES


class UpdatesConsumer(AsyncWebsocketConsumer):
    """Pushes table refresh hints to signed-in staff."""
    GROUP = "updates"

    async def connect(self):
        user = self.scope.get("user") or AnonymousUser()
        if not user.is_authenticated or getattr(user, "role", None) not in STAFF_ROLES:
            await self.close(code=4003)
            return
        await self.channel_layer.group_add(self.GROUP, self.channel_name)
        await self.accept()
        await self.send(json.dumps({"type": "welcome", "message": "connected"}))

    async def disconnect(self, close_code):
        await self.channel_layer.group_discard(self.GROUP, self.channel_name)

    async def broadcast_refresh(self, event):
        # event: {"type": "broadcast.refresh", "ts": "...", "keys": ["patients", ...]}
        await self.send(json.dumps(event))
