import json
from urllib.parse import parse_qs

from channels.generic.websocket import AsyncWebsocketConsumer
from rest_framework_simplejwt.exceptions import TokenError
from rest_framework_simplejwt.tokens import AccessToken

from core.services.push import FEED_GROUP


def _token_from_scope(scope):
    query = parse_qs((scope.get("query_string") or b"").decode())
    values = query.get("token") or []
    return values[0] if values else None


class NotificationsConsumer(AsyncWebsocketConsumer):
    """Live feed of the notifications also sent over Web Push.

    Connect with ``ws/notifications/?token=<bearer token>``; 4001 closes
    a connection without a valid token.
    """
    GROUP = FEED_GROUP

    async def connect(self):
        raw = _token_from_scope(self.scope)
        if not raw:
            await self.close(code=4001)
            return
        try:
            AccessToken(raw)
        except TokenError:
            await self.close(code=4001)
            return
        await self.channel_layer.group_add(self.GROUP, self.channel_name)
        await self.accept()
        await self.send(json.dumps({"type": "welcome", "message": "connected"}))

    async def disconnect(self, close_code):
        await self.channel_layer.group_discard(self.GROUP, self.channel_name)

    async def notification_message(self, event):
        # event: {"type": "notification.message", "payload": {"title": ..., "message": ...}}
        await self.send(json.dumps({"type": "notification", **event["payload"]}))
