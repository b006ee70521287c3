"""
Push subscription registry and notification dispatcher.

Subscriptions live in process memory only, keyed by endpoint, and are lost
on restart.  :func:`dispatch` fans one payload out to every subscription
concurrently over Web Push; an endpoint the push service reports as gone
(404/410) is pruned, any other failure is logged and the subscription kept.
Nothing is retried.

Mutations hand their notifications to :func:`dispatch_detached`, which
returns immediately; only the explicit "notify all" endpoint waits.
"""
from __future__ import annotations

import json
import logging
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer
from cryptography.hazmat.primitives import serialization
from django.conf import settings
from py_vapid import Vapid
from py_vapid.utils import b64urlencode
from pywebpush import WebPushException, webpush

from core.exceptions import DeliveryGone, NotConfigured

logger = logging.getLogger(__name__)

GONE_STATUSES = (404, 410)

# Channels group mirrored by the websocket feed (core.realtime.consumers)
FEED_GROUP = 'notifications'


class SubscriptionRegistry:
    """Concurrency-safe set of push subscriptions keyed by endpoint."""

    def __init__(self) -> None:
        self._items: Dict[str, Dict[str, Any]] = {}
        self._lock = threading.Lock()

    def add(self, subscription: Dict[str, Any]) -> bool:
        """Store ``subscription`` unless its endpoint is known; True if stored."""
        endpoint = subscription['endpoint']
        with self._lock:
            if endpoint in self._items:
                return False
            self._items[endpoint] = subscription
            return True

    def remove(self, endpoint: str) -> bool:
        with self._lock:
            return self._items.pop(endpoint, None) is not None

    def snapshot(self) -> List[Dict[str, Any]]:
        with self._lock:
            return list(self._items.values())

    def clear(self) -> None:
        with self._lock:
            self._items.clear()

    def __contains__(self, endpoint: object) -> bool:
        with self._lock:
            return endpoint in self._items

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)


registry = SubscriptionRegistry()


# ---------------------------------------------------------------------
# VAPID keys
# ---------------------------------------------------------------------
@dataclass
class VapidKeys:
    signer: Vapid
    public_key: str


_keys: Optional[VapidKeys] = None
_keys_lock = threading.Lock()


def _application_server_key(vapid: Vapid) -> str:
    raw = vapid.public_key.public_bytes(
        serialization.Encoding.X962,
        serialization.PublicFormat.UncompressedPoint,
    )
    return b64urlencode(raw)


def _load_keys() -> Optional[VapidKeys]:
    if settings.PUSH_VAPID_PRIVATE_KEY:
        signer = Vapid.from_string(settings.PUSH_VAPID_PRIVATE_KEY)
        return VapidKeys(signer, settings.PUSH_VAPID_PUBLIC_KEY or _application_server_key(signer))
    if not settings.PUSH_GENERATE_KEYS:
        return None
    signer = Vapid()
    signer.generate_keys()
    logger.warning(
        "PUSH_VAPID_PRIVATE_KEY is not set; generated a VAPID key pair for this process. "
        "Generated keys are not persisted: browsers must re-subscribe after a restart."
    )
    return VapidKeys(signer, _application_server_key(signer))


def vapid_keys() -> VapidKeys:
    global _keys
    with _keys_lock:
        if _keys is None:
            _keys = _load_keys()
        if _keys is None:
            raise NotConfigured('push delivery key is not configured')
        return _keys


def public_key() -> str:
    return vapid_keys().public_key


# ---------------------------------------------------------------------
# Delivery
# ---------------------------------------------------------------------
@dataclass
class DispatchReport:
    sent: int = 0
    failed: int = 0
    removed: List[str] = field(default_factory=list)

    def as_dict(self) -> Dict[str, Any]:
        return {'sent': self.sent, 'failed': self.failed, 'removed': list(self.removed)}


def deliver(subscription: Dict[str, Any], payload: Dict[str, Any], keys: VapidKeys) -> None:
    """Send one payload to one subscription, raising DeliveryGone for dead endpoints."""
    try:
        webpush(
            subscription_info=subscription,
            data=json.dumps(payload),
            vapid_private_key=keys.signer,
            vapid_claims={'sub': settings.PUSH_CONTACT},
            ttl=settings.PUSH_TTL,
            timeout=settings.PUSH_TIMEOUT,
        )
    except WebPushException as exc:
        if getattr(exc.response, 'status_code', None) in GONE_STATUSES:
            raise DeliveryGone(subscription['endpoint']) from exc
        raise


def _broadcast(payload: Dict[str, Any]) -> None:
    channel_layer = get_channel_layer()
    if channel_layer is None:
        return
    try:
        async_to_sync(channel_layer.group_send)(FEED_GROUP, {'type': 'notification.message', 'payload': payload})
    except Exception:
        logger.warning("websocket broadcast failed", exc_info=True)


def dispatch(payload: Dict[str, Any]) -> DispatchReport:
    """Deliver ``payload`` to every subscription; never raises."""
    report = DispatchReport()
    try:
        _broadcast(payload)
        subscriptions = registry.snapshot()
        if not subscriptions:
            return report
        keys = vapid_keys()
        workers = max(1, min(len(subscriptions), settings.PUSH_MAX_WORKERS))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix='push') as pool:
            futures = {pool.submit(deliver, sub, payload, keys): sub['endpoint'] for sub in subscriptions}
            for future in as_completed(futures):
                endpoint = futures[future]
                try:
                    future.result()
                except DeliveryGone:
                    registry.remove(endpoint)
                    report.removed.append(endpoint)
                    logger.info("pruned push subscription %s (gone)", endpoint)
                except Exception:
                    report.failed += 1
                    logger.warning("push delivery to %s failed", endpoint, exc_info=True)
                else:
                    report.sent += 1
    except Exception:
        logger.exception("notification dispatch failed")
    return report


def dispatch_detached(payload: Dict[str, Any]) -> threading.Thread:
    """Run :func:`dispatch` on a daemon thread and return without waiting."""
    thread = threading.Thread(target=dispatch, args=(payload,), name='push-dispatch', daemon=True)
    thread.start()
    return thread
