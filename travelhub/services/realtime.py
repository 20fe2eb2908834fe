"""
Server-Sent Events hub with per-user channels

publish_to_user(user_id, event, data) pushes a named event to every open
stream of that user. Streams are process-local; when Pusher is configured
the same event is also triggered on the user's private Pusher channel.
"""

import json
import logging
import queue
import threading

from extensions import pusher_client

logger = logging.getLogger(__name__)


def format_sse(event, data):
    payload = data if isinstance(data, str) else json.dumps(data, default=str)
    return f'event: {event}\ndata: {payload}\n\n'


KEEPALIVE = ':\n\n'


class RealtimeHub:

    def __init__(self):
        self._clients = {}
        self._lock = threading.Lock()

    def subscribe(self, user_id):
        client = queue.Queue()
        with self._lock:
            self._clients.setdefault(user_id, set()).add(client)
        return client

    def unsubscribe(self, user_id, client):
        with self._lock:
            clients = self._clients.get(user_id)
            if clients is None:
                return
            clients.discard(client)
            if not clients:
                del self._clients[user_id]

    def subscriber_count(self, user_id):
        with self._lock:
            return len(self._clients.get(user_id, ()))

    def publish_to_user(self, user_id, event, data):
        """Best-effort delivery; returns the number of local streams reached"""
        with self._lock:
            clients = list(self._clients.get(user_id, ()))
        message = format_sse(event, data)
        for client in clients:
            client.put(message)

        if pusher_client is not None:
            try:
                pusher_client.trigger(f'private-user-{user_id}', event, data)
            except Exception as e:
                logger.warning(f'Pusher trigger failed for user {user_id}: {e}')

        return len(clients)

    def stream(self, user_id, keepalive=25):
        """Generator of SSE chunks for one connection; unsubscribes when closed"""
        client = self.subscribe(user_id)
        try:
            yield format_sse('connected', {'ok': True})
            while True:
                try:
                    yield client.get(timeout=keepalive)
                except queue.Empty:
                    yield KEEPALIVE
        finally:
            self.unsubscribe(user_id, client)

    def reset(self):
        with self._lock:
            self._clients.clear()


hub = RealtimeHub()


def publish_to_user(user_id, event, data):
    return hub.publish_to_user(user_id, event, data)
