"""
Presence and typing stores

Both live in process memory: they only work for a single application
instance and are empty again after a restart.
"""

import threading
from datetime import datetime, timedelta

from extensions import db
from travelhub.models.user import User

# Throttle for persisting presence to users.last_active_at
LAST_ACTIVE_WRITE_INTERVAL = timedelta(seconds=60)


class PresenceStore:
    """user id -> last time the user was seen"""

    def __init__(self, ttl=timedelta(minutes=5), clock=datetime.utcnow):
        self.ttl = ttl
        self.clock = clock
        self._seen = {}
        self._lock = threading.Lock()

    def _prune(self, now):
        cutoff = now - self.ttl
        for user_id in [uid for uid, seen in self._seen.items() if seen < cutoff]:
            del self._seen[user_id]

    def touch(self, user_id):
        now = self.clock()
        with self._lock:
            self._seen[user_id] = now
        return now

    def remove(self, user_id):
        with self._lock:
            self._seen.pop(user_id, None)

    def last_seen(self, user_id):
        with self._lock:
            self._prune(self.clock())
            return self._seen.get(user_id)

    def is_online(self, user_id):
        return self.last_seen(user_id) is not None

    def online_users(self):
        with self._lock:
            self._prune(self.clock())
            return set(self._seen)

    def clear(self):
        with self._lock:
            self._seen.clear()


class TypingStore:
    """conversation id -> {user id -> expiry}"""

    def __init__(self, ttl=timedelta(seconds=5), clock=datetime.utcnow):
        self.ttl = ttl
        self.clock = clock
        self._typing = {}
        self._lock = threading.Lock()

    def set_typing(self, user_id, conversation_id, is_typing):
        with self._lock:
            users = self._typing.setdefault(conversation_id, {})
            if is_typing:
                users[user_id] = self.clock() + self.ttl
            else:
                users.pop(user_id, None)
            if not users:
                self._typing.pop(conversation_id, None)

    def get_typing(self, conversation_id):
        now = self.clock()
        with self._lock:
            users = self._typing.get(conversation_id, {})
            for user_id in [uid for uid, expires in users.items() if expires <= now]:
                del users[user_id]
            if not users:
                self._typing.pop(conversation_id, None)
            return sorted(users)

    def clear(self):
        with self._lock:
            self._typing.clear()


presence_store = PresenceStore()
typing_store = TypingStore()


def init_app(app):
    presence_store.ttl = timedelta(seconds=app.config.get('PRESENCE_TTL_SECONDS', 300))
    typing_store.ttl = timedelta(seconds=app.config.get('TYPING_TTL_SECONDS', 5))


def record_activity(user_id):
    """Mark a user as seen now, persisting to the user row at most once a minute"""
    now = presence_store.touch(user_id)
    user = User.query.get(user_id)
    if user and (user.last_active_at is None or now - user.last_active_at >= LAST_ACTIVE_WRITE_INTERVAL):
        user.last_active_at = now
        db.session.commit()


def online_status(user):
    """Online flag and last-seen time, falling back to the persisted timestamp"""
    last_seen = presence_store.last_seen(user.id)
    if last_seen is not None:
        return {'is_online': True, 'last_seen': last_seen.isoformat()}

    persisted = user.last_active_at
    is_online = persisted is not None and presence_store.clock() - persisted < presence_store.ttl
    return {
        'is_online': is_online,
        'last_seen': persisted.isoformat() if persisted else None,
    }
