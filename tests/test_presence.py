from datetime import datetime, timedelta

from extensions import db
from travelhub.services.presence import PresenceStore, TypingStore, online_status, presence_store


class FakeClock:

    def __init__(self):
        self.now = datetime(2026, 1, 1, 12, 0, 0)

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)


def test_presence_expires_after_ttl():
    clock = FakeClock()
    store = PresenceStore(ttl=timedelta(minutes=5), clock=clock)

    store.touch(1)
    store.touch(2)
    clock.advance(minutes=3)
    store.touch(2)

    assert store.online_users() == {1, 2}

    clock.advance(minutes=3)

    assert store.is_online(1) is False
    assert store.is_online(2) is True
    assert store.online_users() == {2}


def test_presence_remove():
    store = PresenceStore(clock=FakeClock())
    store.touch(7)
    store.remove(7)
    store.remove(8)

    assert store.last_seen(7) is None


def test_typing_expires_and_clears():
    clock = FakeClock()
    store = TypingStore(ttl=timedelta(seconds=5), clock=clock)

    store.set_typing(1, 10, True)
    store.set_typing(2, 10, True)
    store.set_typing(3, 11, True)

    assert store.get_typing(10) == [1, 2]

    store.set_typing(1, 10, False)
    assert store.get_typing(10) == [2]

    clock.advance(seconds=6)
    assert store.get_typing(10) == []
    assert store.get_typing(11) == []


def test_online_status_falls_back_to_last_active(customer):
    status = online_status(customer)
    assert status == {'is_online': False, 'last_seen': None}

    customer.last_active_at = datetime.utcnow() - timedelta(minutes=1)
    db.session.commit()
    assert online_status(customer)['is_online'] is True

    customer.last_active_at = datetime.utcnow() - timedelta(hours=1)
    db.session.commit()
    assert online_status(customer)['is_online'] is False


def test_authenticated_requests_mark_user_online(client, customer, auth_headers):
    assert not presence_store.is_online(customer.id)

    response = client.get('/api/auth/me', headers=auth_headers(customer))

    assert response.status_code == 200
    assert presence_store.is_online(customer.id)
    assert customer.last_active_at is not None


def test_online_status_endpoint(client, customer, owner, auth_headers):
    client.get('/api/auth/me', headers=auth_headers(owner))

    response = client.get(f'/api/chat/online-status/{owner.id}', headers=auth_headers(customer))

    assert response.status_code == 200
    assert response.get_json()['is_online'] is True
    assert response.get_json()['user_id'] == owner.id


def test_logout_marks_user_offline(client, customer, auth_headers):
    headers = auth_headers(customer)
    client.get('/api/auth/me', headers=headers)

    response = client.post('/api/auth/logout', headers=headers)

    assert response.status_code == 200
    assert not presence_store.is_online(customer.id)
