import pytest

from travelhub.models import BookingStatus, Notification, NotificationType, PaymentStatus
from travelhub.services.stripe_service import StripeService


@pytest.fixture
def fake_stripe(monkeypatch):
    calls = {'status': 'succeeded', 'refunds': []}

    def create_payment_intent(amount, currency='pkr', metadata=None):
        calls['metadata'] = metadata
        return {'success': True, 'client_secret': 'pi_123_secret', 'payment_intent_id': 'pi_123',
                'amount': amount, 'currency': currency}

    def retrieve_payment(payment_intent_id):
        return {'success': True, 'status': calls['status'], 'amount': 220.0, 'currency': 'pkr'}

    def create_refund(payment_intent_id, amount=None, reason=None):
        calls['refunds'].append((payment_intent_id, amount))
        return {'success': True, 'refund_id': 're_1', 'amount': amount, 'status': 'succeeded'}

    monkeypatch.setattr(StripeService, 'create_payment_intent', staticmethod(create_payment_intent))
    monkeypatch.setattr(StripeService, 'retrieve_payment', staticmethod(retrieve_payment))
    monkeypatch.setattr(StripeService, 'create_refund', staticmethod(create_refund))
    return calls


@pytest.fixture
def booking(client, customer, room, in_days, auth_headers):
    response = client.post('/api/bookings/property', headers=auth_headers(customer), json={
        'room_type_id': room.id,
        'check_in': in_days(10).isoformat(),
        'check_out': in_days(12).isoformat(),
    })
    return response.get_json()['booking']


def test_payment_flow_confirms_booking(client, customer, owner, booking, fake_stripe, auth_headers):
    headers = auth_headers(customer)

    intent = client.post('/api/payments/create-payment-intent', headers=headers, json={'booking_id': booking['id']})
    assert intent.status_code == 200
    assert intent.get_json()['client_secret'] == 'pi_123_secret'
    assert fake_stripe['metadata']['booking_type'] == 'property'
    assert fake_stripe['metadata']['booking_id'] == str(booking['id'])

    confirm = client.post('/api/payments/confirm-payment', headers=headers, json={'payment_intent_id': 'pi_123'})
    assert confirm.status_code == 200
    paid = confirm.get_json()['booking']
    assert paid['status'] == 'confirmed'
    assert paid['payment_status'] == 'succeeded'

    received = Notification.query.filter_by(user_id=owner.id,
                                            notification_type=NotificationType.PAYMENT_RECEIVED).count()
    assert received == 1

    again = client.post('/api/payments/create-payment-intent', headers=headers, json={'booking_id': booking['id']})
    assert again.status_code == 400


def test_only_the_customer_can_pay(client, owner, booking, fake_stripe, auth_headers):
    response = client.post('/api/payments/create-payment-intent', headers=auth_headers(owner),
                           json={'booking_id': booking['id']})

    assert response.status_code == 403


def test_unfinished_payment_keeps_booking_pending(client, customer, booking, fake_stripe, auth_headers):
    headers = auth_headers(customer)
    client.post('/api/payments/create-payment-intent', headers=headers, json={'booking_id': booking['id']})
    fake_stripe['status'] = 'requires_payment_method'

    response = client.post('/api/payments/confirm-payment', headers=headers, json={'payment_intent_id': 'pi_123'})

    assert response.get_json()['booking']['status'] == 'pending'
    assert response.get_json()['booking']['payment_status'] == 'failed'


def test_refund_after_cancellation(client, customer, booking, fake_stripe, auth_headers):
    headers = auth_headers(customer)
    client.post('/api/payments/create-payment-intent', headers=headers, json={'booking_id': booking['id']})
    client.post('/api/payments/confirm-payment', headers=headers, json={'payment_intent_id': 'pi_123'})

    early = client.post('/api/payments/refund', headers=headers, json={'booking_id': booking['id']})
    assert early.status_code == 400

    client.post(f"/api/bookings/property/{booking['id']}/cancel", headers=headers)
    response = client.post('/api/payments/refund', headers=headers, json={'booking_id': booking['id']})

    assert response.status_code == 200
    assert fake_stripe['refunds'] == [('pi_123', 220.0)]

    detail = client.get(f"/api/bookings/property/{booking['id']}", headers=headers).get_json()['booking']
    assert detail['status'] == BookingStatus.REFUNDED.value
    assert detail['payment_status'] == PaymentStatus.REFUNDED.value


def test_webhook_requires_secret(app, client):
    app.config['STRIPE_WEBHOOK_SECRET'] = None

    assert client.post('/api/payments/webhook', data=b'{}').status_code == 500


def test_webhook_updates_booking_from_metadata(app, client, customer, booking, monkeypatch):
    app.config['STRIPE_WEBHOOK_SECRET'] = 'whsec_test'
    events = []
    monkeypatch.setattr(StripeService, 'verify_webhook_signature',
                        staticmethod(lambda payload, signature, secret: events.pop(0) if events else None))

    intent = {'id': 'pi_hook', 'metadata': {'booking_type': 'property', 'booking_id': str(booking['id'])}}

    events.append({'type': 'payment_intent.payment_failed', 'data': {'object': intent}})
    client.post('/api/payments/webhook', data=b'{}', headers={'Stripe-Signature': 'sig'})
    failed = Notification.query.filter_by(user_id=customer.id,
                                          notification_type=NotificationType.PAYMENT_FAILED).count()
    assert failed == 1

    events.append({'type': 'payment_intent.succeeded', 'data': {'object': intent}})
    response = client.post('/api/payments/webhook', data=b'{}', headers={'Stripe-Signature': 'sig'})
    assert response.get_json() == {'received': True}

    stored = StripeService.booking_from_intent(intent)
    assert stored.status == BookingStatus.CONFIRMED
    assert stored.payment_status == PaymentStatus.SUCCEEDED
    assert stored.payment_intent_id == 'pi_hook'

    bad_signature = client.post('/api/payments/webhook', data=b'{}', headers={'Stripe-Signature': 'sig'})
    assert bad_signature.status_code == 400
