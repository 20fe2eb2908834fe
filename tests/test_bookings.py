from datetime import date, datetime
from types import SimpleNamespace

from extensions import db
from travelhub.models import BookingStatus, Notification, NotificationType, PropertyBooking
from travelhub.services.booking_service import (
    calculate_tour_price,
    calculate_vehicle_price,
    generate_booking_number,
    refund_percentage,
)


def test_booking_numbers_carry_kind_prefix():
    assert generate_booking_number('property').startswith('PB')
    assert generate_booking_number('vehicle').startswith('VB')
    assert generate_booking_number('tour').startswith('TB')
    assert generate_booking_number('tour') != generate_booking_number('tour')


def test_refund_percentage_windows():
    now = datetime(2026, 1, 1, 0, 0)

    assert refund_percentage(date(2026, 1, 4), now) == 100
    assert refund_percentage(date(2026, 1, 3), now) == 50
    assert refund_percentage(date(2026, 1, 2), now) == 0
    assert refund_percentage(date(2026, 1, 2), datetime(2025, 12, 31, 12, 0)) == 50
    assert refund_percentage(date(2025, 12, 30), now) == 0


def test_vehicle_price():
    vehicle = SimpleNamespace(daily_rate=5000, insurance_fee=500, driver_fee=2000, currency='PKR')

    without_driver = calculate_vehicle_price(vehicle, 3)
    assert without_driver['rental'] == 15000
    assert without_driver['insurance'] == 1500
    assert without_driver['driver'] == 0
    assert without_driver['service_fee'] == 825
    assert without_driver['taxes'] == 1650
    assert without_driver['total'] == 18975

    with_driver = calculate_vehicle_price(vehicle, 3, with_driver=True)
    assert with_driver['driver'] == 6000
    assert with_driver['total'] == 25875


def test_vehicle_fees_round_half_up():
    vehicle = SimpleNamespace(daily_rate=1010, insurance_fee=0, driver_fee=0, currency='PKR')

    pricing = calculate_vehicle_price(vehicle, 1)

    assert pricing['service_fee'] == 51
    assert pricing['taxes'] == 101
    assert pricing['total'] == 1162


def test_tour_price_discounts():
    tour = SimpleNamespace(price_per_person=1000, currency='PKR')

    small = calculate_tour_price(tour, 4)
    assert small['total'] == 4000
    assert small['group_discount'] == 0

    group = calculate_tour_price(tour, 5, children=2)
    assert group['subtotal'] == 5000
    assert group['child_discount'] == 1000
    assert group['group_discount'] == 500
    assert group['total'] == 3500


def book_room(client, headers, room, check_in, check_out, **extra):
    payload = {'room_type_id': room.id, 'check_in': check_in.isoformat(), 'check_out': check_out.isoformat()}
    payload.update(extra)
    return client.post('/api/bookings/property', headers=headers, json=payload)


def test_create_property_booking(client, customer, owner, room, in_days, auth_headers):
    response = book_room(client, auth_headers(customer), room, in_days(10), in_days(12), guests=2)

    assert response.status_code == 201
    booking = response.get_json()['booking']
    assert booking['booking_number'].startswith('PB')
    assert booking['status'] == 'pending'
    assert booking['nights'] == 2
    assert booking['subtotal'] == 200
    assert booking['total_price'] == 220
    assert booking['provider_id'] == owner.id

    created = Notification.query.filter_by(user_id=customer.id).one()
    received = Notification.query.filter_by(user_id=owner.id).one()
    assert created.notification_type == NotificationType.BOOKING_CREATED
    assert received.notification_type == NotificationType.BOOKING_RECEIVED


def test_property_booking_conflict(client, customer, make_user, room, in_days, auth_headers):
    first = book_room(client, auth_headers(customer), room, in_days(10), in_days(12), number_of_rooms=2)
    assert first.status_code == 201

    other = make_user()
    response = book_room(client, auth_headers(other), room, in_days(11), in_days(13))

    assert response.status_code == 409
    body = response.get_json()
    assert body['error'] == 'Room not available for 1 date(s)'
    assert body['conflicts'][0]['date'] == in_days(11).isoformat()
    assert PropertyBooking.query.count() == 1


def test_property_booking_validation(client, customer, owner, room, in_days, auth_headers):
    headers = auth_headers(customer)

    assert book_room(client, headers, room, in_days(12), in_days(10)).status_code == 400
    assert book_room(client, headers, room, in_days(-2), in_days(1)).status_code == 400
    assert book_room(client, headers, room, in_days(10), in_days(12), guests=3).status_code == 400
    assert book_room(client, headers, room, in_days(10), in_days(12), guests=3,
                     number_of_rooms=2).status_code == 201

    own = book_room(client, auth_headers(owner), room, in_days(20), in_days(21))
    assert own.status_code == 400
    assert own.get_json()['error'] == 'You cannot book your own property'


def test_unknown_booking_kind(client, customer, auth_headers):
    response = client.post('/api/bookings/boat', headers=auth_headers(customer), json={})

    assert response.status_code == 404


def test_vehicle_booking_and_overlap(client, customer, make_user, vehicle, in_days, auth_headers):
    payload = {'vehicle_id': vehicle.id, 'start_date': in_days(5).isoformat(), 'end_date': in_days(8).isoformat()}

    response = client.post('/api/bookings/vehicle', headers=auth_headers(customer), json=payload)
    assert response.status_code == 201
    booking = response.get_json()['booking']
    assert booking['days'] == 3
    assert booking['total_price'] == 18975

    overlapping = dict(payload, start_date=in_days(8).isoformat(), end_date=in_days(9).isoformat())
    response = client.post('/api/bookings/vehicle', headers=auth_headers(make_user()), json=overlapping)
    assert response.status_code == 409

    backwards = dict(payload, start_date=in_days(12).isoformat(), end_date=in_days(12).isoformat())
    response = client.post('/api/bookings/vehicle', headers=auth_headers(customer), json=backwards)
    assert response.status_code == 400
    assert response.get_json()['error'] == 'Dropoff must be after pickup'


def test_tour_booking_capacity(client, customer, make_user, tour, in_days, auth_headers):
    payload = {'tour_id': tour.id, 'tour_date': in_days(3).isoformat(), 'time_slot': '09:00', 'participants': 4}

    first = client.post('/api/bookings/tour', headers=auth_headers(customer), json=payload)
    assert first.status_code == 201
    assert first.get_json()['booking']['total_price'] == 4000

    full = client.post('/api/bookings/tour', headers=auth_headers(make_user()), json=payload)
    assert full.status_code == 409
    assert full.get_json()['available_spots'] == 2

    other_slot = client.post('/api/bookings/tour', headers=auth_headers(make_user()),
                             json=dict(payload, time_slot='14:00'))
    assert other_slot.status_code == 201

    bad_slot = client.post('/api/bookings/tour', headers=auth_headers(customer),
                           json=dict(payload, time_slot='23:00'))
    assert bad_slot.status_code == 400


def test_tour_detail_spots_left(client, customer, tour, in_days, auth_headers):
    client.post('/api/bookings/tour', headers=auth_headers(customer),
                json={'tour_id': tour.id, 'tour_date': in_days(3).isoformat(), 'time_slot': '14:00',
                      'participants': 2})

    response = client.get(f'/api/tours/{tour.id}?date={in_days(3).isoformat()}')

    assert response.get_json()['availability'] == [
        {'time_slot': '09:00', 'spots_left': 6},
        {'time_slot': '14:00', 'spots_left': 4},
    ]


def test_cancel_refunds_by_lead_time(client, customer, owner, room, in_days, auth_headers):
    booking_id = book_room(client, auth_headers(customer), room, in_days(10), in_days(12)).get_json()['booking']['id']

    response = client.post(f'/api/bookings/property/{booking_id}/cancel', headers=auth_headers(customer),
                           json={'reason': 'Change of plans'})

    assert response.status_code == 200
    body = response.get_json()
    assert body['refund_percentage'] == 100
    assert body['refund_amount'] == 220
    assert body['booking']['status'] == 'cancelled'
    assert body['booking']['cancellation_reason'] == 'Change of plans'

    cancelled = Notification.query.filter_by(user_id=owner.id,
                                             notification_type=NotificationType.BOOKING_CANCELLED).count()
    assert cancelled == 1

    again = client.post(f'/api/bookings/property/{booking_id}/cancel', headers=auth_headers(customer))
    assert again.status_code == 400


def test_cancel_close_to_start_refunds_nothing(client, customer, room, in_days, auth_headers):
    booking_id = book_room(client, auth_headers(customer), room, in_days(0), in_days(1)).get_json()['booking']['id']

    response = client.post(f'/api/bookings/property/{booking_id}/cancel', headers=auth_headers(customer))

    assert response.get_json()['refund_percentage'] == 0
    assert response.get_json()['refund_amount'] == 0


def test_provider_status_changes(client, customer, owner, room, in_days, auth_headers):
    booking_id = book_room(client, auth_headers(customer), room, in_days(10), in_days(12)).get_json()['booking']['id']
    url = f'/api/bookings/property/{booking_id}/status'

    assert client.post(url, headers=auth_headers(customer), json={'action': 'confirm'}).status_code == 403
    assert client.post(url, headers=auth_headers(owner), json={'action': 'complete'}).status_code == 400
    assert client.post(url, headers=auth_headers(owner), json={'action': 'cancel'}).status_code == 400

    confirmed = client.post(url, headers=auth_headers(owner), json={'action': 'confirm'})
    assert confirmed.status_code == 200
    assert confirmed.get_json()['booking']['status'] == 'confirmed'

    notification = Notification.query.filter_by(user_id=customer.id,
                                                notification_type=NotificationType.BOOKING_CONFIRMED).one()
    assert booking_id == notification.data['booking_id']


def test_other_providers_cannot_touch_booking(client, customer, make_user, room, in_days, auth_headers):
    from travelhub.models import ProviderType, UserRole

    booking_id = book_room(client, auth_headers(customer), room, in_days(10), in_days(12)).get_json()['booking']['id']
    stranger = make_user(UserRole.PROVIDER, ProviderType.PROPERTY_OWNER)

    assert client.get(f'/api/bookings/property/{booking_id}', headers=auth_headers(stranger)).status_code == 403
    assert client.post(f'/api/bookings/property/{booking_id}/status', headers=auth_headers(stranger),
                       json={'action': 'confirm'}).status_code == 403
    assert client.post(f'/api/bookings/property/{booking_id}/cancel',
                       headers=auth_headers(stranger)).status_code == 403


def test_booking_lists(client, customer, owner, room, vehicle, in_days, auth_headers):
    book_room(client, auth_headers(customer), room, in_days(10), in_days(12))
    client.post('/api/bookings/vehicle', headers=auth_headers(customer),
                json={'vehicle_id': vehicle.id, 'start_date': in_days(5).isoformat(),
                      'end_date': in_days(6).isoformat()})

    mine = client.get('/api/bookings/my-bookings', headers=auth_headers(customer)).get_json()
    assert mine['total'] == 2
    assert {b['kind'] for b in mine['bookings']} == {'property', 'vehicle'}

    provider = client.get('/api/bookings/provider', headers=auth_headers(owner)).get_json()
    assert provider['total'] == 1
    assert provider['bookings'][0]['customer']['id'] == customer.id

    filtered = client.get('/api/bookings/my-bookings?status=confirmed', headers=auth_headers(customer)).get_json()
    assert filtered['total'] == 0

    invalid = client.get('/api/bookings/my-bookings?status=lost', headers=auth_headers(customer))
    assert invalid.status_code == 400


def test_completed_booking_can_be_reviewed_once(client, customer, owner, room, listing, in_days, auth_headers,
                                                 make_property_booking):
    booking = make_property_booking(room, in_days(-5), status=BookingStatus.COMPLETED)
    payload = {'booking_id': booking.id, 'rating': 4, 'comment': 'Great view', 'cleanliness_rating': 5}

    response = client.post('/api/reviews', headers=auth_headers(customer), json=payload)
    assert response.status_code == 201

    db.session.refresh(listing)
    assert listing.total_reviews == 1
    assert listing.average_rating == 4

    assert client.post('/api/reviews', headers=auth_headers(customer), json=payload).status_code == 409

    reviews = client.get(f'/api/reviews/property/{listing.id}').get_json()
    assert reviews['total'] == 1

    review_id = response.get_json()['review']['id']
    reply = client.post(f'/api/reviews/{review_id}/response', headers=auth_headers(owner),
                        json={'response': 'Thanks for staying!'})
    assert reply.status_code == 200
    assert reply.get_json()['review']['owner_response'] == 'Thanks for staying!'


def test_pending_booking_cannot_be_reviewed(client, customer, room, in_days, auth_headers, make_property_booking):
    booking = make_property_booking(room, in_days(5), status=BookingStatus.PENDING)

    response = client.post('/api/reviews', headers=auth_headers(customer),
                           json={'booking_id': booking.id, 'rating': 5, 'comment': 'Early review'})

    assert response.status_code == 400
