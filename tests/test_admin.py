from extensions import db
from travelhub.models import (
    ApprovalStatus,
    BookingStatus,
    Notification,
    NotificationType,
    PaymentStatus,
    ProviderType,
    UserRole,
)


def test_dashboard_requires_admin(client, customer, auth_headers):
    assert client.get('/api/admin/dashboard', headers=auth_headers(customer)).status_code == 403


def test_dashboard_statistics(client, admin, customer, owner, room, in_days, auth_headers, make_property_booking):
    paid = make_property_booking(room, in_days(10))
    paid.payment_status = PaymentStatus.SUCCEEDED
    make_property_booking(room, in_days(20), status=BookingStatus.PENDING)
    db.session.commit()

    response = client.get('/api/admin/dashboard', headers=auth_headers(admin))

    assert response.status_code == 200
    stats = response.get_json()['statistics']
    assert stats['users_by_role'] == {'customer': 1, 'provider': 1, 'admin': 1}
    assert stats['bookings']['property']['total'] == 2
    assert stats['bookings']['property']['confirmed'] == 1
    assert stats['bookings']['property']['pending'] == 1
    assert stats['bookings']['vehicle']['total'] == 0
    assert stats['revenue'] == 200


def test_user_list_filters_by_role(client, admin, customer, owner, auth_headers):
    response = client.get('/api/admin/users?role=provider', headers=auth_headers(admin))

    users = response.get_json()['users']
    assert [u['id'] for u in users] == [owner.id]
    assert users[0]['email'] == owner.email

    assert client.get('/api/admin/users?role=pilot', headers=auth_headers(admin)).status_code == 400


def test_change_role(client, admin, customer, auth_headers):
    url = f'/api/admin/users/{customer.id}/role'

    assert client.put(url, headers=auth_headers(admin), json={'role': 'provider'}).status_code == 400

    response = client.put(url, headers=auth_headers(admin), json={'role': 'provider', 'provider_type': 'tour_guide'})
    assert response.status_code == 200
    assert customer.role == UserRole.PROVIDER
    assert response.get_json()['user']['provider_type'] == 'tour_guide'


def test_admin_cannot_demote_self(client, admin, auth_headers):
    response = client.put(f'/api/admin/users/{admin.id}/role', headers=auth_headers(admin), json={'role': 'customer'})

    assert response.status_code == 403
    assert admin.role == UserRole.ADMIN


def test_deactivate_and_activate(client, admin, customer, auth_headers):
    response = client.post(f'/api/admin/users/{customer.id}/deactivate', headers=auth_headers(admin))
    assert response.status_code == 200
    assert customer.is_active is False

    login = client.post('/api/auth/login', json={'email': customer.email, 'password': 'password123'})
    assert login.status_code == 403

    client.post(f'/api/admin/users/{customer.id}/activate', headers=auth_headers(admin))
    assert customer.is_active is True

    assert client.post(f'/api/admin/users/{admin.id}/deactivate', headers=auth_headers(admin)).status_code == 403


def test_all_bookings(client, admin, room, in_days, auth_headers, make_property_booking):
    make_property_booking(room, in_days(10))
    make_property_booking(room, in_days(20), status=BookingStatus.CANCELLED)

    everything = client.get('/api/admin/bookings', headers=auth_headers(admin)).get_json()
    assert everything['total'] == 2

    cancelled = client.get('/api/admin/bookings?kind=property&status=cancelled', headers=auth_headers(admin))
    assert cancelled.get_json()['total'] == 1

    assert client.get('/api/admin/bookings?kind=boat', headers=auth_headers(admin)).status_code == 400


def test_new_listing_waits_for_approval(client, admin, make_user, auth_headers):
    driver = make_user(UserRole.PROVIDER, ProviderType.VEHICLE_OWNER)
    created = client.post('/api/vehicles', headers=auth_headers(driver),
                          json={'make': 'Honda', 'model': 'Civic', 'daily_rate': 4000})
    vehicle_id = created.get_json()['vehicle']['id']

    assert created.get_json()['vehicle']['approval_status'] == 'pending'
    assert client.get('/api/vehicles').get_json()['total'] == 0

    queue = client.get('/api/admin/approvals', headers=auth_headers(admin)).get_json()
    assert [(item['kind'], item['id']) for item in queue['listings']] == [('vehicle', vehicle_id)]
    assert queue['counts']['pending'] == 1

    response = client.post(f'/api/admin/approvals/vehicle/{vehicle_id}', headers=auth_headers(admin),
                           json={'action': 'approve'})
    assert response.status_code == 200
    assert response.get_json()['listing']['approval_status'] == 'approved'

    assert client.get('/api/vehicles').get_json()['total'] == 1
    approved = Notification.query.filter_by(user_id=driver.id,
                                            notification_type=NotificationType.LISTING_APPROVED).count()
    assert approved == 1


def test_reject_needs_a_reason(client, admin, owner, listing, auth_headers):
    url = f'/api/admin/approvals/property/{listing.id}'

    assert client.post(url, headers=auth_headers(admin), json={'action': 'reject'}).status_code == 400
    assert client.post(url, headers=auth_headers(admin), json={'action': 'publish'}).status_code == 400

    response = client.post(url, headers=auth_headers(admin), json={'action': 'reject', 'reason': 'No photos'})
    assert response.status_code == 200
    assert listing.approval_status == ApprovalStatus.REJECTED
    assert listing.rejection_reason == 'No photos'
    assert listing.reviewed_by == admin.id

    notice = Notification.query.filter_by(user_id=owner.id,
                                          notification_type=NotificationType.LISTING_REJECTED).one()
    assert 'No photos' in notice.message


def test_owner_edit_resubmits_rejected_listing(client, admin, owner, listing, auth_headers):
    client.post(f'/api/admin/approvals/property/{listing.id}', headers=auth_headers(admin),
                json={'action': 'request_changes', 'reason': 'Add an address'})
    assert listing.approval_status == ApprovalStatus.REQUIRES_CHANGES

    client.put(f'/api/properties/{listing.id}', headers=auth_headers(owner), json={'address': '2 Mall Road'})

    assert listing.approval_status == ApprovalStatus.PENDING


def test_owner_cannot_suspend_or_approve_own_listing(client, owner, listing, auth_headers):
    response = client.put(f'/api/properties/{listing.id}', headers=auth_headers(owner), json={'status': 'suspended'})
    assert response.status_code == 403

    client.put(f'/api/properties/{listing.id}', headers=auth_headers(owner),
               json={'approval_status': 'approved', 'status': 'inactive'})
    assert listing.status.value == 'inactive'
    assert listing.approval_status == ApprovalStatus.APPROVED


def test_approval_queue_validation(client, admin, customer, auth_headers):
    assert client.get('/api/admin/approvals?kind=boat', headers=auth_headers(admin)).status_code == 400
    assert client.get('/api/admin/approvals?status=maybe', headers=auth_headers(admin)).status_code == 400
    assert client.post('/api/admin/approvals/tour/9999', headers=auth_headers(admin),
                       json={'action': 'approve'}).status_code == 404
    assert client.get('/api/admin/approvals', headers=auth_headers(customer)).status_code == 403


def test_unapproved_listing_cannot_be_booked(client, customer, vehicle, in_days, auth_headers):
    vehicle.approval_status = ApprovalStatus.PENDING
    db.session.commit()

    response = client.post('/api/bookings/vehicle', headers=auth_headers(customer), json={
        'vehicle_id': vehicle.id, 'start_date': in_days(5).isoformat(), 'end_date': in_days(7).isoformat(),
    })

    assert response.status_code == 400
    assert response.get_json()['error'] == 'Vehicle is not available for booking'
