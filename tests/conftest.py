import itertools
from datetime import timedelta

import pytest
from flask_jwt_extended import create_access_token

from extensions import db
from travelhub import create_app
from travelhub.models import (
    User,
    UserRole,
    ProviderType,
    ApprovalStatus,
    Property,
    PropertyType,
    RoomType,
    Vehicle,
    Tour,
    PropertyBooking,
    BookingStatus,
)
from travelhub.services.booking_service import generate_booking_number
from travelhub.services.presence import presence_store, typing_store
from travelhub.services.realtime import hub
from travelhub.utils.dates import today


@pytest.fixture
def app():
    app = create_app('testing')
    presence_store.clear()
    typing_store.clear()
    hub.reset()

    with app.app_context():
        yield app
        db.session.remove()
        db.drop_all()

    presence_store.clear()
    typing_store.clear()
    hub.reset()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def make_user(app):
    counter = itertools.count(1)

    def _make_user(role=UserRole.CUSTOMER, provider_type=None, **kwargs):
        n = next(counter)
        user = User(
            email=f'user{n}@example.com',
            username=f'user{n}',
            password='password123',
            first_name='Test',
            last_name=f'User{n}',
            role=role,
            provider_type=provider_type,
            **kwargs
        )
        db.session.add(user)
        db.session.commit()
        return user

    return _make_user


@pytest.fixture
def customer(make_user):
    return make_user()


@pytest.fixture
def owner(make_user):
    return make_user(UserRole.PROVIDER, ProviderType.PROPERTY_OWNER)


@pytest.fixture
def admin(make_user):
    return make_user(UserRole.ADMIN)


@pytest.fixture
def auth_headers(app):
    def _auth_headers(user):
        return {'Authorization': f'Bearer {create_access_token(identity=str(user.id))}'}
    return _auth_headers


@pytest.fixture
def listing(owner):
    listing = Property(
        owner_id=owner.id,
        name='Lakeview Inn',
        description='Rooms by the lake',
        property_type=PropertyType.HOTEL,
        address='1 Mall Road',
        city='Murree',
        country='Pakistan',
        cleaning_fee=0,
        service_fee=0,
        tax_rate=0,
        approval_status=ApprovalStatus.APPROVED,
    )
    db.session.add(listing)
    db.session.commit()
    return listing


@pytest.fixture
def room(listing):
    room = RoomType(property_id=listing.id, name='Deluxe', base_price=100, total_units=2, max_guests=2)
    db.session.add(room)
    db.session.commit()
    return room


@pytest.fixture
def vehicle(make_user):
    vehicle_owner = make_user(UserRole.PROVIDER, ProviderType.VEHICLE_OWNER)
    vehicle = Vehicle(
        owner_id=vehicle_owner.id,
        make='Toyota',
        model='Corolla',
        year=2022,
        city='Lahore',
        daily_rate=5000,
        insurance_fee=500,
        driver_fee=2000,
        approval_status=ApprovalStatus.APPROVED,
    )
    db.session.add(vehicle)
    db.session.commit()
    return vehicle


@pytest.fixture
def tour(make_user):
    guide = make_user(UserRole.PROVIDER, ProviderType.TOUR_GUIDE)
    tour = Tour(
        guide_id=guide.id,
        title='Walled City Walk',
        description='Food and history through the old city',
        city='Lahore',
        price_per_person=1000,
        max_group_size=6,
        time_slots=['09:00', '14:00'],
        approval_status=ApprovalStatus.APPROVED,
    )
    db.session.add(tour)
    db.session.commit()
    return tour


@pytest.fixture
def in_days():
    def _in_days(days):
        return today() + timedelta(days=days)
    return _in_days


@pytest.fixture
def make_property_booking(customer):
    def _make(room, check_in, nights=2, number_of_rooms=1, status=BookingStatus.CONFIRMED, customer_id=None):
        booking = PropertyBooking(
            booking_number=generate_booking_number('property'),
            property_id=room.property_id,
            room_type_id=room.id,
            customer_id=customer_id or customer.id,
            provider_id=room.property.owner_id,
            check_in=check_in,
            check_out=check_in + timedelta(days=nights),
            guests=1,
            number_of_rooms=number_of_rooms,
            nights=nights,
            subtotal=100 * nights,
            total_price=100 * nights,
            status=status,
        )
        db.session.add(booking)
        db.session.commit()
        return booking
    return _make
