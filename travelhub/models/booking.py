"""
Booking Models
Property stays, vehicle rentals and tour reservations share status,
payment and cancellation handling through BookingMixin.
"""

from extensions import db
from datetime import datetime
from enum import Enum


class BookingStatus(str, Enum):
    """Booking status enum"""
    PENDING = 'pending'
    CONFIRMED = 'confirmed'
    CANCELLED = 'cancelled'
    COMPLETED = 'completed'
    REFUNDED = 'refunded'
    REJECTED = 'rejected'


class PaymentStatus(str, Enum):
    """Payment status enum"""
    PENDING = 'pending'
    PROCESSING = 'processing'
    SUCCEEDED = 'succeeded'
    FAILED = 'failed'
    REFUNDED = 'refunded'


# Statuses that no longer hold inventory
INACTIVE_STATUSES = (BookingStatus.CANCELLED, BookingStatus.REFUNDED, BookingStatus.REJECTED)

# Statuses that block a vehicle or tour slot
BLOCKING_STATUSES = (BookingStatus.PENDING, BookingStatus.CONFIRMED)

ALLOWED_TRANSITIONS = {
    BookingStatus.PENDING: {BookingStatus.CONFIRMED, BookingStatus.REJECTED, BookingStatus.CANCELLED},
    BookingStatus.CONFIRMED: {BookingStatus.COMPLETED, BookingStatus.CANCELLED},
    BookingStatus.CANCELLED: {BookingStatus.REFUNDED},
}


class BookingMixin:
    """Columns and behaviour shared by every booking kind"""

    kind = None

    booking_number = db.Column(db.String(40), unique=True, nullable=False, index=True)
    status = db.Column(db.Enum(BookingStatus), default=BookingStatus.PENDING, nullable=False)

    # Pricing
    subtotal = db.Column(db.Numeric(10, 2), nullable=False, default=0)
    service_fee = db.Column(db.Numeric(10, 2), default=0)
    tax_amount = db.Column(db.Numeric(10, 2), default=0)
    total_price = db.Column(db.Numeric(10, 2), nullable=False)
    currency = db.Column(db.String(3), default='PKR')

    # Payment Information
    payment_intent_id = db.Column(db.String(255), index=True)
    payment_status = db.Column(db.Enum(PaymentStatus), default=PaymentStatus.PENDING, nullable=False)
    refund_amount = db.Column(db.Numeric(10, 2), default=0)

    # Additional Information
    special_requests = db.Column(db.Text)
    cancellation_reason = db.Column(db.Text)

    # Timestamps
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    cancelled_at = db.Column(db.DateTime)

    def __init__(self, **kwargs):
        """Initialize booking"""
        for key, value in kwargs.items():
            if hasattr(self, key):
                setattr(self, key, value)

    @property
    def starts_on(self):
        raise NotImplementedError

    @property
    def service(self):
        raise NotImplementedError

    @property
    def service_name(self):
        raise NotImplementedError

    def can_cancel(self):
        """Check if booking can be cancelled"""
        return self.status in (BookingStatus.PENDING, BookingStatus.CONFIRMED)

    def can_transition(self, new_status):
        return new_status in ALLOWED_TRANSITIONS.get(self.status, set())

    def is_participant(self, user_id):
        return user_id in (self.customer_id, self.provider_id)

    def _base_dict(self):
        return {
            'id': self.id,
            'kind': self.kind,
            'booking_number': self.booking_number,
            'customer_id': self.customer_id,
            'provider_id': self.provider_id,
            'service_name': self.service_name,
            'status': self.status.value,
            'subtotal': float(self.subtotal or 0),
            'service_fee': float(self.service_fee or 0),
            'tax_amount': float(self.tax_amount or 0),
            'total_price': float(self.total_price),
            'currency': self.currency,
            'payment_status': self.payment_status.value,
            'refund_amount': float(self.refund_amount or 0),
            'special_requests': self.special_requests,
            'cancellation_reason': self.cancellation_reason,
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'cancelled_at': self.cancelled_at.isoformat() if self.cancelled_at else None,
        }

    def __repr__(self):
        return f'<{type(self).__name__} {self.booking_number}>'


class PropertyBooking(BookingMixin, db.Model):
    """Reservation of one or more units of a room type"""

    __tablename__ = 'property_bookings'

    kind = 'property'

    id = db.Column(db.Integer, primary_key=True)
    property_id = db.Column(db.Integer, db.ForeignKey('properties.id'), nullable=False)
    room_type_id = db.Column(db.Integer, db.ForeignKey('room_types.id'), nullable=False, index=True)
    customer_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False)
    provider_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False)

    check_in = db.Column(db.Date, nullable=False)
    check_out = db.Column(db.Date, nullable=False)
    guests = db.Column(db.Integer, nullable=False, default=1)
    number_of_rooms = db.Column(db.Integer, nullable=False, default=1)
    nights = db.Column(db.Integer, nullable=False)
    cleaning_fee = db.Column(db.Numeric(10, 2), default=0)

    listing = db.relationship('Property')
    room_type = db.relationship('RoomType')
    customer = db.relationship('User', foreign_keys=[customer_id])
    provider = db.relationship('User', foreign_keys=[provider_id])

    @property
    def starts_on(self):
        return self.check_in

    @property
    def service(self):
        return self.listing

    @property
    def service_name(self):
        if self.listing and self.room_type:
            return f'{self.listing.name} - {self.room_type.name}'
        return None

    def to_dict(self, include_customer=False):
        data = self._base_dict()
        data.update({
            'property_id': self.property_id,
            'room_type_id': self.room_type_id,
            'check_in': self.check_in.isoformat() if self.check_in else None,
            'check_out': self.check_out.isoformat() if self.check_out else None,
            'guests': self.guests,
            'number_of_rooms': self.number_of_rooms,
            'nights': self.nights,
            'cleaning_fee': float(self.cleaning_fee or 0),
        })
        if include_customer:
            data['customer'] = self.customer.to_dict()
        return data


class VehicleBooking(BookingMixin, db.Model):
    """Vehicle rental for a date range"""

    __tablename__ = 'vehicle_bookings'

    kind = 'vehicle'

    id = db.Column(db.Integer, primary_key=True)
    vehicle_id = db.Column(db.Integer, db.ForeignKey('vehicles.id'), nullable=False, index=True)
    customer_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False)
    provider_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False)

    start_date = db.Column(db.Date, nullable=False)
    end_date = db.Column(db.Date, nullable=False)
    days = db.Column(db.Integer, nullable=False)
    pickup_location = db.Column(db.String(255))
    with_driver = db.Column(db.Boolean, default=False)
    insurance_fee = db.Column(db.Numeric(10, 2), default=0)
    driver_fee = db.Column(db.Numeric(10, 2), default=0)

    vehicle = db.relationship('Vehicle')
    customer = db.relationship('User', foreign_keys=[customer_id])
    provider = db.relationship('User', foreign_keys=[provider_id])

    @property
    def starts_on(self):
        return self.start_date

    @property
    def service(self):
        return self.vehicle

    @property
    def service_name(self):
        return self.vehicle.title if self.vehicle else None

    def to_dict(self, include_customer=False):
        data = self._base_dict()
        data.update({
            'vehicle_id': self.vehicle_id,
            'start_date': self.start_date.isoformat() if self.start_date else None,
            'end_date': self.end_date.isoformat() if self.end_date else None,
            'days': self.days,
            'pickup_location': self.pickup_location,
            'with_driver': self.with_driver,
            'insurance_fee': float(self.insurance_fee or 0),
            'driver_fee': float(self.driver_fee or 0),
        })
        if include_customer:
            data['customer'] = self.customer.to_dict()
        return data


class TourBooking(BookingMixin, db.Model):
    """Seats on a tour for a given date and time slot"""

    __tablename__ = 'tour_bookings'

    kind = 'tour'

    id = db.Column(db.Integer, primary_key=True)
    tour_id = db.Column(db.Integer, db.ForeignKey('tours.id'), nullable=False, index=True)
    customer_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False)
    provider_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False)

    tour_date = db.Column(db.Date, nullable=False)
    time_slot = db.Column(db.String(20))
    participants = db.Column(db.Integer, nullable=False, default=1)
    children = db.Column(db.Integer, default=0)
    price_per_person = db.Column(db.Numeric(10, 2), nullable=False)
    child_discount = db.Column(db.Numeric(10, 2), default=0)
    group_discount = db.Column(db.Numeric(10, 2), default=0)
    lead_traveler_name = db.Column(db.String(120))
    lead_traveler_phone = db.Column(db.String(30))

    tour = db.relationship('Tour')
    customer = db.relationship('User', foreign_keys=[customer_id])
    provider = db.relationship('User', foreign_keys=[provider_id])

    @property
    def starts_on(self):
        return self.tour_date

    @property
    def service(self):
        return self.tour

    @property
    def service_name(self):
        return self.tour.title if self.tour else None

    def to_dict(self, include_customer=False):
        data = self._base_dict()
        data.update({
            'tour_id': self.tour_id,
            'tour_date': self.tour_date.isoformat() if self.tour_date else None,
            'time_slot': self.time_slot,
            'participants': self.participants,
            'children': self.children,
            'price_per_person': float(self.price_per_person),
            'child_discount': float(self.child_discount or 0),
            'group_discount': float(self.group_discount or 0),
            'lead_traveler_name': self.lead_traveler_name,
        })
        if include_customer:
            data['customer'] = self.customer.to_dict()
        return data


BOOKING_MODELS = {
    'property': PropertyBooking,
    'vehicle': VehicleBooking,
    'tour': TourBooking,
}
