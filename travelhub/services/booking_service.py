"""
Booking Service
Creates property, vehicle and tour bookings and moves them through their
lifecycle (cancel with refund policy, provider status changes).
"""

import logging
import math
import secrets
import string
from datetime import datetime, time

from extensions import db
from travelhub.exceptions import ConflictError, NotFoundError, PermissionDeniedError, ValidationError
from travelhub.models.booking import (
    BOOKING_MODELS,
    BLOCKING_STATUSES,
    BookingStatus,
    PropertyBooking,
    TourBooking,
    VehicleBooking,
)
from travelhub.models.notification import NotificationType
from travelhub.models.property import RoomType
from travelhub.models.tour import Tour
from travelhub.models.vehicle import Vehicle
from travelhub.services.availability_service import AvailabilityService
from travelhub.services.email_service import EmailService
from travelhub.services.notification_service import NotificationService
from travelhub.services.pricing_service import PricingService
from travelhub.utils.dates import nights_between, parse_date, today

logger = logging.getLogger(__name__)

BOOKING_PREFIXES = {'property': 'PB', 'vehicle': 'VB', 'tour': 'TB'}

VEHICLE_SERVICE_RATE = 0.05
VEHICLE_TAX_RATE = 0.10
TOUR_CHILD_DISCOUNT = 0.5
TOUR_GROUP_DISCOUNT = 0.10
TOUR_GROUP_MIN_SIZE = 5

STATUS_ACTIONS = {
    'confirm': BookingStatus.CONFIRMED,
    'reject': BookingStatus.REJECTED,
    'complete': BookingStatus.COMPLETED,
}

STATUS_NOTIFICATIONS = {
    BookingStatus.CONFIRMED: (NotificationType.BOOKING_CONFIRMED, 'Booking Confirmed'),
    BookingStatus.REJECTED: (NotificationType.BOOKING_REJECTED, 'Booking Rejected'),
    BookingStatus.COMPLETED: (NotificationType.BOOKING_COMPLETED, 'Booking Completed'),
}


def _round_half_up(value):
    return int(math.floor(value + 0.5))


def generate_booking_number(kind):
    """PB/VB/TB + millisecond timestamp + random suffix"""
    timestamp = int(datetime.utcnow().timestamp() * 1000)
    suffix = ''.join(secrets.choice(string.ascii_uppercase + string.digits) for _ in range(6))
    return f'{BOOKING_PREFIXES[kind]}{timestamp}{suffix}'


def refund_percentage(starts_on, now=None):
    """100% more than 48 hours before the start, 50% more than 24 hours before, else nothing"""
    now = now or datetime.utcnow()
    hours_until_start = (datetime.combine(starts_on, time.min) - now).total_seconds() / 3600
    if hours_until_start > 48:
        return 100
    if hours_until_start > 24:
        return 50
    return 0


def calculate_vehicle_price(vehicle, days, with_driver=False):
    rental = float(vehicle.daily_rate) * days
    insurance = float(vehicle.insurance_fee or 0) * days
    driver = float(vehicle.driver_fee or 0) * days if with_driver else 0.0
    base = rental + insurance + driver
    service = _round_half_up(VEHICLE_SERVICE_RATE * base)
    taxes = _round_half_up(VEHICLE_TAX_RATE * base)

    return {
        'days': days,
        'daily_rate': float(vehicle.daily_rate),
        'rental': round(rental, 2),
        'insurance': round(insurance, 2),
        'driver': round(driver, 2),
        'service_fee': service,
        'taxes': taxes,
        'total': round(base + service + taxes, 2),
        'currency': vehicle.currency,
    }


def calculate_tour_price(tour, participants, children=0):
    price = float(tour.price_per_person)
    child_discount = children * price * TOUR_CHILD_DISCOUNT
    group_discount = price * participants * TOUR_GROUP_DISCOUNT if participants >= TOUR_GROUP_MIN_SIZE else 0.0
    subtotal = price * participants

    return {
        'price_per_person': price,
        'participants': participants,
        'children': children,
        'subtotal': round(subtotal, 2),
        'child_discount': round(child_discount, 2),
        'group_discount': round(group_discount, 2),
        'total': round(subtotal - child_discount - group_discount, 2),
        'currency': tour.currency,
    }


def _positive_int(value, field, default=None):
    if value is None or value == '':
        if default is None:
            raise ValidationError(f'{field} is required')
        return default
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f'{field} must be a whole number')
    if number < 1:
        raise ValidationError(f'{field} must be at least 1')
    return number


class BookingService:

    @staticmethod
    def get_model(kind):
        model = BOOKING_MODELS.get(kind)
        if model is None:
            raise NotFoundError(f'Unknown booking type: {kind}')
        return model

    @staticmethod
    def get_booking(kind, booking_id):
        booking = BookingService.get_model(kind).query.get(booking_id)
        if not booking:
            raise NotFoundError('Booking not found')
        return booking

    @staticmethod
    def get_booking_for_user(kind, booking_id, user):
        booking = BookingService.get_booking(kind, booking_id)
        if not user.is_admin and not booking.is_participant(user.id):
            raise PermissionDeniedError('Unauthorized')
        return booking

    @staticmethod
    def create_property_booking(customer, data):
        room = RoomType.query.get(data.get('room_type_id')) if data.get('room_type_id') else None
        if not room:
            raise NotFoundError('Room type not found')

        property_obj = room.property
        if not property_obj.is_approved:
            raise ValidationError('This property is not open for booking yet')
        if property_obj.owner_id == customer.id:
            raise ValidationError('You cannot book your own property')

        check_in = parse_date(data.get('check_in'), 'check_in')
        check_out = parse_date(data.get('check_out'), 'check_out')
        if check_out <= check_in:
            raise ValidationError('Check-out must be after check-in')
        if check_in < today():
            raise ValidationError('Check-in date cannot be in the past')

        guests = _positive_int(data.get('guests'), 'guests', default=1)
        number_of_rooms = _positive_int(data.get('number_of_rooms'), 'number_of_rooms', default=1)
        if guests > room.max_guests * number_of_rooms:
            raise ValidationError(f'Maximum {room.max_guests * number_of_rooms} guests for {number_of_rooms} room(s)')

        availability = AvailabilityService.check_room_availability(room.id, check_in, check_out, number_of_rooms)
        if not availability['is_available']:
            payload = {key: value for key, value in availability.items() if key not in ('is_available', 'reason')}
            raise ConflictError(availability['reason'], payload=payload)

        pricing = PricingService.calculate_stay_price(
            room.id, check_in, check_out, booking_date=today(), number_of_rooms=number_of_rooms
        )

        booking = PropertyBooking(
            booking_number=generate_booking_number('property'),
            property_id=property_obj.id,
            room_type_id=room.id,
            customer_id=customer.id,
            provider_id=property_obj.owner_id,
            check_in=check_in,
            check_out=check_out,
            guests=guests,
            number_of_rooms=number_of_rooms,
            nights=nights_between(check_in, check_out),
            subtotal=pricing['subtotal'],
            cleaning_fee=pricing['cleaning_fee'],
            service_fee=pricing['service_fee'],
            tax_amount=pricing['tax_amount'],
            total_price=pricing['total'],
            currency=pricing['currency'],
            special_requests=data.get('special_requests'),
        )
        db.session.add(booking)
        db.session.commit()

        BookingService.notify_created(booking)
        return booking

    @staticmethod
    def create_vehicle_booking(customer, data):
        vehicle = Vehicle.query.get(data.get('vehicle_id')) if data.get('vehicle_id') else None
        if not vehicle:
            raise NotFoundError('Vehicle not found')
        if not vehicle.available or not vehicle.is_approved:
            raise ValidationError('Vehicle is not available for booking')
        if vehicle.owner_id == customer.id:
            raise ValidationError('You cannot book your own vehicle')

        start_date = parse_date(data.get('start_date'), 'start_date')
        end_date = parse_date(data.get('end_date'), 'end_date')
        if end_date <= start_date:
            raise ValidationError('Dropoff must be after pickup')
        if start_date < today():
            raise ValidationError('Pickup date cannot be in the past')

        overlapping = VehicleBooking.query.filter(
            VehicleBooking.vehicle_id == vehicle.id,
            VehicleBooking.status.in_(BLOCKING_STATUSES),
            VehicleBooking.start_date <= end_date,
            VehicleBooking.end_date >= start_date,
        ).first()
        if overlapping:
            raise ConflictError('Vehicle is not available for the selected dates')

        with_driver = bool(data.get('with_driver'))
        days = max(1, nights_between(start_date, end_date))
        pricing = calculate_vehicle_price(vehicle, days, with_driver)

        booking = VehicleBooking(
            booking_number=generate_booking_number('vehicle'),
            vehicle_id=vehicle.id,
            customer_id=customer.id,
            provider_id=vehicle.owner_id,
            start_date=start_date,
            end_date=end_date,
            days=days,
            pickup_location=data.get('pickup_location') or vehicle.pickup_location,
            with_driver=with_driver,
            insurance_fee=pricing['insurance'],
            driver_fee=pricing['driver'],
            subtotal=pricing['rental'],
            service_fee=pricing['service_fee'],
            tax_amount=pricing['taxes'],
            total_price=pricing['total'],
            currency=vehicle.currency,
            special_requests=data.get('special_requests'),
        )
        db.session.add(booking)
        db.session.commit()

        BookingService.notify_created(booking)
        return booking

    @staticmethod
    def tour_seats_taken(tour_id, tour_date, time_slot=None, exclude_booking_id=None):
        query = TourBooking.query.filter(
            TourBooking.tour_id == tour_id,
            TourBooking.tour_date == tour_date,
            TourBooking.status.in_(BLOCKING_STATUSES),
        )
        if time_slot:
            query = query.filter(TourBooking.time_slot == time_slot)
        if exclude_booking_id:
            query = query.filter(TourBooking.id != exclude_booking_id)
        return sum(b.participants for b in query.all())

    @staticmethod
    def create_tour_booking(customer, data):
        tour = Tour.query.get(data.get('tour_id')) if data.get('tour_id') else None
        if not tour:
            raise NotFoundError('Tour not found')
        if not tour.available or not tour.is_approved:
            raise ValidationError('Tour is not available for booking')
        if tour.guide_id == customer.id:
            raise ValidationError('You cannot book your own tour')

        tour_date = parse_date(data.get('tour_date'), 'tour_date')
        if tour_date < today():
            raise ValidationError('Tour date cannot be in the past')

        time_slot = data.get('time_slot')
        if tour.time_slots and time_slot not in tour.time_slots:
            raise ValidationError('Invalid time slot')

        participants = _positive_int(data.get('participants'), 'participants', default=1)
        try:
            children = int(data.get('children') or 0)
        except (TypeError, ValueError):
            raise ValidationError('children must be a whole number')
        if children < 0 or children > participants:
            raise ValidationError('children must be between 0 and the number of participants')

        remaining = tour.max_group_size - BookingService.tour_seats_taken(tour.id, tour_date, time_slot)
        if participants > remaining:
            raise ConflictError(
                f'Only {max(remaining, 0)} spot(s) left for this time slot',
                payload={'available_spots': max(remaining, 0)},
            )

        pricing = calculate_tour_price(tour, participants, children)

        booking = TourBooking(
            booking_number=generate_booking_number('tour'),
            tour_id=tour.id,
            customer_id=customer.id,
            provider_id=tour.guide_id,
            tour_date=tour_date,
            time_slot=time_slot,
            participants=participants,
            children=children,
            price_per_person=pricing['price_per_person'],
            child_discount=pricing['child_discount'],
            group_discount=pricing['group_discount'],
            subtotal=pricing['subtotal'],
            total_price=pricing['total'],
            currency=tour.currency,
            lead_traveler_name=data.get('lead_traveler_name') or customer.full_name,
            lead_traveler_phone=data.get('lead_traveler_phone') or customer.phone,
            special_requests=data.get('special_requests'),
        )
        db.session.add(booking)
        db.session.commit()

        BookingService.notify_created(booking)
        return booking

    @staticmethod
    def list_for_customer(user_id, status=None):
        bookings = []
        for model in BOOKING_MODELS.values():
            query = model.query.filter_by(customer_id=user_id)
            if status:
                query = query.filter_by(status=BookingStatus(status))
            bookings.extend(query.all())
        return sorted(bookings, key=lambda b: b.created_at, reverse=True)

    @staticmethod
    def list_for_provider(user_id, status=None, kind=None):
        models = [BookingService.get_model(kind)] if kind else BOOKING_MODELS.values()
        bookings = []
        for model in models:
            query = model.query.filter_by(provider_id=user_id)
            if status:
                query = query.filter_by(status=BookingStatus(status))
            bookings.extend(query.all())
        return sorted(bookings, key=lambda b: b.created_at, reverse=True)

    @staticmethod
    def cancel(booking, user, reason=None):
        if not user.is_admin and not booking.is_participant(user.id):
            raise PermissionDeniedError('Unauthorized')
        if not booking.can_cancel():
            raise ValidationError(f'Booking cannot be cancelled while {booking.status.value}')

        percentage = refund_percentage(booking.starts_on)
        booking.status = BookingStatus.CANCELLED
        booking.cancelled_at = datetime.utcnow()
        booking.cancellation_reason = reason
        booking.refund_amount = round(float(booking.total_price) * percentage / 100, 2)
        db.session.commit()

        other_party = booking.provider_id if user.id == booking.customer_id else booking.customer_id
        BookingService._notify(
            other_party, NotificationType.BOOKING_CANCELLED, 'Booking Cancelled',
            f'Booking {booking.booking_number} for {booking.service_name} was cancelled.', booking,
        )
        try:
            EmailService.send_cancellation_email(booking, percentage)
        except Exception as e:
            logger.error(f'Cancellation email failed for {booking.booking_number}: {e}')

        return booking, percentage

    @staticmethod
    def update_status(booking, user, action):
        """Provider (or admin) moves a booking to confirmed, rejected or completed"""
        if not user.is_admin and booking.provider_id != user.id:
            raise PermissionDeniedError('Only the provider can update this booking')

        new_status = STATUS_ACTIONS.get(action)
        if new_status is None:
            try:
                new_status = BookingStatus(action)
            except ValueError:
                raise ValidationError(f'Invalid status: {action}')

        if new_status == BookingStatus.CANCELLED:
            raise ValidationError('Use the cancel endpoint to cancel a booking')

        if not booking.can_transition(new_status):
            raise ValidationError(f'Cannot change booking from {booking.status.value} to {new_status.value}')

        booking.status = new_status
        db.session.commit()

        notification_type, title = STATUS_NOTIFICATIONS.get(
            new_status, (NotificationType.SYSTEM, 'Booking Updated')
        )
        BookingService._notify(
            booking.customer_id, notification_type, title,
            f'Your booking {booking.booking_number} for {booking.service_name} is now {new_status.value}.',
            booking,
        )
        return booking

    @staticmethod
    def notify_created(booking):
        BookingService._notify(
            booking.customer_id, NotificationType.BOOKING_CREATED, 'Booking Created',
            f'Your {booking.kind} booking has been created. Booking number: {booking.booking_number}',
            booking,
        )
        BookingService._notify(
            booking.provider_id, NotificationType.BOOKING_RECEIVED, 'New Booking Received!',
            f'You have received a new {booking.kind} booking. Booking number: {booking.booking_number}',
            booking,
        )

    @staticmethod
    def _notify(user_id, notification_type, title, message, booking, send_email=True):
        try:
            NotificationService.create_and_dispatch(
                user_id,
                notification_type,
                title,
                message,
                action_url=f'/dashboard/bookings/{booking.id}?type={booking.kind}',
                data={
                    'booking_id': booking.id,
                    'booking_type': booking.kind,
                    'booking_number': booking.booking_number,
                    'service_name': booking.service_name,
                },
                send_email=send_email,
            )
        except Exception as e:
            db.session.rollback()
            logger.error(f'Booking notification failed for {booking.booking_number}: {e}')
