"""
Availability Service
Checks whether a room type can be booked for a date range.

Business rejections (blocked dates, not enough units, stay length) are
returned as a result dict with `is_available` False and a reason; they are
never raised.
"""

import functools
import logging
from datetime import timedelta

from flask import current_app
from sqlalchemy import func

from extensions import db
from travelhub.models.availability import RoomAvailability, SpecialEventPricing
from travelhub.models.booking import PropertyBooking, INACTIVE_STATUSES
from travelhub.models.property import RoomType
from travelhub.services.pricing_service import PricingService
from travelhub.utils.dates import date_range, nights_between, today

logger = logging.getLogger(__name__)

# Suggestions whose totals differ by no more than this are ordered by proximity
PRICE_TIE_THRESHOLD = 50


def _compare_suggestions(a, b):
    price_diff = a['total_price'] - b['total_price']
    if abs(price_diff) > PRICE_TIE_THRESHOLD:
        return -1 if price_diff < 0 else 1
    return abs(a['days_different']) - abs(b['days_different'])


class AvailabilityService:

    @staticmethod
    def get_override(room_type_id, day):
        return RoomAvailability.query.filter_by(room_type_id=room_type_id, date=day).first()

    @staticmethod
    def booked_units(room_type_id, day, exclude_booking_id=None):
        """Units held on `day` by bookings that are not cancelled, refunded or rejected"""
        query = db.session.query(func.coalesce(func.sum(PropertyBooking.number_of_rooms), 0)).filter(
            PropertyBooking.room_type_id == room_type_id,
            PropertyBooking.status.notin_(INACTIVE_STATUSES),
            PropertyBooking.check_in <= day,
            PropertyBooking.check_out > day,
        )
        if exclude_booking_id:
            query = query.filter(PropertyBooking.id != exclude_booking_id)
        return int(query.scalar() or 0)

    @staticmethod
    def get_minimum_stay(room, day):
        override = AvailabilityService.get_override(room.id, day)
        if override and override.min_stay:
            return override.min_stay

        for rule in PricingService.find_seasonal_rules(room, day):
            if rule.min_stay:
                return rule.min_stay

        event = SpecialEventPricing.query.filter(
            SpecialEventPricing.property_id == room.property_id,
            (SpecialEventPricing.room_type_id == room.id) | (SpecialEventPricing.room_type_id.is_(None)),
            SpecialEventPricing.is_active.is_(True),
            SpecialEventPricing.start_date <= day,
            SpecialEventPricing.end_date >= day,
            SpecialEventPricing.min_stay.isnot(None),
        ).first()
        return event.min_stay if event else None

    @staticmethod
    def get_maximum_stay(room, day):
        override = AvailabilityService.get_override(room.id, day)
        if override and override.max_stay:
            return override.max_stay

        for rule in PricingService.find_seasonal_rules(room, day):
            if rule.max_stay:
                return rule.max_stay
        return None

    @staticmethod
    def check_room_availability(room_type_id, check_in, check_out, number_of_rooms=1, exclude_booking_id=None):
        """Walk each night of [check_in, check_out) and report conflicts"""
        room = RoomType.query.get(room_type_id)
        if not room:
            return {'is_available': False, 'reason': 'Room type not found', 'conflicts': []}

        if not room.available:
            return {'is_available': False, 'reason': 'Room type is not available for booking', 'conflicts': []}

        requested_nights = nights_between(check_in, check_out)
        if requested_nights <= 0:
            return {'is_available': False, 'reason': 'Check-out must be after check-in', 'conflicts': []}

        conflicts = []
        details = []

        for day in date_range(check_in, check_out):
            override = AvailabilityService.get_override(room.id, day)

            if override is not None and not override.is_available:
                reason = override.reason or 'Date is blocked'
                conflicts.append({'date': day.isoformat(), 'reason': reason, 'available_units': 0})
                details.append({'date': day.isoformat(), 'is_available': False, 'available_units': 0,
                                'reason': reason})
                continue

            booked = AvailabilityService.booked_units(room.id, day, exclude_booking_id)
            capacity = override.available_units if override is not None and override.available_units is not None \
                else room.total_units
            remaining = capacity - booked

            if remaining < number_of_rooms:
                reason = f'Only {max(remaining, 0)} room(s) available, need {number_of_rooms}'
                conflicts.append({'date': day.isoformat(), 'reason': reason, 'available_units': max(remaining, 0)})
                details.append({'date': day.isoformat(), 'is_available': False,
                                'available_units': max(remaining, 0), 'reason': reason})
            else:
                details.append({'date': day.isoformat(), 'is_available': True, 'available_units': remaining})

        if conflicts:
            return {
                'is_available': False,
                'reason': f'Room not available for {len(conflicts)} date(s)',
                'conflicts': conflicts,
                'details': details,
                'requested_nights': requested_nights,
            }

        min_stay = AvailabilityService.get_minimum_stay(room, check_in)
        if min_stay and requested_nights < min_stay:
            return {
                'is_available': False,
                'reason': f'Minimum {min_stay} night(s) required for these dates',
                'conflicts': [],
                'min_stay': min_stay,
                'requested_nights': requested_nights,
            }

        max_stay = AvailabilityService.get_maximum_stay(room, check_in)
        if max_stay and requested_nights > max_stay:
            return {
                'is_available': False,
                'reason': f'Maximum {max_stay} night(s) allowed for these dates',
                'conflicts': [],
                'max_stay': max_stay,
                'requested_nights': requested_nights,
            }

        return {
            'is_available': True,
            'number_of_nights': requested_nights,
            'available_units': min(d['available_units'] for d in details),
            'details': details,
            'conflicts': [],
        }

    @staticmethod
    def get_availability_summary(room_type_id, start_date, end_date):
        """Per-day units, blocks and bookings for a calendar view"""
        room = RoomType.query.get(room_type_id)
        if not room:
            return None

        days = []
        for day in date_range(start_date, end_date):
            override = AvailabilityService.get_override(room.id, day)
            booked = AvailabilityService.booked_units(room.id, day)
            capacity = override.available_units if override is not None and override.available_units is not None \
                else room.total_units
            is_blocked = override is not None and not override.is_available
            available_units = 0 if is_blocked else max(0, capacity - booked)

            days.append({
                'date': day.isoformat(),
                'is_available': not is_blocked and available_units > 0,
                'available_units': available_units,
                'total_units': room.total_units,
                'booked_units': booked,
                'is_blocked': is_blocked,
                'reason': (override.reason or 'Blocked') if is_blocked else None,
                'custom_price': float(override.custom_price)
                if override is not None and override.custom_price is not None else None,
                'min_stay': override.min_stay if override is not None else None,
                'max_stay': override.max_stay if override is not None else None,
            })

        units = [d['available_units'] for d in days]
        return {
            'room_type_id': room.id,
            'start_date': start_date.isoformat(),
            'end_date': end_date.isoformat(),
            'dates': days,
            'total_dates': len(days),
            'available_dates': sum(1 for d in days if d['is_available']),
            'blocked_dates': sum(1 for d in days if d['is_blocked']),
            'fully_booked_dates': sum(1 for d in days if not d['is_blocked'] and d['available_units'] == 0),
            'min_available_units': min(units) if units else 0,
            'max_available_units': max(units) if units else 0,
        }

    @staticmethod
    def suggest_alternative_dates(room_type_id, preferred_check_in, number_of_nights, number_of_rooms=1,
                                  radius=None, limit=None):
        """Linear scan of nearby check-in dates for stays of the same length"""
        radius = radius if radius is not None else current_app.config.get('ALTERNATIVE_DATES_RADIUS', 14)
        limit = limit if limit is not None else current_app.config.get('ALTERNATIVE_DATES_LIMIT', 5)
        earliest = today()
        suggestions = []

        for distance in range(1, radius + 1):
            for offset in (-distance, distance):
                check_in = preferred_check_in + timedelta(days=offset)
                if check_in < earliest:
                    continue
                check_out = check_in + timedelta(days=number_of_nights)

                result = AvailabilityService.check_room_availability(
                    room_type_id, check_in, check_out, number_of_rooms
                )
                if not result['is_available']:
                    continue

                pricing = PricingService.calculate_stay_price(
                    room_type_id, check_in, check_out, number_of_rooms=number_of_rooms
                )
                suggestions.append({
                    'check_in': check_in.isoformat(),
                    'check_out': check_out.isoformat(),
                    'total_price': pricing['total'],
                    'average_price_per_night': pricing['average_price_per_night'],
                    'days_different': offset,
                })
                if len(suggestions) >= limit:
                    break
            if len(suggestions) >= limit:
                break

        return sorted(suggestions, key=functools.cmp_to_key(_compare_suggestions))
