"""
Pricing Service
Resolves the nightly price of a room type and totals a stay.

Per night, the first matching source wins:
    1. custom price on the date's override row
    2. highest-multiplier active special event covering the date
    3. highest-priority active seasonal rule covering the date and weekday
    4. the room type's base price
The best applicable discount rule is then taken off when the stay length
and booking date are known.
"""

import logging
from flask import current_app
from sqlalchemy import or_

from travelhub.exceptions import NotFoundError, ValidationError
from travelhub.models.availability import (
    RoomAvailability,
    SeasonalPricing,
    SpecialEventPricing,
    DiscountRule,
    PriceAdjustmentType,
    DiscountType,
)
from travelhub.models.property import RoomType
from travelhub.utils.dates import date_range, nights_between, weekday_sunday_first

logger = logging.getLogger(__name__)


def apply_price_adjustment(price, adjustment, value):
    if adjustment == PriceAdjustmentType.PERCENTAGE_INCREASE:
        return price * (1 + value / 100)
    if adjustment == PriceAdjustmentType.PERCENTAGE_DECREASE:
        return price * (1 - value / 100)
    if adjustment == PriceAdjustmentType.FIXED_INCREASE:
        return price + value
    if adjustment == PriceAdjustmentType.FIXED_DECREASE:
        return price - value
    if adjustment == PriceAdjustmentType.FIXED_PRICE:
        return value
    return price


def discount_applies(discount, day, number_of_nights, days_in_advance):
    if discount.valid_from and discount.valid_from > day:
        return False
    if discount.valid_until and discount.valid_until < day:
        return False

    if discount.discount_type in (DiscountType.LONG_STAY, DiscountType.WEEKLY, DiscountType.MONTHLY):
        return bool(discount.min_nights) and number_of_nights >= discount.min_nights
    if discount.discount_type == DiscountType.EARLY_BIRD:
        return bool(discount.days_in_advance) and days_in_advance >= discount.days_in_advance
    if discount.discount_type == DiscountType.LAST_MINUTE:
        return bool(discount.days_before_check_in) and days_in_advance <= discount.days_before_check_in
    return False


def _applies_to_room(model, room):
    return or_(model.room_type_id == room.id, model.room_type_id.is_(None))


class PricingService:

    @staticmethod
    def get_room(room_type_id):
        room = RoomType.query.get(room_type_id)
        if not room:
            raise NotFoundError(f'Room type {room_type_id} not found')
        return room

    @staticmethod
    def find_event_rule(room, day):
        return SpecialEventPricing.query.filter(
            SpecialEventPricing.property_id == room.property_id,
            _applies_to_room(SpecialEventPricing, room),
            SpecialEventPricing.is_active.is_(True),
            SpecialEventPricing.start_date <= day,
            SpecialEventPricing.end_date >= day,
        ).order_by(SpecialEventPricing.price_multiplier.desc()).first()

    @staticmethod
    def find_seasonal_rules(room, day):
        """Active seasonal rules covering the date, highest priority first"""
        rules = SeasonalPricing.query.filter(
            SeasonalPricing.property_id == room.property_id,
            _applies_to_room(SeasonalPricing, room),
            SeasonalPricing.is_active.is_(True),
            SeasonalPricing.start_date <= day,
            SeasonalPricing.end_date >= day,
        ).order_by(SeasonalPricing.priority.desc(), SeasonalPricing.id.asc()).all()

        weekday = weekday_sunday_first(day)
        return [rule for rule in rules if not rule.days_of_week or weekday in rule.days_of_week]

    @staticmethod
    def best_discount(room, day, number_of_nights, booking_date):
        days_in_advance = (day - booking_date).days
        discounts = DiscountRule.query.filter(
            DiscountRule.property_id == room.property_id,
            _applies_to_room(DiscountRule, room),
            DiscountRule.is_active.is_(True),
        ).all()

        applicable = [d for d in discounts if discount_applies(d, day, number_of_nights, days_in_advance)]
        if not applicable:
            return None
        return max(applicable, key=lambda d: d.discount_percent)

    @staticmethod
    def calculate_room_price(room_type_id, day, number_of_nights=None, booking_date=None, room=None):
        """Price of one unit of a room type for one night"""
        room = room or PricingService.get_room(room_type_id)
        base_price = float(room.base_price)
        final_price = base_price
        applied_rules = []

        override = RoomAvailability.query.filter_by(room_type_id=room.id, date=day).first()

        if override is not None and override.custom_price is not None:
            final_price = float(override.custom_price)
            applied_rules.append(f"Custom price set for {day.strftime('%b')} {day.day}")
        else:
            event = PricingService.find_event_rule(room, day)
            if event:
                final_price = final_price * event.price_multiplier
                applied_rules.append(f'{event.event_name}: {event.price_multiplier}x multiplier')
            else:
                seasonal = PricingService.find_seasonal_rules(room, day)
                if seasonal:
                    rule = seasonal[0]
                    final_price = apply_price_adjustment(final_price, rule.price_adjustment, rule.adjustment_value)
                    applied_rules.append(f'Seasonal: {rule.name}')

        if number_of_nights and booking_date:
            discount = PricingService.best_discount(room, day, number_of_nights, booking_date)
            if discount:
                final_price = final_price - final_price * (discount.discount_percent / 100)
                applied_rules.append(f'{discount.discount_type.value} discount: -{discount.discount_percent:g}%')

        return {
            'date': day.isoformat(),
            'base_price': base_price,
            'final_price': round(max(final_price, 0), 2),
            'applied_rules': applied_rules,
            'currency': room.currency,
        }

    @staticmethod
    def calculate_stay_price(room_type_id, check_in, check_out, booking_date=None, number_of_rooms=1):
        """Nightly breakdown plus fees, tax and total for a stay"""
        if check_out <= check_in:
            raise ValidationError('Check-out must be after check-in')

        room = PricingService.get_room(room_type_id)
        property_obj = room.property
        number_of_nights = nights_between(check_in, check_out)

        nights = [
            PricingService.calculate_room_price(room.id, day, number_of_nights, booking_date, room=room)
            for day in date_range(check_in, check_out)
        ]

        nightly_total = sum(night['final_price'] for night in nights)
        subtotal = nightly_total * number_of_rooms

        cleaning_fee = float(property_obj.cleaning_fee or 0)
        fixed_service_fee = float(property_obj.service_fee or 0)
        if fixed_service_fee > 0:
            service_fee = fixed_service_fee
        else:
            service_fee = subtotal * current_app.config.get('DEFAULT_SERVICE_FEE_PERCENT', 10.0) / 100

        tax_rate = property_obj.tax_rate
        if tax_rate is None:
            tax_rate = current_app.config.get('DEFAULT_TAX_RATE_PERCENT', 8.0)
        tax_amount = (subtotal + service_fee) * tax_rate / 100
        total = subtotal + cleaning_fee + service_fee + tax_amount

        return {
            'nights': nights,
            'number_of_nights': number_of_nights,
            'number_of_rooms': number_of_rooms,
            'subtotal': round(subtotal, 2),
            'cleaning_fee': round(cleaning_fee, 2),
            'service_fee': round(service_fee, 2),
            'tax_rate': tax_rate,
            'tax_amount': round(tax_amount, 2),
            'total': round(total, 2),
            'average_price_per_night': round(nightly_total / number_of_nights, 2),
            'currency': room.currency or current_app.config.get('DEFAULT_CURRENCY', 'PKR'),
        }
