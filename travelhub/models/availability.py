from extensions import db
from datetime import datetime
from enum import Enum


class PriceAdjustmentType(str, Enum):
    PERCENTAGE_INCREASE = 'percentage_increase'
    PERCENTAGE_DECREASE = 'percentage_decrease'
    FIXED_INCREASE = 'fixed_increase'
    FIXED_DECREASE = 'fixed_decrease'
    FIXED_PRICE = 'fixed_price'


class DiscountType(str, Enum):
    LONG_STAY = 'long_stay'
    EARLY_BIRD = 'early_bird'
    LAST_MINUTE = 'last_minute'
    WEEKLY = 'weekly'
    MONTHLY = 'monthly'


class RoomAvailability(db.Model):
    """Per-date override of price and availability for a room type"""
    __tablename__ = 'room_availability'
    __table_args__ = (
        db.UniqueConstraint('room_type_id', 'date', name='uq_room_availability_room_date'),
    )

    id = db.Column(db.Integer, primary_key=True)
    room_type_id = db.Column(db.Integer, db.ForeignKey('room_types.id'), nullable=False, index=True)
    date = db.Column(db.Date, nullable=False)
    is_available = db.Column(db.Boolean, default=True, nullable=False)
    available_units = db.Column(db.Integer, nullable=True)
    custom_price = db.Column(db.Numeric(10, 2), nullable=True)
    min_stay = db.Column(db.Integer, nullable=True)
    max_stay = db.Column(db.Integer, nullable=True)
    reason = db.Column(db.String(255))
    notes = db.Column(db.Text)
    created_by = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def to_dict(self):
        return {
            'id': self.id,
            'room_type_id': self.room_type_id,
            'date': self.date.isoformat(),
            'is_available': self.is_available,
            'available_units': self.available_units,
            'custom_price': float(self.custom_price) if self.custom_price is not None else None,
            'min_stay': self.min_stay,
            'max_stay': self.max_stay,
            'reason': self.reason,
            'notes': self.notes,
        }


class SeasonalPricing(db.Model):
    """Date-ranged price adjustment; property-wide when room_type_id is null"""
    __tablename__ = 'seasonal_pricing'

    id = db.Column(db.Integer, primary_key=True)
    property_id = db.Column(db.Integer, db.ForeignKey('properties.id'), nullable=False, index=True)
    room_type_id = db.Column(db.Integer, db.ForeignKey('room_types.id'), nullable=True)
    name = db.Column(db.String(120), nullable=False)
    start_date = db.Column(db.Date, nullable=False)
    end_date = db.Column(db.Date, nullable=False)
    # 0 = Sunday ... 6 = Saturday; empty applies to every day
    days_of_week = db.Column(db.JSON, default=list)
    price_adjustment = db.Column(db.Enum(PriceAdjustmentType), nullable=False)
    adjustment_value = db.Column(db.Float, nullable=False)
    priority = db.Column(db.Integer, default=0, nullable=False)
    min_stay = db.Column(db.Integer)
    max_stay = db.Column(db.Integer)
    is_active = db.Column(db.Boolean, default=True, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def to_dict(self):
        return {
            'id': self.id,
            'property_id': self.property_id,
            'room_type_id': self.room_type_id,
            'name': self.name,
            'start_date': self.start_date.isoformat(),
            'end_date': self.end_date.isoformat(),
            'days_of_week': self.days_of_week or [],
            'price_adjustment': self.price_adjustment.value,
            'adjustment_value': self.adjustment_value,
            'priority': self.priority,
            'min_stay': self.min_stay,
            'max_stay': self.max_stay,
            'is_active': self.is_active,
        }


class SpecialEventPricing(db.Model):
    """Price multiplier for holidays and local events"""
    __tablename__ = 'special_event_pricing'

    id = db.Column(db.Integer, primary_key=True)
    property_id = db.Column(db.Integer, db.ForeignKey('properties.id'), nullable=False, index=True)
    room_type_id = db.Column(db.Integer, db.ForeignKey('room_types.id'), nullable=True)
    event_name = db.Column(db.String(120), nullable=False)
    start_date = db.Column(db.Date, nullable=False)
    end_date = db.Column(db.Date, nullable=False)
    price_multiplier = db.Column(db.Float, nullable=False, default=1.0)
    min_stay = db.Column(db.Integer)
    is_active = db.Column(db.Boolean, default=True, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def to_dict(self):
        return {
            'id': self.id,
            'property_id': self.property_id,
            'room_type_id': self.room_type_id,
            'event_name': self.event_name,
            'start_date': self.start_date.isoformat(),
            'end_date': self.end_date.isoformat(),
            'price_multiplier': self.price_multiplier,
            'min_stay': self.min_stay,
            'is_active': self.is_active,
        }


class DiscountRule(db.Model):
    __tablename__ = 'discount_rules'

    id = db.Column(db.Integer, primary_key=True)
    property_id = db.Column(db.Integer, db.ForeignKey('properties.id'), nullable=False, index=True)
    room_type_id = db.Column(db.Integer, db.ForeignKey('room_types.id'), nullable=True)
    discount_type = db.Column(db.Enum(DiscountType), nullable=False)
    discount_percent = db.Column(db.Float, nullable=False)
    min_nights = db.Column(db.Integer)
    days_in_advance = db.Column(db.Integer)
    days_before_check_in = db.Column(db.Integer)
    valid_from = db.Column(db.Date)
    valid_until = db.Column(db.Date)
    is_active = db.Column(db.Boolean, default=True, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def to_dict(self):
        return {
            'id': self.id,
            'property_id': self.property_id,
            'room_type_id': self.room_type_id,
            'discount_type': self.discount_type.value,
            'discount_percent': self.discount_percent,
            'min_nights': self.min_nights,
            'days_in_advance': self.days_in_advance,
            'days_before_check_in': self.days_before_check_in,
            'valid_from': self.valid_from.isoformat() if self.valid_from else None,
            'valid_until': self.valid_until.isoformat() if self.valid_until else None,
            'is_active': self.is_active,
        }
