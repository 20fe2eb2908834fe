"""
Property and RoomType Models
"""

from extensions import db
from datetime import datetime
from enum import Enum
from travelhub.models.approval import ApprovalMixin


class PropertyType(str, Enum):
    """Property type enum"""
    HOTEL = 'hotel'
    GUEST_HOUSE = 'guest_house'
    APARTMENT = 'apartment'
    VILLA = 'villa'
    RESORT = 'resort'
    HOSTEL = 'hostel'
    OTHER = 'other'


class PropertyStatus(str, Enum):
    """Property status enum"""
    ACTIVE = 'active'
    INACTIVE = 'inactive'
    PENDING = 'pending'
    SUSPENDED = 'suspended'


class Property(ApprovalMixin, db.Model):
    """A stay listing grouping one or more room types"""

    __tablename__ = 'properties'

    id = db.Column(db.Integer, primary_key=True)
    owner_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False)

    # Basic Information
    name = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text, nullable=False)
    property_type = db.Column(db.Enum(PropertyType), nullable=False)
    status = db.Column(db.Enum(PropertyStatus), default=PropertyStatus.ACTIVE)

    # Location
    address = db.Column(db.String(255), nullable=False)
    city = db.Column(db.String(100), nullable=False, index=True)
    country = db.Column(db.String(100), nullable=False)
    latitude = db.Column(db.Float, nullable=True)
    longitude = db.Column(db.Float, nullable=True)

    # Fees; service_fee of 0 means the default percentage applies
    cleaning_fee = db.Column(db.Numeric(10, 2), default=0)
    service_fee = db.Column(db.Numeric(10, 2), default=0)
    tax_rate = db.Column(db.Float, nullable=True)
    currency = db.Column(db.String(3), default='PKR')

    amenities = db.Column(db.JSON, default=list)
    images = db.Column(db.JSON, default=list)
    check_in_time = db.Column(db.Time)
    check_out_time = db.Column(db.Time)

    # Statistics
    view_count = db.Column(db.Integer, default=0)
    average_rating = db.Column(db.Float, default=0.0)
    total_reviews = db.Column(db.Integer, default=0)

    # Timestamps
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    room_types = db.relationship('RoomType', backref='property', lazy='dynamic',
                                 cascade='all, delete-orphan')
    reviews = db.relationship('Review', backref='property', lazy='dynamic')

    def __init__(self, **kwargs):
        """Initialize property"""
        for key, value in kwargs.items():
            if hasattr(self, key):
                setattr(self, key, value)

    def increment_views(self):
        """Increment view count"""
        self.view_count = (self.view_count or 0) + 1
        db.session.commit()

    def update_rating(self):
        """Recalculate average rating from reviews"""
        reviews = self.reviews.all()
        if reviews:
            total_rating = sum(review.rating for review in reviews)
            self.average_rating = round(total_rating / len(reviews), 2)
            self.total_reviews = len(reviews)
        else:
            self.average_rating = 0.0
            self.total_reviews = 0
        db.session.commit()

    @property
    def starting_price(self):
        prices = [float(room.base_price) for room in self.room_types]
        return min(prices) if prices else None

    def to_dict(self, include_owner=False, include_rooms=False):
        """Convert property to dictionary"""
        data = {
            'id': self.id,
            'owner_id': self.owner_id,
            'name': self.name,
            'description': self.description,
            'property_type': self.property_type.value,
            'status': self.status.value if self.status else None,
            'address': self.address,
            'city': self.city,
            'country': self.country,
            'latitude': self.latitude,
            'longitude': self.longitude,
            'cleaning_fee': float(self.cleaning_fee or 0),
            'service_fee': float(self.service_fee or 0),
            'tax_rate': self.tax_rate,
            'currency': self.currency,
            'amenities': self.amenities or [],
            'images': self.images or [],
            'check_in_time': self.check_in_time.isoformat() if self.check_in_time else None,
            'check_out_time': self.check_out_time.isoformat() if self.check_out_time else None,
            'starting_price': self.starting_price,
            'view_count': self.view_count,
            'average_rating': self.average_rating,
            'total_reviews': self.total_reviews,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }
        data.update(self.approval_dict())

        if include_owner:
            data['owner'] = self.owner.to_dict()

        if include_rooms:
            data['room_types'] = [room.to_dict() for room in self.room_types]

        return data

    def __repr__(self):
        return f'<Property {self.name}>'


class RoomType(db.Model):
    """A bookable room category with a number of physical units"""

    __tablename__ = 'room_types'

    id = db.Column(db.Integer, primary_key=True)
    property_id = db.Column(db.Integer, db.ForeignKey('properties.id'), nullable=False, index=True)
    name = db.Column(db.String(120), nullable=False)
    description = db.Column(db.Text)
    base_price = db.Column(db.Numeric(10, 2), nullable=False)
    total_units = db.Column(db.Integer, nullable=False, default=1)
    max_guests = db.Column(db.Integer, nullable=False, default=2)
    bed_type = db.Column(db.String(50))
    amenities = db.Column(db.JSON, default=list)
    available = db.Column(db.Boolean, default=True, nullable=False)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    availability = db.relationship('RoomAvailability', backref='room_type', lazy='dynamic',
                                   cascade='all, delete-orphan')

    def __init__(self, **kwargs):
        for key, value in kwargs.items():
            if hasattr(self, key):
                setattr(self, key, value)

    @property
    def currency(self):
        return self.property.currency if self.property else None

    def to_dict(self):
        return {
            'id': self.id,
            'property_id': self.property_id,
            'name': self.name,
            'description': self.description,
            'base_price': float(self.base_price),
            'total_units': self.total_units,
            'max_guests': self.max_guests,
            'bed_type': self.bed_type,
            'amenities': self.amenities or [],
            'available': self.available,
            'currency': self.currency,
        }

    def __repr__(self):
        return f'<RoomType {self.name}>'
