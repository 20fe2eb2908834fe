"""
Vehicle Model
"""

from extensions import db
from datetime import datetime
from travelhub.models.approval import ApprovalMixin


class Vehicle(ApprovalMixin, db.Model):
    """Rental vehicle listing"""

    __tablename__ = 'vehicles'

    id = db.Column(db.Integer, primary_key=True)
    owner_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False)

    make = db.Column(db.String(80), nullable=False)
    model = db.Column(db.String(80), nullable=False)
    year = db.Column(db.Integer)
    vehicle_type = db.Column(db.String(50), nullable=False, default='sedan')
    seats = db.Column(db.Integer, nullable=False, default=4)
    transmission = db.Column(db.String(20))
    fuel_type = db.Column(db.String(20))
    features = db.Column(db.JSON, default=list)
    images = db.Column(db.JSON, default=list)
    city = db.Column(db.String(100), index=True)
    pickup_location = db.Column(db.String(255))

    # Per-day pricing
    daily_rate = db.Column(db.Numeric(10, 2), nullable=False)
    insurance_fee = db.Column(db.Numeric(10, 2), default=0)
    driver_fee = db.Column(db.Numeric(10, 2), default=0)
    currency = db.Column(db.String(3), default='PKR')

    available = db.Column(db.Boolean, default=True, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __init__(self, **kwargs):
        for key, value in kwargs.items():
            if hasattr(self, key):
                setattr(self, key, value)

    @property
    def title(self):
        return f"{self.year or ''} {self.make} {self.model}".strip()

    def to_dict(self, include_owner=False):
        data = {
            'id': self.id,
            'owner_id': self.owner_id,
            'title': self.title,
            'make': self.make,
            'model': self.model,
            'year': self.year,
            'vehicle_type': self.vehicle_type,
            'seats': self.seats,
            'transmission': self.transmission,
            'fuel_type': self.fuel_type,
            'features': self.features or [],
            'images': self.images or [],
            'city': self.city,
            'pickup_location': self.pickup_location,
            'daily_rate': float(self.daily_rate),
            'insurance_fee': float(self.insurance_fee or 0),
            'driver_fee': float(self.driver_fee or 0),
            'currency': self.currency,
            'available': self.available,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }
        data.update(self.approval_dict())

        if include_owner:
            data['owner'] = self.owner.to_dict()

        return data

    def __repr__(self):
        return f'<Vehicle {self.title}>'
