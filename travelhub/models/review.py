"""
Review Model
"""

from extensions import db
from datetime import datetime


class Review(db.Model):
    """Customer review of a completed stay"""

    __tablename__ = 'reviews'

    id = db.Column(db.Integer, primary_key=True)
    property_id = db.Column(db.Integer, db.ForeignKey('properties.id'), nullable=False)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False)
    booking_id = db.Column(db.Integer, db.ForeignKey('property_bookings.id'), nullable=False, unique=True)

    # Review Content
    rating = db.Column(db.Integer, nullable=False)  # 1-5 stars
    title = db.Column(db.String(200))
    comment = db.Column(db.Text, nullable=False)

    # Category Ratings (optional, 1-5 scale)
    cleanliness_rating = db.Column(db.Integer)
    location_rating = db.Column(db.Integer)
    value_rating = db.Column(db.Integer)

    # Status
    is_visible = db.Column(db.Boolean, default=True)
    is_flagged = db.Column(db.Boolean, default=False)

    # Timestamps
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Response from the property owner
    owner_response = db.Column(db.Text)
    owner_response_at = db.Column(db.DateTime)

    author = db.relationship('User')

    def __init__(self, **kwargs):
        """Initialize review"""
        for key, value in kwargs.items():
            if hasattr(self, key):
                setattr(self, key, value)

    def add_owner_response(self, response):
        """Add owner response to review"""
        self.owner_response = response
        self.owner_response_at = datetime.utcnow()
        db.session.commit()

    def hide(self):
        """Hide review from public view"""
        self.is_visible = False
        db.session.commit()

    def to_dict(self, include_user=False):
        """Convert review to dictionary"""
        data = {
            'id': self.id,
            'property_id': self.property_id,
            'user_id': self.user_id,
            'booking_id': self.booking_id,
            'rating': self.rating,
            'title': self.title,
            'comment': self.comment,
            'cleanliness_rating': self.cleanliness_rating,
            'location_rating': self.location_rating,
            'value_rating': self.value_rating,
            'is_visible': self.is_visible,
            'owner_response': self.owner_response,
            'owner_response_at': self.owner_response_at.isoformat() if self.owner_response_at else None,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }

        if include_user:
            data['author'] = self.author.to_dict()

        return data

    def __repr__(self):
        return f'<Review {self.id} - Property {self.property_id}>'
