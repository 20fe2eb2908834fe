"""
Tour Model
"""

from extensions import db
from datetime import datetime
from travelhub.models.approval import ApprovalMixin


class Tour(ApprovalMixin, db.Model):
    """Guided tour offered by a tour guide"""

    __tablename__ = 'tours'

    id = db.Column(db.Integer, primary_key=True)
    guide_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False)

    title = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text, nullable=False)
    category = db.Column(db.String(50), default='cultural')
    city = db.Column(db.String(100), index=True)
    meeting_point = db.Column(db.String(255))
    duration_hours = db.Column(db.Float, nullable=False, default=2)
    difficulty = db.Column(db.String(20), default='easy')
    languages = db.Column(db.JSON, default=list)
    inclusions = db.Column(db.JSON, default=list)
    exclusions = db.Column(db.JSON, default=list)
    images = db.Column(db.JSON, default=list)
    time_slots = db.Column(db.JSON, default=list)  # e.g. ["09:00", "14:00"]

    price_per_person = db.Column(db.Numeric(10, 2), nullable=False)
    max_group_size = db.Column(db.Integer, nullable=False, default=10)
    currency = db.Column(db.String(3), default='PKR')

    available = db.Column(db.Boolean, default=True, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __init__(self, **kwargs):
        for key, value in kwargs.items():
            if hasattr(self, key):
                setattr(self, key, value)

    def to_dict(self, include_guide=False):
        data = {
            'id': self.id,
            'guide_id': self.guide_id,
            'title': self.title,
            'description': self.description,
            'category': self.category,
            'city': self.city,
            'meeting_point': self.meeting_point,
            'duration_hours': self.duration_hours,
            'difficulty': self.difficulty,
            'languages': self.languages or [],
            'inclusions': self.inclusions or [],
            'exclusions': self.exclusions or [],
            'images': self.images or [],
            'time_slots': self.time_slots or [],
            'price_per_person': float(self.price_per_person),
            'max_group_size': self.max_group_size,
            'currency': self.currency,
            'available': self.available,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }
        data.update(self.approval_dict())

        if include_guide:
            data['guide'] = self.guide.to_dict()

        return data

    def __repr__(self):
        return f'<Tour {self.title}>'
