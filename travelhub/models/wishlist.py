"""
Wishlist Model
"""

from extensions import db
from datetime import datetime

WISHLIST_KINDS = ('property', 'vehicle', 'tour')


class WishlistItem(db.Model):
    """A property, vehicle or tour saved by a user"""

    __tablename__ = 'wishlist_items'
    __table_args__ = (
        db.UniqueConstraint('user_id', 'service_type', 'service_id', name='uq_wishlist_item'),
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False, index=True)
    service_type = db.Column(db.String(20), nullable=False)
    service_id = db.Column(db.Integer, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    def to_dict(self):
        return {
            'id': self.id,
            'service_type': self.service_type,
            'service_id': self.service_id,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self):
        return f'<WishlistItem {self.service_type}:{self.service_id} user={self.user_id}>'
