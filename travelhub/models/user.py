"""
User Model
"""

from extensions import db, bcrypt
from datetime import datetime
from enum import Enum


class UserRole(str, Enum):
    """User roles enum"""
    CUSTOMER = 'customer'
    PROVIDER = 'provider'
    ADMIN = 'admin'


class ProviderType(str, Enum):
    """What kind of service a provider offers"""
    PROPERTY_OWNER = 'property_owner'
    VEHICLE_OWNER = 'vehicle_owner'
    TOUR_GUIDE = 'tour_guide'


class User(db.Model):
    """User model for authentication and profile"""

    __tablename__ = 'users'

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(120), unique=True, nullable=False, index=True)
    username = db.Column(db.String(80), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(255), nullable=False)

    first_name = db.Column(db.String(50), nullable=False)
    last_name = db.Column(db.String(50), nullable=False)
    phone = db.Column(db.String(20))
    bio = db.Column(db.Text)
    avatar = db.Column(db.String(255))

    # Role and status
    role = db.Column(db.Enum(UserRole), default=UserRole.CUSTOMER, nullable=False)
    provider_type = db.Column(db.Enum(ProviderType), nullable=True)
    is_active = db.Column(db.Boolean, default=True, nullable=False)
    email_notifications = db.Column(db.Boolean, default=True, nullable=False)

    # Timestamps
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    last_login = db.Column(db.DateTime)
    last_active_at = db.Column(db.DateTime)

    # Relationships
    properties = db.relationship('Property', backref='owner', lazy='dynamic',
                                 foreign_keys='Property.owner_id')
    vehicles = db.relationship('Vehicle', backref='owner', lazy='dynamic',
                               foreign_keys='Vehicle.owner_id')
    tours = db.relationship('Tour', backref='guide', lazy='dynamic',
                            foreign_keys='Tour.guide_id')

    def __init__(self, email, username, password, first_name, last_name, **kwargs):
        """Initialize user with hashed password"""
        self.email = email
        self.username = username
        self.set_password(password)
        self.first_name = first_name
        self.last_name = last_name

        # Handle optional fields
        for key, value in kwargs.items():
            if hasattr(self, key):
                setattr(self, key, value)

    def set_password(self, password):
        """Hash and set password"""
        self.password_hash = bcrypt.generate_password_hash(password).decode('utf-8')

    def check_password(self, password):
        """Verify password against hash"""
        return bcrypt.check_password_hash(self.password_hash, password)

    def update_last_login(self):
        """Update last login timestamp"""
        self.last_login = datetime.utcnow()
        self.last_active_at = self.last_login
        db.session.commit()

    @property
    def full_name(self):
        """Return full name"""
        return f"{self.first_name} {self.last_name}"

    @property
    def is_admin(self):
        return self.role == UserRole.ADMIN

    def to_dict(self, include_email=False):
        """Convert user to dictionary"""
        data = {
            'id': self.id,
            'username': self.username,
            'first_name': self.first_name,
            'last_name': self.last_name,
            'full_name': self.full_name,
            'bio': self.bio,
            'avatar': self.avatar,
            'role': self.role.value,
            'provider_type': self.provider_type.value if self.provider_type else None,
            'is_active': self.is_active,
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'last_active_at': self.last_active_at.isoformat() if self.last_active_at else None,
        }

        if include_email:
            data['email'] = self.email
            data['phone'] = self.phone
            data['email_notifications'] = self.email_notifications

        return data

    def __repr__(self):
        return f'<User {self.username}>'
