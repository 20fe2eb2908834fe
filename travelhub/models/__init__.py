"""
Models package initialization
Import all models here for easy access
"""

from travelhub.models.user import User, UserRole, ProviderType
from travelhub.models.approval import ApprovalStatus
from travelhub.models.property import Property, PropertyType, PropertyStatus, RoomType
from travelhub.models.availability import (
    RoomAvailability,
    SeasonalPricing,
    SpecialEventPricing,
    DiscountRule,
    PriceAdjustmentType,
    DiscountType,
)
from travelhub.models.vehicle import Vehicle
from travelhub.models.tour import Tour
from travelhub.models.booking import (
    PropertyBooking,
    VehicleBooking,
    TourBooking,
    BookingStatus,
    PaymentStatus,
    BOOKING_MODELS,
)
from travelhub.models.message import (
    Conversation,
    ConversationParticipant,
    ConversationType,
    Message,
    MessageType,
)
from travelhub.models.notification import Notification, NotificationType
from travelhub.models.review import Review
from travelhub.models.wishlist import WishlistItem, WISHLIST_KINDS

__all__ = [
    'User',
    'UserRole',
    'ProviderType',
    'ApprovalStatus',
    'Property',
    'PropertyType',
    'PropertyStatus',
    'RoomType',
    'RoomAvailability',
    'SeasonalPricing',
    'SpecialEventPricing',
    'DiscountRule',
    'PriceAdjustmentType',
    'DiscountType',
    'Vehicle',
    'Tour',
    'PropertyBooking',
    'VehicleBooking',
    'TourBooking',
    'BookingStatus',
    'PaymentStatus',
    'BOOKING_MODELS',
    'Conversation',
    'ConversationParticipant',
    'ConversationType',
    'Message',
    'MessageType',
    'Notification',
    'NotificationType',
    'Review',
    'WishlistItem',
    'WISHLIST_KINDS',
]
