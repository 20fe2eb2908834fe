"""
Services Package
Business logic and external service integrations
"""

from travelhub.services.availability_service import AvailabilityService
from travelhub.services.booking_service import BookingService
from travelhub.services.chat_service import ChatService
from travelhub.services.email_service import EmailService
from travelhub.services.notification_service import NotificationService
from travelhub.services.pricing_service import PricingService
from travelhub.services.stripe_service import StripeService

__all__ = [
    'AvailabilityService',
    'BookingService',
    'ChatService',
    'EmailService',
    'NotificationService',
    'PricingService',
    'StripeService',
]
