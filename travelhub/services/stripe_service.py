"""
Stripe Payment Service
Handles all Stripe payment operations
"""

import stripe
from flask import current_app

from extensions import db
from travelhub.models.booking import BOOKING_MODELS, BookingStatus, PaymentStatus


class StripeService:
    """Service for handling Stripe payments"""

    @staticmethod
    def initialize():
        """Initialize Stripe with API key"""
        stripe.api_key = current_app.config.get('STRIPE_SECRET_KEY')

    @staticmethod
    def booking_metadata(booking):
        return {
            'booking_type': booking.kind,
            'booking_id': str(booking.id),
            'booking_number': booking.booking_number,
            'customer_id': str(booking.customer_id),
        }

    @staticmethod
    def create_payment_intent(amount, currency='pkr', metadata=None):
        """
        Create a Stripe Payment Intent

        Args:
            amount: Amount in major units (e.g., 150.00)
            currency: Currency code
            metadata: Dict of metadata to attach to payment

        Returns:
            Dict with success flag, client secret and intent id
        """
        try:
            StripeService.initialize()

            payment_intent = stripe.PaymentIntent.create(
                amount=int(round(amount * 100)),  # Convert to minor units
                currency=currency.lower(),
                metadata=metadata or {},
                automatic_payment_methods={'enabled': True},
            )

            return {
                'success': True,
                'client_secret': payment_intent.client_secret,
                'payment_intent_id': payment_intent.id,
                'amount': amount,
                'currency': currency
            }
        except stripe.error.StripeError as e:
            current_app.logger.error(f'Stripe error: {str(e)}')
            return {
                'success': False,
                'error': str(e)
            }

    @staticmethod
    def retrieve_payment(payment_intent_id):
        """Current status of a payment intent"""
        try:
            StripeService.initialize()

            payment_intent = stripe.PaymentIntent.retrieve(payment_intent_id)

            return {
                'success': True,
                'status': payment_intent.status,
                'amount': payment_intent.amount / 100,
                'currency': payment_intent.currency
            }
        except stripe.error.StripeError as e:
            current_app.logger.error(f'Stripe error: {str(e)}')
            return {
                'success': False,
                'error': str(e)
            }

    @staticmethod
    def create_refund(payment_intent_id, amount=None, reason=None):
        """
        Create a refund for a payment

        Args:
            payment_intent_id: The Payment Intent ID to refund
            amount: Amount to refund in major units (None for full refund)
            reason: Reason for refund
        """
        try:
            StripeService.initialize()

            refund_params = {
                'payment_intent': payment_intent_id,
            }

            if amount:
                refund_params['amount'] = int(round(amount * 100))

            if reason:
                refund_params['reason'] = reason

            refund = stripe.Refund.create(**refund_params)

            return {
                'success': True,
                'refund_id': refund.id,
                'amount': refund.amount / 100,
                'status': refund.status
            }
        except stripe.error.StripeError as e:
            current_app.logger.error(f'Stripe error: {str(e)}')
            return {
                'success': False,
                'error': str(e)
            }

    @staticmethod
    def verify_webhook_signature(payload, signature, webhook_secret):
        """Return the event when the signature checks out, otherwise None"""
        try:
            return stripe.Webhook.construct_event(payload, signature, webhook_secret)
        except ValueError as e:
            current_app.logger.error(f'Invalid payload: {str(e)}')
            return None
        except stripe.error.SignatureVerificationError as e:
            current_app.logger.error(f'Invalid signature: {str(e)}')
            return None

    @staticmethod
    def booking_from_intent(payment_intent):
        metadata = payment_intent.get('metadata') or {}
        model = BOOKING_MODELS.get(metadata.get('booking_type'))
        booking_id = metadata.get('booking_id')
        if model is None or not booking_id:
            return None
        return model.query.get(int(booking_id))

    @staticmethod
    def handle_payment_success(payment_intent):
        """Mark the booking in the intent's metadata paid and confirmed"""
        booking = StripeService.booking_from_intent(payment_intent)
        if not booking:
            return {'success': False, 'error': 'Booking not found'}

        booking.payment_status = PaymentStatus.SUCCEEDED
        booking.payment_intent_id = payment_intent['id']
        if booking.status == BookingStatus.PENDING:
            booking.status = BookingStatus.CONFIRMED
        db.session.commit()

        return {'success': True, 'booking': booking}

    @staticmethod
    def handle_payment_failed(payment_intent):
        booking = StripeService.booking_from_intent(payment_intent)
        if not booking:
            return {'success': False, 'error': 'Booking not found'}

        booking.payment_status = PaymentStatus.FAILED
        db.session.commit()

        return {'success': True, 'booking': booking}
