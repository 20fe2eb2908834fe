"""
Payments Routes with Stripe Integration
"""

from flask import Blueprint, jsonify, request, current_app, g
from flask_jwt_extended import jwt_required

from extensions import db
from travelhub.models.booking import BOOKING_MODELS, BookingStatus, PaymentStatus
from travelhub.models.notification import NotificationType
from travelhub.services.booking_service import BookingService
from travelhub.services.email_service import EmailService
from travelhub.services.notification_service import NotificationService
from travelhub.services.stripe_service import StripeService
from travelhub.utils.decorators import role_required

payments_bp = Blueprint('payments', __name__)


def _after_payment_success(booking):
    """Emails and notifications once a booking is paid"""
    try:
        EmailService.send_booking_confirmation(booking)
        EmailService.send_booking_notification_to_provider(booking)
    except Exception as email_error:
        current_app.logger.error(f'Email sending failed: {str(email_error)}')

    try:
        NotificationService.create_and_dispatch(
            booking.provider_id,
            NotificationType.PAYMENT_RECEIVED,
            'Payment Received',
            f'Payment received for booking {booking.booking_number}.',
            action_url=f'/dashboard/bookings/{booking.id}?type={booking.kind}',
            data={'booking_id': booking.id, 'booking_type': booking.kind},
            send_email=False,
        )
    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f'Payment notification failed: {str(e)}')


def _find_by_intent(payment_intent_id):
    for model in BOOKING_MODELS.values():
        booking = model.query.filter_by(payment_intent_id=payment_intent_id).first()
        if booking:
            return booking
    return None


@payments_bp.route('/create-payment-intent', methods=['POST'])
@jwt_required()
@role_required()
def create_payment_intent():
    """Create Stripe payment intent for a booking"""
    data = request.get_json() or {}

    booking_id = data.get('booking_id')
    if not booking_id:
        return jsonify({'error': 'booking_id is required'}), 400

    booking = BookingService.get_booking(data.get('booking_type', 'property'), booking_id)

    if booking.customer_id != g.current_user.id:
        return jsonify({'error': 'Unauthorized'}), 403

    if booking.payment_status == PaymentStatus.SUCCEEDED:
        return jsonify({'error': 'Booking already paid'}), 400

    if booking.status not in (BookingStatus.PENDING, BookingStatus.CONFIRMED):
        return jsonify({'error': f'Cannot pay for a {booking.status.value} booking'}), 400

    result = StripeService.create_payment_intent(
        amount=float(booking.total_price),
        currency=booking.currency or current_app.config.get('DEFAULT_CURRENCY', 'PKR'),
        metadata=StripeService.booking_metadata(booking)
    )

    if not result['success']:
        return jsonify({'error': result.get('error', 'Payment creation failed')}), 500

    booking.payment_intent_id = result['payment_intent_id']
    booking.payment_status = PaymentStatus.PROCESSING
    db.session.commit()

    return jsonify({
        'client_secret': result['client_secret'],
        'payment_intent_id': result['payment_intent_id'],
        'amount': result['amount'],
        'currency': result['currency'],
        'booking_id': booking.id,
        'booking_type': booking.kind
    }), 200


@payments_bp.route('/confirm-payment', methods=['POST'])
@jwt_required()
@role_required()
def confirm_payment():
    """Sync the booking with the payment intent's status"""
    data = request.get_json() or {}

    payment_intent_id = data.get('payment_intent_id')
    if not payment_intent_id:
        return jsonify({'error': 'payment_intent_id is required'}), 400

    booking = _find_by_intent(payment_intent_id)
    if not booking:
        return jsonify({'error': 'Booking not found'}), 404

    if booking.customer_id != g.current_user.id:
        return jsonify({'error': 'Unauthorized'}), 403

    result = StripeService.retrieve_payment(payment_intent_id)

    if not result['success']:
        return jsonify({'error': result.get('error', 'Payment confirmation failed')}), 500

    if result['status'] == 'succeeded':
        booking.payment_status = PaymentStatus.SUCCEEDED
        if booking.status == BookingStatus.PENDING:
            booking.status = BookingStatus.CONFIRMED
        db.session.commit()

        _after_payment_success(booking)

        return jsonify({
            'message': 'Payment successful',
            'status': result['status'],
            'booking': booking.to_dict()
        }), 200

    if result['status'] in ('canceled', 'requires_payment_method'):
        booking.payment_status = PaymentStatus.FAILED
    else:
        booking.payment_status = PaymentStatus.PROCESSING
    db.session.commit()

    return jsonify({
        'message': 'Payment status updated',
        'status': result['status'],
        'booking': booking.to_dict()
    }), 200


@payments_bp.route('/refund', methods=['POST'])
@jwt_required()
@role_required()
def create_refund():
    """Refund the amount recorded when a paid booking was cancelled"""
    data = request.get_json() or {}

    booking_id = data.get('booking_id')
    if not booking_id:
        return jsonify({'error': 'booking_id is required'}), 400

    booking = BookingService.get_booking(data.get('booking_type', 'property'), booking_id)

    if not g.current_user.is_admin and not booking.is_participant(g.current_user.id):
        return jsonify({'error': 'Unauthorized'}), 403

    if booking.status != BookingStatus.CANCELLED:
        return jsonify({'error': 'Booking is not cancelled'}), 400

    if booking.payment_status != PaymentStatus.SUCCEEDED:
        return jsonify({'error': 'No successful payment to refund'}), 400

    refund_amount = float(booking.refund_amount or 0)
    if refund_amount <= 0:
        return jsonify({'error': 'Booking is not eligible for a refund'}), 400

    result = StripeService.create_refund(
        payment_intent_id=booking.payment_intent_id,
        amount=refund_amount,
        reason='requested_by_customer'
    )

    if not result['success']:
        return jsonify({'error': result.get('error', 'Refund creation failed')}), 500

    booking.payment_status = PaymentStatus.REFUNDED
    booking.status = BookingStatus.REFUNDED
    db.session.commit()

    return jsonify({
        'message': 'Refund created successfully',
        'refund_id': result['refund_id'],
        'amount': result['amount'],
        'status': result['status']
    }), 200


@payments_bp.route('/webhook', methods=['POST'])
def stripe_webhook():
    """Handle Stripe webhooks"""
    payload = request.data
    sig_header = request.headers.get('Stripe-Signature')
    webhook_secret = current_app.config.get('STRIPE_WEBHOOK_SECRET')

    if not webhook_secret:
        return jsonify({'error': 'Webhook secret not configured'}), 500

    event = StripeService.verify_webhook_signature(payload, sig_header, webhook_secret)

    if not event:
        return jsonify({'error': 'Invalid signature'}), 400

    event_type = event['type']
    payment_intent = event['data']['object']

    if event_type == 'payment_intent.succeeded':
        result = StripeService.handle_payment_success(payment_intent)
        if result['success']:
            _after_payment_success(result['booking'])
        else:
            current_app.logger.warning(f"Webhook {event_type}: {result['error']}")

    elif event_type == 'payment_intent.payment_failed':
        result = StripeService.handle_payment_failed(payment_intent)
        if result['success']:
            booking = result['booking']
            try:
                NotificationService.create_and_dispatch(
                    booking.customer_id,
                    NotificationType.PAYMENT_FAILED,
                    'Payment Failed',
                    f'Payment for booking {booking.booking_number} failed. Please try again.',
                    action_url=f'/dashboard/bookings/{booking.id}?type={booking.kind}',
                )
            except Exception as e:
                db.session.rollback()
                current_app.logger.error(f'Payment failure notification failed: {str(e)}')

    return jsonify({'received': True}), 200
