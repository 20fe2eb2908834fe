"""
Bookings Blueprint
Property stays, vehicle rentals and tour reservations
"""

from flask import Blueprint, jsonify, request, g
from flask_jwt_extended import jwt_required

from extensions import limiter
from travelhub.models.booking import BookingStatus
from travelhub.models.user import UserRole
from travelhub.services.booking_service import BookingService
from travelhub.utils.decorators import role_required

bookings_bp = Blueprint('bookings', __name__)

CREATORS = {
    'property': BookingService.create_property_booking,
    'vehicle': BookingService.create_vehicle_booking,
    'tour': BookingService.create_tour_booking,
}


def _status_filter():
    status = request.args.get('status')
    if status and status not in {s.value for s in BookingStatus}:
        return None, (jsonify({'error': f'Invalid status: {status}'}), 400)
    return status, None


@bookings_bp.route('/<kind>', methods=['POST'])
@jwt_required()
@role_required(UserRole.CUSTOMER, UserRole.PROVIDER)
@limiter.limit("30 per hour")
def create_booking(kind):
    """Create a booking of the given kind"""
    creator = CREATORS.get(kind)
    if creator is None:
        return jsonify({'error': f'Unknown booking type: {kind}'}), 404

    booking = creator(g.current_user, request.get_json() or {})

    return jsonify({
        'message': 'Booking created successfully',
        'booking': booking.to_dict()
    }), 201


@bookings_bp.route('/my-bookings', methods=['GET'])
@jwt_required()
@role_required()
def get_my_bookings():
    """Current user's bookings across all kinds"""
    status, error = _status_filter()
    if error:
        return error

    bookings = BookingService.list_for_customer(g.current_user.id, status)
    return jsonify({
        'bookings': [booking.to_dict() for booking in bookings],
        'total': len(bookings)
    }), 200


@bookings_bp.route('/provider', methods=['GET'])
@jwt_required()
@role_required(UserRole.PROVIDER)
def get_provider_bookings():
    """Bookings made on the current provider's services"""
    status, error = _status_filter()
    if error:
        return error

    bookings = BookingService.list_for_provider(g.current_user.id, status, request.args.get('kind'))
    return jsonify({
        'bookings': [booking.to_dict(include_customer=True) for booking in bookings],
        'total': len(bookings)
    }), 200


@bookings_bp.route('/<kind>/<int:booking_id>', methods=['GET'])
@jwt_required()
@role_required()
def get_booking(kind, booking_id):
    """Booking detail for its customer, provider or an admin"""
    booking = BookingService.get_booking_for_user(kind, booking_id, g.current_user)
    return jsonify({
        'booking': booking.to_dict(include_customer=True)
    }), 200


@bookings_bp.route('/<kind>/<int:booking_id>/cancel', methods=['POST'])
@jwt_required()
@role_required()
def cancel_booking(kind, booking_id):
    """Cancel a booking; the refund depends on how close the start date is"""
    booking = BookingService.get_booking(kind, booking_id)
    data = request.get_json(silent=True) or {}

    booking, refund_percentage = BookingService.cancel(booking, g.current_user, data.get('reason'))

    return jsonify({
        'message': 'Booking cancelled successfully',
        'refund_percentage': refund_percentage,
        'refund_amount': float(booking.refund_amount or 0),
        'booking': booking.to_dict()
    }), 200


@bookings_bp.route('/<kind>/<int:booking_id>/status', methods=['POST'])
@jwt_required()
@role_required(UserRole.PROVIDER)
def update_booking_status(kind, booking_id):
    """Confirm, reject or complete a booking"""
    booking = BookingService.get_booking(kind, booking_id)
    data = request.get_json() or {}

    action = data.get('action') or data.get('status')
    if not action:
        return jsonify({'error': 'action is required'}), 400

    booking = BookingService.update_status(booking, g.current_user, action)

    return jsonify({
        'message': f'Booking {booking.status.value}',
        'booking': booking.to_dict()
    }), 200
