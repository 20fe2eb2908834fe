"""
Availability Routes
Public availability and price checks for room types
"""

from flask import Blueprint, jsonify, request

from extensions import limiter
from travelhub.services.availability_service import AvailabilityService
from travelhub.services.pricing_service import PricingService
from travelhub.utils.dates import nights_between, parse_date, today

availability_bp = Blueprint('availability', __name__)


@availability_bp.route('/check', methods=['GET'])
@limiter.limit("120 per minute")
def check_availability():
    """Availability plus pricing, or the reason and nearby alternatives"""
    room_type_id = request.args.get('room_type_id', type=int)
    rooms = request.args.get('rooms', 1, type=int)

    if not room_type_id:
        return jsonify({'error': 'room_type_id is required'}), 400
    if rooms < 1:
        return jsonify({'error': 'rooms must be at least 1'}), 400

    check_in = parse_date(request.args.get('check_in'), 'check_in')
    check_out = parse_date(request.args.get('check_out'), 'check_out')

    if check_out <= check_in:
        return jsonify({'error': 'Check-out must be after check-in'}), 400
    if check_in < today():
        return jsonify({'error': 'Check-in date cannot be in the past'}), 400

    result = AvailabilityService.check_room_availability(room_type_id, check_in, check_out, rooms)

    if result['is_available']:
        result['pricing'] = PricingService.calculate_stay_price(
            room_type_id, check_in, check_out, booking_date=today(), number_of_rooms=rooms
        )
    elif result.get('reason') != 'Room type not found':
        result['suggestions'] = AvailabilityService.suggest_alternative_dates(
            room_type_id, check_in, nights_between(check_in, check_out), rooms
        )

    return jsonify(result), 200


@availability_bp.route('/price', methods=['GET'])
def nightly_price():
    """Resolved price for a single night"""
    room_type_id = request.args.get('room_type_id', type=int)
    if not room_type_id:
        return jsonify({'error': 'room_type_id is required'}), 400

    day = parse_date(request.args.get('date'), 'date')
    return jsonify(PricingService.calculate_room_price(room_type_id, day)), 200
