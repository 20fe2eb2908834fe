"""
Vehicle Routes
"""

from flask import Blueprint, request, jsonify, g, current_app
from flask_jwt_extended import jwt_required
from sqlalchemy.exc import SQLAlchemyError

from extensions import db, limiter
from travelhub.models.approval import ApprovalStatus
from travelhub.models.user import UserRole, ProviderType
from travelhub.models.vehicle import Vehicle
from travelhub.services.booking_service import calculate_vehicle_price
from travelhub.utils.dates import nights_between, parse_date
from travelhub.utils.decorators import role_required

vehicles_bp = Blueprint('vehicles', __name__)

VEHICLE_FIELDS = ['make', 'model', 'year', 'vehicle_type', 'seats', 'transmission', 'fuel_type',
                  'features', 'images', 'city', 'pickup_location', 'daily_rate', 'insurance_fee',
                  'driver_fee']


@vehicles_bp.route('', methods=['GET'])
@limiter.limit("100 per minute")
def get_vehicles():
    """Search available vehicles"""
    page = request.args.get('page', 1, type=int)
    per_page = min(request.args.get('per_page', 20, type=int), 100)

    city = request.args.get('city')
    vehicle_type = request.args.get('vehicle_type')
    seats = request.args.get('seats', type=int)
    max_price = request.args.get('max_price', type=float)

    query = Vehicle.query.filter_by(available=True, approval_status=ApprovalStatus.APPROVED)

    if city:
        query = query.filter(Vehicle.city.ilike(f'%{city}%'))

    if vehicle_type:
        query = query.filter(Vehicle.vehicle_type == vehicle_type)

    if seats:
        query = query.filter(Vehicle.seats >= seats)

    if max_price is not None:
        query = query.filter(Vehicle.daily_rate <= max_price)

    paginated = query.order_by(Vehicle.created_at.desc()).paginate(page=page, per_page=per_page, error_out=False)

    return jsonify({
        'vehicles': [vehicle.to_dict() for vehicle in paginated.items],
        'total': paginated.total,
        'pages': paginated.pages,
        'current_page': page,
        'per_page': per_page
    }), 200


@vehicles_bp.route('/<int:vehicle_id>', methods=['GET'])
def get_vehicle(vehicle_id):
    """Vehicle detail, with a price quote when start_date and end_date are given"""
    vehicle = Vehicle.query.get(vehicle_id)
    if not vehicle:
        return jsonify({'error': 'Vehicle not found'}), 404

    response = {'vehicle': vehicle.to_dict(include_owner=True)}

    if request.args.get('start_date') and request.args.get('end_date'):
        start = parse_date(request.args.get('start_date'), 'start_date')
        end = parse_date(request.args.get('end_date'), 'end_date')
        if end <= start:
            return jsonify({'error': 'Dropoff must be after pickup'}), 400
        with_driver = request.args.get('with_driver') in ('1', 'true', 'on')
        response['pricing'] = calculate_vehicle_price(vehicle, max(1, nights_between(start, end)), with_driver)

    return jsonify(response), 200


@vehicles_bp.route('', methods=['POST'])
@jwt_required()
@role_required(UserRole.PROVIDER, provider_type=ProviderType.VEHICLE_OWNER)
def create_vehicle():
    """Create a vehicle listing"""
    try:
        data = request.get_json() or {}

        for field in ['make', 'model', 'daily_rate']:
            if data.get(field) in (None, ''):
                return jsonify({'error': f'{field} is required'}), 400

        try:
            if float(data['daily_rate']) <= 0:
                return jsonify({'error': 'daily_rate must be positive'}), 400
        except (TypeError, ValueError):
            return jsonify({'error': 'daily_rate must be a number'}), 400

        vehicle = Vehicle(
            owner_id=g.current_user.id,
            currency=current_app.config.get('DEFAULT_CURRENCY', 'PKR'),
            **{field: data[field] for field in VEHICLE_FIELDS if field in data}
        )

        db.session.add(vehicle)
        db.session.commit()

        return jsonify({
            'message': 'Vehicle created successfully',
            'vehicle': vehicle.to_dict()
        }), 201

    except SQLAlchemyError as e:
        db.session.rollback()
        current_app.logger.error(f'Vehicle creation error: {str(e)}')
        return jsonify({'error': str(e)}), 500
