"""
Property Routes
Listings, search and room type management
"""

from flask import Blueprint, request, jsonify, g, current_app
from flask_jwt_extended import jwt_required
from sqlalchemy.exc import SQLAlchemyError

from extensions import db, limiter
from travelhub.models.approval import ApprovalStatus
from travelhub.models.property import Property, PropertyStatus, PropertyType, RoomType
from travelhub.models.user import UserRole, ProviderType
from travelhub.utils.decorators import role_required

properties_bp = Blueprint('properties', __name__)

PROPERTY_FIELDS = ['name', 'description', 'address', 'city', 'country', 'latitude', 'longitude',
                   'cleaning_fee', 'service_fee', 'tax_rate', 'currency', 'amenities', 'images']
ROOM_FIELDS = ['name', 'description', 'base_price', 'total_units', 'max_guests', 'bed_type',
               'amenities', 'available']
NUMERIC_FIELDS = {'latitude': float, 'longitude': float, 'cleaning_fee': float, 'service_fee': float,
                  'tax_rate': float, 'base_price': float, 'total_units': int, 'max_guests': int}
OWNER_STATUSES = (PropertyStatus.ACTIVE, PropertyStatus.INACTIVE)


def _coerce(field, value):
    caster = NUMERIC_FIELDS.get(field)
    if caster is None or value is None:
        return value
    try:
        number = caster(value)
    except (TypeError, ValueError):
        raise ValueError(f'{field} must be a number')
    if number < 0:
        raise ValueError(f'{field} cannot be negative')
    return number


def _apply_fields(obj, data, fields):
    for field in fields:
        if field in data:
            setattr(obj, field, _coerce(field, data[field]))


def _owned_property(property_id):
    """Property owned by the current provider (admins may touch any)"""
    property_obj = Property.query.get(property_id)
    if not property_obj:
        return None, (jsonify({'error': 'Property not found'}), 404)
    if not g.current_user.is_admin and property_obj.owner_id != g.current_user.id:
        return None, (jsonify({'error': 'Unauthorized'}), 403)
    return property_obj, None


@properties_bp.route('', methods=['GET'])
@limiter.limit("100 per minute")
def get_properties():
    """Search active properties"""
    page = request.args.get('page', 1, type=int)
    per_page = min(request.args.get('per_page', 20, type=int), 100)

    city = request.args.get('city')
    country = request.args.get('country')
    property_type = request.args.get('property_type')
    min_price = request.args.get('min_price', type=float)
    max_price = request.args.get('max_price', type=float)
    guests = request.args.get('guests', type=int)
    owner_id = request.args.get('owner_id', type=int)

    query = Property.query.filter_by(status=PropertyStatus.ACTIVE, approval_status=ApprovalStatus.APPROVED)

    if owner_id:
        query = query.filter(Property.owner_id == owner_id)

    if city:
        query = query.filter(Property.city.ilike(f'%{city}%'))

    if country:
        query = query.filter(Property.country.ilike(f'%{country}%'))

    if property_type:
        try:
            query = query.filter_by(property_type=PropertyType(property_type))
        except ValueError:
            return jsonify({'error': f'Invalid property_type: {property_type}'}), 400

    if min_price is not None:
        query = query.filter(Property.room_types.any(RoomType.base_price >= min_price))

    if max_price is not None:
        query = query.filter(Property.room_types.any(RoomType.base_price <= max_price))

    if guests:
        query = query.filter(Property.room_types.any(RoomType.max_guests >= guests))

    sort_by = request.args.get('sort_by', 'created_at')
    if sort_by == 'rating':
        query = query.order_by(Property.average_rating.desc())
    elif sort_by == 'popular':
        query = query.order_by(Property.view_count.desc())
    else:
        query = query.order_by(Property.created_at.desc())

    paginated = query.paginate(page=page, per_page=per_page, error_out=False)

    return jsonify({
        'properties': [prop.to_dict() for prop in paginated.items],
        'total': paginated.total,
        'pages': paginated.pages,
        'current_page': page,
        'per_page': per_page
    }), 200


@properties_bp.route('/mine', methods=['GET'])
@jwt_required()
@role_required(UserRole.PROVIDER, provider_type=ProviderType.PROPERTY_OWNER)
def get_my_properties():
    properties = Property.query.filter_by(owner_id=g.current_user.id) \
        .order_by(Property.created_at.desc()).all()
    return jsonify({'properties': [p.to_dict(include_rooms=True) for p in properties]}), 200


@properties_bp.route('/<int:property_id>', methods=['GET'])
@limiter.limit("100 per minute")
def get_property(property_id):
    """Get single property with its room types"""
    property_obj = Property.query.get(property_id)

    if not property_obj:
        return jsonify({'error': 'Property not found'}), 404

    property_obj.increment_views()

    return jsonify({
        'property': property_obj.to_dict(include_owner=True, include_rooms=True)
    }), 200


@properties_bp.route('', methods=['POST'])
@jwt_required()
@role_required(UserRole.PROVIDER, provider_type=ProviderType.PROPERTY_OWNER)
@limiter.limit("20 per day")
def create_property():
    """Create a new property listing"""
    try:
        data = request.get_json() or {}

        required_fields = ['name', 'description', 'property_type', 'address', 'city', 'country']
        for field in required_fields:
            if not data.get(field):
                return jsonify({'error': f'{field} is required'}), 400

        try:
            property_type = PropertyType(data['property_type'])
        except ValueError:
            return jsonify({'error': f"Invalid property_type: {data['property_type']}"}), 400

        property_obj = Property(
            owner_id=g.current_user.id,
            property_type=property_type,
            currency=current_app.config.get('DEFAULT_CURRENCY', 'PKR'),
        )
        try:
            _apply_fields(property_obj, data, PROPERTY_FIELDS)
        except ValueError as e:
            return jsonify({'error': str(e)}), 400

        db.session.add(property_obj)
        db.session.commit()
        current_app.logger.info(f'Property {property_obj.id} created by user {g.current_user.id}')

        return jsonify({
            'message': 'Property created successfully',
            'property': property_obj.to_dict(include_rooms=True)
        }), 201

    except SQLAlchemyError as e:
        db.session.rollback()
        current_app.logger.error(f'Property creation error: {str(e)}')
        return jsonify({'error': str(e)}), 500


@properties_bp.route('/<int:property_id>', methods=['PUT'])
@jwt_required()
@role_required(UserRole.PROVIDER, provider_type=ProviderType.PROPERTY_OWNER)
def update_property(property_id):
    """Update a property (owner only)"""
    try:
        property_obj, error = _owned_property(property_id)
        if error:
            return error

        data = request.get_json() or {}

        try:
            _apply_fields(property_obj, data, PROPERTY_FIELDS)
            if 'property_type' in data:
                property_obj.property_type = PropertyType(data['property_type'])
            if 'status' in data:
                status = PropertyStatus(data['status'])
                if status not in OWNER_STATUSES and not g.current_user.is_admin:
                    db.session.rollback()
                    return jsonify({'error': f'Only an admin can set status {status.value}'}), 403
                property_obj.status = status
            if not g.current_user.is_admin:
                property_obj.resubmit()
        except ValueError as e:
            db.session.rollback()
            return jsonify({'error': str(e)}), 400

        db.session.commit()

        return jsonify({
            'message': 'Property updated successfully',
            'property': property_obj.to_dict(include_rooms=True)
        }), 200

    except SQLAlchemyError as e:
        db.session.rollback()
        return jsonify({'error': str(e)}), 500


@properties_bp.route('/<int:property_id>/rooms', methods=['GET'])
def get_room_types(property_id):
    property_obj = Property.query.get(property_id)
    if not property_obj:
        return jsonify({'error': 'Property not found'}), 404

    return jsonify({'room_types': [room.to_dict() for room in property_obj.room_types]}), 200


@properties_bp.route('/<int:property_id>/rooms', methods=['POST'])
@jwt_required()
@role_required(UserRole.PROVIDER, provider_type=ProviderType.PROPERTY_OWNER)
def create_room_type(property_id):
    """Add a room type to a property"""
    try:
        property_obj, error = _owned_property(property_id)
        if error:
            return error

        data = request.get_json() or {}
        if not data.get('name') or data.get('base_price') is None:
            return jsonify({'error': 'name and base_price are required'}), 400

        room = RoomType(property_id=property_obj.id)
        try:
            _apply_fields(room, data, ROOM_FIELDS)
        except ValueError as e:
            return jsonify({'error': str(e)}), 400

        if room.total_units is not None and room.total_units < 1:
            return jsonify({'error': 'total_units must be at least 1'}), 400

        db.session.add(room)
        db.session.commit()

        return jsonify({
            'message': 'Room type created successfully',
            'room_type': room.to_dict()
        }), 201

    except SQLAlchemyError as e:
        db.session.rollback()
        return jsonify({'error': str(e)}), 500


@properties_bp.route('/rooms/<int:room_type_id>', methods=['PUT'])
@jwt_required()
@role_required(UserRole.PROVIDER, provider_type=ProviderType.PROPERTY_OWNER)
def update_room_type(room_type_id):
    try:
        room = RoomType.query.get(room_type_id)
        if not room:
            return jsonify({'error': 'Room type not found'}), 404

        _, error = _owned_property(room.property_id)
        if error:
            return error

        data = request.get_json() or {}
        try:
            _apply_fields(room, data, ROOM_FIELDS)
        except ValueError as e:
            db.session.rollback()
            return jsonify({'error': str(e)}), 400

        db.session.commit()

        return jsonify({
            'message': 'Room type updated successfully',
            'room_type': room.to_dict()
        }), 200

    except SQLAlchemyError as e:
        db.session.rollback()
        return jsonify({'error': str(e)}), 500
