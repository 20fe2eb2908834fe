"""
Flask Application Factory
"""

import os

from flask import Flask, jsonify
from flask_jwt_extended import get_jwt_identity, verify_jwt_in_request
from flask_jwt_extended.exceptions import JWTExtendedException
from jwt.exceptions import PyJWTError
from werkzeug.exceptions import HTTPException

from config import config
from extensions import db, migrate, jwt, bcrypt, cors, limiter, mail
from travelhub.exceptions import ServiceError
from travelhub.services import presence


def create_app(config_name=None):
    """Application factory pattern"""

    if config_name is None:
        config_name = os.getenv('FLASK_ENV', 'development')

    app = Flask(__name__)

    # Load configuration
    app.config.from_object(config[config_name])

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)
    jwt.init_app(app)
    bcrypt.init_app(app)
    cors.init_app(app, resources={
        r"/api/*": {
            "origins": app.config['CORS_ORIGINS'],
            "methods": ["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
            "allow_headers": ["Content-Type", "Authorization"],
            "supports_credentials": True,
        }
    })
    limiter.init_app(app)
    mail.init_app(app)
    presence.init_app(app)

    register_blueprints(app)
    register_error_handlers(app)
    register_presence_tracking(app)

    # Create database tables
    with app.app_context():
        from travelhub import models  # noqa: F401
        db.create_all()

    return app


def register_blueprints(app):
    """Register Flask blueprints"""
    from travelhub.api.auth import auth_bp
    from travelhub.api.users import users_bp
    from travelhub.api.properties import properties_bp
    from travelhub.api.availability import availability_bp
    from travelhub.api.calendar import calendar_bp
    from travelhub.api.vehicles import vehicles_bp
    from travelhub.api.tours import tours_bp
    from travelhub.api.bookings import bookings_bp
    from travelhub.api.payments import payments_bp
    from travelhub.api.chat import chat_bp
    from travelhub.api.notifications import notifications_bp
    from travelhub.api.realtime import realtime_bp
    from travelhub.api.reviews import reviews_bp
    from travelhub.api.wishlist import wishlist_bp
    from travelhub.api.admin import admin_bp

    app.register_blueprint(auth_bp, url_prefix='/api/auth')
    app.register_blueprint(users_bp, url_prefix='/api/users')
    app.register_blueprint(properties_bp, url_prefix='/api/properties')
    app.register_blueprint(availability_bp, url_prefix='/api/availability')
    app.register_blueprint(calendar_bp, url_prefix='/api/calendar')
    app.register_blueprint(vehicles_bp, url_prefix='/api/vehicles')
    app.register_blueprint(tours_bp, url_prefix='/api/tours')
    app.register_blueprint(bookings_bp, url_prefix='/api/bookings')
    app.register_blueprint(payments_bp, url_prefix='/api/payments')
    app.register_blueprint(chat_bp, url_prefix='/api/chat')
    app.register_blueprint(notifications_bp, url_prefix='/api/notifications')
    app.register_blueprint(realtime_bp, url_prefix='/api/realtime')
    app.register_blueprint(reviews_bp, url_prefix='/api/reviews')
    app.register_blueprint(wishlist_bp, url_prefix='/api/wishlist')
    app.register_blueprint(admin_bp, url_prefix='/api/admin')

    # Health check endpoint
    @app.route('/health')
    def health_check():
        return jsonify({'status': 'healthy', 'message': 'API is running'}), 200

    @app.route('/')
    def index():
        return jsonify({
            'message': 'Welcome to TravelHub API',
            'version': '1.0.0',
            'endpoints': {
                'auth': '/api/auth',
                'users': '/api/users',
                'properties': '/api/properties',
                'availability': '/api/availability',
                'calendar': '/api/calendar',
                'vehicles': '/api/vehicles',
                'tours': '/api/tours',
                'bookings': '/api/bookings',
                'payments': '/api/payments',
                'chat': '/api/chat',
                'notifications': '/api/notifications',
                'realtime': '/api/realtime/stream',
                'reviews': '/api/reviews',
                'admin': '/api/admin',
            }
        }), 200


def register_presence_tracking(app):
    """Refresh the caller's presence on every authenticated request"""

    @app.before_request
    def track_presence():
        try:
            verify_jwt_in_request(optional=True)
        except (JWTExtendedException, PyJWTError):
            # Protected routes report bad tokens themselves
            return None
        identity = get_jwt_identity()
        if identity is not None:
            presence.record_activity(int(identity))
        return None


def register_error_handlers(app):
    """Register error handlers"""

    @app.errorhandler(ServiceError)
    def service_error(error):
        db.session.rollback()
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(400)
    def bad_request(error):
        return jsonify({'error': 'Bad Request', 'message': str(error)}), 400

    @app.errorhandler(401)
    def unauthorized(error):
        return jsonify({'error': 'Unauthorized', 'message': 'Authentication required'}), 401

    @app.errorhandler(403)
    def forbidden(error):
        return jsonify({'error': 'Forbidden', 'message': 'Insufficient permissions'}), 403

    @app.errorhandler(404)
    def not_found(error):
        return jsonify({'error': 'Not Found', 'message': 'Resource not found'}), 404

    @app.errorhandler(405)
    def method_not_allowed(error):
        return jsonify({'error': 'Method Not Allowed', 'message': str(error)}), 405

    @app.errorhandler(429)
    def rate_limited(error):
        return jsonify({'error': 'Too Many Requests', 'message': str(error.description)}), 429

    @app.errorhandler(500)
    def internal_error(error):
        db.session.rollback()
        return jsonify({'error': 'Internal Server Error', 'message': 'An unexpected error occurred'}), 500

    @app.errorhandler(Exception)
    def handle_exception(error):
        if isinstance(error, HTTPException):
            return jsonify({'error': error.name, 'message': error.description}), error.code
        db.session.rollback()
        app.logger.error(f'Unhandled exception: {str(error)}')
        return jsonify({'error': 'Internal Server Error', 'message': 'An unexpected error occurred'}), 500
