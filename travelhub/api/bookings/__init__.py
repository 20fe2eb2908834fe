"""
Bookings Blueprint
"""

from flask import Blueprint
from travelhub.api.bookings.routes import bookings_bp

__all__ = ['bookings_bp']
