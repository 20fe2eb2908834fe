"""
Vehicles Blueprint
"""

from flask import Blueprint
from travelhub.api.vehicles.routes import vehicles_bp

__all__ = ['vehicles_bp']
