"""
Availability Blueprint
"""

from flask import Blueprint
from travelhub.api.availability.routes import availability_bp

__all__ = ['availability_bp']
