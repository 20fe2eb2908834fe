"""
Properties Blueprint
"""

from flask import Blueprint
from travelhub.api.properties.routes import properties_bp

__all__ = ['properties_bp']
