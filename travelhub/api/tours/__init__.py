"""
Tours Blueprint
"""

from flask import Blueprint
from travelhub.api.tours.routes import tours_bp

__all__ = ['tours_bp']
