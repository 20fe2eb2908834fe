"""
Auth Blueprint
"""

from flask import Blueprint
from travelhub.api.auth.routes import auth_bp

__all__ = ['auth_bp']
