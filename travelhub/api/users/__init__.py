"""
Users Blueprint
"""

from flask import Blueprint
from travelhub.api.users.routes import users_bp

__all__ = ['users_bp']
