"""
Notifications Blueprint
"""

from flask import Blueprint
from travelhub.api.notifications.routes import notifications_bp

__all__ = ['notifications_bp']
