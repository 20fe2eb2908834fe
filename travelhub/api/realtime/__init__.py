"""
Realtime Blueprint
"""

from flask import Blueprint
from travelhub.api.realtime.routes import realtime_bp

__all__ = ['realtime_bp']
