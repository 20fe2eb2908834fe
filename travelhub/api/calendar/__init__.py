"""
Calendar Blueprint
"""

from flask import Blueprint
from travelhub.api.calendar.routes import calendar_bp

__all__ = ['calendar_bp']
