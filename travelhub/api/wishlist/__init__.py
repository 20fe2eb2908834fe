"""
Wishlist Blueprint
"""

from flask import Blueprint
from travelhub.api.wishlist.routes import wishlist_bp

__all__ = ['wishlist_bp']
