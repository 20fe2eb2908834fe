"""
Chat Blueprint
"""

from flask import Blueprint
from travelhub.api.chat.routes import chat_bp

__all__ = ['chat_bp']
