"""
Application routes package.

Contains all API endpoint blueprints.
"""

from application.routes.chat import chat_bp
from application.routes.health import health_bp

__all__ = ["chat_bp", "health_bp"]
