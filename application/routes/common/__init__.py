"""
Common utilities for route handlers.

Provides shared functionality to reduce code duplication:
- Identity resolution
- Rate limiting utilities
- Response formatting and error handlers
- Request validation
- Constants
"""
