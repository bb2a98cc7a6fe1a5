"""
Cross-cutting request helpers for the enterprise auth service.
"""

from .auth_middleware import AuthMiddleware

__all__ = ["AuthMiddleware"]
