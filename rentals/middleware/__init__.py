"""
Middleware package for request tracking and preprocessing.
"""

from .request_context import RequestContextMiddleware

__all__ = ["RequestContextMiddleware"]
