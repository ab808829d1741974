"""
Middleware package for the Flow Estate API.
"""

from .request_context import RequestContextMiddleware

__all__ = ["RequestContextMiddleware"]
