"""Middleware package."""

from changetracker.api.middleware.context import RequestContextMiddleware

__all__ = ["RequestContextMiddleware"]
