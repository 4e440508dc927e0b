"""Middleware package."""
from meetstake.middleware.logging import LoggingMiddleware

__all__ = ["LoggingMiddleware"]
