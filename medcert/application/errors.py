from __future__ import annotations


class AppError(RuntimeError):
    """Base application-level error."""


class ValidationError(AppError):
    """Input validation failure."""


class NotFoundError(AppError):
    """Referenced region, brigade, candidate or user does not exist."""


class ForbiddenError(AppError):
    """RBAC/permission failure or cross-region access."""


class ConflictError(AppError):
    """Unique constraint or concurrent modification conflict."""
