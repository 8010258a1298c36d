from __future__ import annotations


class AppError(Exception):
    """Base application error."""

    def __init__(self, detail: str = "", *, status_code: int | None = None) -> None:
        self.detail = detail
        self.status_code = status_code
        super().__init__(detail)


class NotFoundError(AppError):
    pass


class ForbiddenError(AppError):
    pass


class UnauthorizedError(AppError):
    pass


class ConflictError(AppError):
    pass


class ValidationError(AppError):
    pass


class ApiUnavailableError(AppError):
    """Transport failure, server error or a response that could not be decoded."""


class RequestCancelled(AppError):
    """The request was superseded or its view went away; never shown to the user."""
