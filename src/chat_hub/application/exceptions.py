from __future__ import annotations


class AppError(Exception):
    """Base application error."""

    def __init__(self, detail: str = "") -> None:
        self.detail = detail
        super().__init__(detail)


class NotFoundError(AppError):
    pass


class ForbiddenError(AppError):
    pass


class ConflictError(AppError):
    pass


class ValidationError(AppError):
    pass


class AuthenticationError(AppError):
    """Credential missing or rejected. ``code`` is the WebSocket close code."""

    def __init__(self, detail: str = "", code: int = 4003) -> None:
        self.code = code
        super().__init__(detail)
