from typing import Optional


class AppError(Exception):
    """
    Error surfaced to API clients.

    ``code`` and ``message`` are public; ``status`` is the HTTP status the API answers with,
    ``cause`` keeps the underlying failure for the logs.
    """

    def __init__(self, code: str, message: str, status: int, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.code = code
        self.message = message
        self.status = status
        self.cause = cause

    def __str__(self) -> str:
        if self.cause is not None:
            return f"{self.message}: {self.cause}"
        return self.message


def bad_request(message: str) -> AppError:
    return AppError("BAD_REQUEST", message, 400)


def not_found(message: str) -> AppError:
    return AppError("NOT_FOUND", message, 404)


def domain(code: str, message: str) -> AppError:
    """Domain conflict; TEAM_EXISTS answers 400, the others 409"""
    status = 400 if code == "TEAM_EXISTS" else 409
    return AppError(code, message, status)


def internal(message: str, cause: BaseException) -> AppError:
    return AppError("INTERNAL", message, 500, cause)
