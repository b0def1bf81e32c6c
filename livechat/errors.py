from __future__ import annotations


class ChatError(Exception):
    """Base error for user-facing failures. `status_code` is what the web layer returns."""

    status_code = 400

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(ChatError):
    status_code = 400


class AuthError(ChatError):
    status_code = 401


class NotFoundError(ChatError):
    status_code = 404


class ConflictError(ChatError):
    status_code = 409


class DatastoreError(ChatError):
    status_code = 500

    def __init__(self, message: str = "Something went wrong, please try again.") -> None:
        super().__init__(message)
