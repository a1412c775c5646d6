"""
Error types surfaced to API callers.

Every error carries the HTTP status and the message placed in the
``{"success": false, "message": ...}`` envelope by the app's handlers.
"""

from __future__ import annotations


class PaylinkError(Exception):
    status_code: int = 500

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class InvalidRequestError(PaylinkError):
    status_code = 400


class AuthError(PaylinkError):
    status_code = 400


class InvalidSecurityCodeError(AuthError):
    status_code = 403

    def __init__(self, message: str = "Invalid security code"):
        super().__init__(message)


class ClientNotFoundError(PaylinkError):
    status_code = 404

    def __init__(self, message: str = "Client not found"):
        super().__init__(message)


class UploadError(PaylinkError):
    status_code = 400


class UnsupportedFileTypeError(UploadError):
    def __init__(self, message: str = "Only image files are allowed"):
        super().__init__(message)


class FileTooLargeError(UploadError):
    def __init__(self, message: str = "File is too large"):
        super().__init__(message)


class InternalServerError(PaylinkError):
    status_code = 500

    def __init__(self, message: str = "Server error"):
        super().__init__(message)
