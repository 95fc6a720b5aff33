"""Domain errors raised by the user service.

Each error carries the envelope ``code`` the API layer reports for it.
"""

import uuid


class UserServiceError(Exception):
    """Base class for business-rule failures."""

    code = "VALIDATION_ERROR"

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class UserNotFoundError(UserServiceError):
    code = "NOT_FOUND"

    def __init__(self, user_id: uuid.UUID):
        self.user_id = user_id
        super().__init__(f"User '{user_id}' was not found")


class DuplicateEmailError(UserServiceError):
    def __init__(self, email: str):
        self.email = email
        super().__init__(f"Email address '{email}' is already in use")


class InvalidParentError(UserServiceError):
    """Raised when a child's parentId does not reference an active parent."""

    def __init__(self, message: str = "No valid parent user was found"):
        super().__init__(message)


class ParentIdNotAllowedError(UserServiceError):
    def __init__(self):
        super().__init__("Parent users cannot have a parentId")
