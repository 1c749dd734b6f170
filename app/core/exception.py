from fastapi import HTTPException
from typing import Any, Optional
from app.schemas.result import ErrorCategory


class CustomException(HTTPException):
    """Base exception class for all custom application exceptions"""

    code: Optional[str] = None

    def __init__(
        self,
        message: str,
        status_code: int,
        category: ErrorCategory,
        headers: Optional[dict] = None,
        code: Optional[str] = None
    ):
        super().__init__(status_code=status_code, detail=message, headers=headers)
        self.category = category
        if code is not None:
            self.code = code


class ResourceNotFoundException(CustomException):
    """Exception raised when a requested resource is not found"""

    code = "NOT_FOUND"

    def __init__(self, resource_name: str, resource_id: Optional[Any] = None):
        if resource_id:
            message = f"{resource_name} with ID '{resource_id}' was not found."
        else:
            message = f"{resource_name} was not found."

        super().__init__(
            message=message,
            status_code=404,
            category=ErrorCategory.NOT_FOUND
        )


class AuthenticationException(CustomException):
    """Exception raised when authentication fails"""

    code = "UNAUTHENTICATED"

    def __init__(self, message: str = "Invalid credentials. Access denied."):
        super().__init__(
            message=message,
            status_code=401,
            category=ErrorCategory.AUTHENTICATION,
            headers={"WWW-Authenticate": "Bearer"}
        )


class AuthorizationException(CustomException):
    """Exception raised when user lacks required permissions"""

    code = "FORBIDDEN"

    def __init__(
        self,
        permission: Optional[str] = None,
        message: Optional[str] = None,
        status_code: int = 403
    ):
        if message:
            error_message = message
        elif permission:
            error_message = f"You do not have permission to perform this action. Required permission: {permission}"
        else:
            error_message = "You do not have permission to perform this action."

        super().__init__(
            message=error_message,
            status_code=status_code,
            category=ErrorCategory.AUTHORIZATION
        )


class DuplicateResourceException(CustomException):
    """Exception raised when attempting to create a resource that already exists"""

    code = "DUPLICATE"

    def __init__(
        self,
        resource_name: str,
        identifier: Optional[str] = None,
        status_code: int = 409
    ):
        if identifier:
            message = f"{resource_name} with identifier '{identifier}' already exists."
        else:
            message = f"{resource_name} already exists."

        super().__init__(
            message=message,
            status_code=status_code,
            category=ErrorCategory.RESOURCE_CONFLICT
        )


class ValidationException(CustomException):
    """Exception raised for business logic validation failures"""

    code = "VALIDATION_ERROR"

    def __init__(self, message: str, field: Optional[str] = None):
        if field:
            error_message = f"Validation failed for '{field}': {message}"
        else:
            error_message = f"Validation failed: {message}"

        super().__init__(
            message=error_message,
            status_code=422,
            category=ErrorCategory.VALIDATION
        )


class BadRequestException(CustomException):
    """Exception raised for malformed or invalid requests"""

    code = "BAD_REQUEST"

    def __init__(self, message: str = "The request is invalid or malformed."):
        super().__init__(
            message=message,
            status_code=400,
            category=ErrorCategory.BAD_REQUEST
        )


class ConflictException(CustomException):
    """Exception raised when a request conflicts with the current state of a resource"""

    code = "CONFLICT"

    def __init__(self, message: str):
        super().__init__(
            message=message,
            status_code=409,
            category=ErrorCategory.RESOURCE_CONFLICT
        )


# Membership conflicts

class AlreadyMemberException(ConflictException):
    code = "ALREADY_MEMBER"

    def __init__(self):
        super().__init__("You are already a member of this community")


class AlreadyRequestedException(ConflictException):
    code = "ALREADY_REQUESTED"

    def __init__(self):
        super().__init__("You already have a pending request for this community")


class AlreadyAcceptedException(ConflictException):
    code = "ALREADY_ACCEPTED"

    def __init__(self):
        super().__init__("Member is already accepted")


class SelfDemotionException(ConflictException):
    code = "SELF_DEMOTION"

    def __init__(self):
        super().__init__("You cannot demote yourself")


class LastAdminDemotionException(ConflictException):
    code = "LAST_ADMIN_DEMOTION"

    def __init__(self):
        super().__init__("Cannot demote the only admin of this community")


class SelfRemovalException(ConflictException):
    code = "SELF_REMOVAL"

    def __init__(self):
        super().__init__("You cannot remove yourself. Use leave instead.")


class SoleAdminException(ConflictException):
    code = "SOLE_ADMIN"

    def __init__(self):
        super().__init__("You are the only admin. Promote another member before leaving.")


class NotMemberException(BadRequestException):
    code = "NOT_MEMBER"

    def __init__(self):
        super().__init__("You are not a member of this community")


# Potluck conflicts

class CategoryFullException(ConflictException):
    code = "CATEGORY_FULL"

    def __init__(self, category: str, limit: int):
        super().__init__(f"Maximum {category} signups ({limit}) reached")
        self.limit = limit


# Poll voting failures

class PollNotOpenException(BadRequestException):
    code = "POLL_NOT_OPEN"

    def __init__(self):
        super().__init__("Poll is not open yet")


class PollClosedException(BadRequestException):
    code = "POLL_CLOSED"

    def __init__(self):
        super().__init__("Poll is closed")


class EmptySelectionException(BadRequestException):
    code = "EMPTY_SELECTION"

    def __init__(self):
        super().__init__("Please select at least one option")


class InvalidSelectionCountException(BadRequestException):
    code = "INVALID_SELECTION_COUNT"

    def __init__(self):
        super().__init__("Single choice poll: select exactly one option")


class InvalidOptionException(BadRequestException):
    code = "INVALID_OPTION"

    def __init__(self, option_ids: list):
        ids = ", ".join(str(option_id) for option_id in option_ids)
        super().__init__(f"Options do not belong to this poll: {ids}")
        self.option_ids = option_ids


class PollTypeLockedException(ConflictException):
    code = "POLL_TYPE_LOCKED"

    def __init__(self):
        super().__init__("Poll type cannot change once votes have been cast")
