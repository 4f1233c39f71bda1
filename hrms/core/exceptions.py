from typing import Any, Dict, List, Optional


class AppException(Exception):
    def __init__(
        self,
        message: str,
        status_code: int = 400,
        error_code: str = "BUSINESS_ERROR",
        errors: Optional[List[str]] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.status_code = status_code
        self.error_code = error_code
        self.errors = errors
        self.details = details
        super().__init__(self.message)


class AuthenticationError(AppException):
    def __init__(self, message: str = "Authentication required. Please log in."):
        super().__init__(
            message=message,
            status_code=401,
            error_code="AUTH_FAILED"
        )


class AccessDeniedError(AppException):
    """Custom permission error. Named AccessDeniedError to avoid shadowing Python's built-in PermissionError."""
    def __init__(self, message: str = "You do not have permission to perform this action."):
        super().__init__(
            message=message,
            status_code=403,
            error_code="PERMISSION_DENIED"
        )


class PolicyNotFoundError(AppException):
    def __init__(self, message: str = "No active leave policy found for this leave type"):
        super().__init__(message=message, status_code=404, error_code="POLICY_NOT_FOUND")


class EmployeeNotFoundError(AppException):
    def __init__(self, message: str = "Employee not found"):
        super().__init__(message=message, status_code=404, error_code="EMPLOYEE_NOT_FOUND")


class LeaveTypeNotFoundError(AppException):
    def __init__(self, message: str = "Leave type not found"):
        super().__init__(message=message, status_code=404, error_code="LEAVE_TYPE_NOT_FOUND")


class LeaveRequestNotFoundError(AppException):
    def __init__(self, message: str = "Leave request not found"):
        super().__init__(message=message, status_code=404, error_code="LEAVE_REQUEST_NOT_FOUND")


class InvalidStateTransitionError(AppException):
    def __init__(self, message: str = "Leave request is not in pending status"):
        super().__init__(message=message, status_code=400, error_code="INVALID_STATE_TRANSITION")


class DuplicateLeaveTypeError(AppException):
    def __init__(self, message: str = "Leave type with this code already exists"):
        super().__init__(message=message, status_code=409, error_code="DUPLICATE_LEAVE_TYPE")


class LeaveValidationError(AppException):
    """Carries the itemised business-rule failures of a leave request."""
    def __init__(self, errors: List[str]):
        super().__init__(
            message="Leave request validation failed",
            status_code=400,
            error_code="LEAVE_VALIDATION_FAILED",
            errors=errors
        )


class PolicyOverlapError(AppException):
    def __init__(self, message: str = "An active policy for this leave type starts on or after this date"):
        super().__init__(message=message, status_code=409, error_code="POLICY_OVERLAP")
