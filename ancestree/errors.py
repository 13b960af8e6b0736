"""Exception types shared across services and the HTTP layer."""

from typing import Optional


class AncestreeError(Exception):
    """Base error. `status_code` is what the API layer reports."""

    status_code = 500
    public_message = "Something went wrong. Please try again later."

    def __init__(self, message: str = ""):
        super().__init__(message or self.public_message)
        self.message = message or self.public_message


class InvalidRequestError(AncestreeError):
    """Missing or malformed input fields."""

    status_code = 400
    public_message = "Missing required fields"


class NotFoundError(AncestreeError):
    status_code = 404
    public_message = "Not found"


class StoreError(AncestreeError):
    """Document store unavailable or rejected a write."""

    public_message = "Storage unavailable. Please try again later."


class GatewayError(AncestreeError):
    """AI gateway exhausted its retries."""

    public_message = "AI service unavailable. Please try again later."

    def __init__(self, message: str = "", attempts: int = 0, last_error: Optional[str] = None):
        super().__init__(message)
        self.attempts = attempts
        self.last_error = last_error


class AnalysisError(AncestreeError):
    public_message = "Failed to analyze DNA data. Please try again later."
